"""Account routes."""

import logging

from fastapi import APIRouter, HTTPException, Query

from xcm_composer.models.programs import DerivedAccountResponse
from xcm_composer.program.accounts import hashed_account
from xcm_composer.program.errors import UnsupportedError
from xcm_composer.program.ir import U32_MAX

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/accounts", tags=["accounts"])


def parse_account(value: str) -> bytes:
    """Parse a 0x-prefixed (or bare) hex account."""
    text = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        return bytes.fromhex(text)
    except ValueError:
        raise HTTPException(status_code=422, detail=f"Account is not valid hex: {value}") from None


@router.get("/derive", response_model=DerivedAccountResponse)
async def derive_account(
    chain_id: int = Query(..., ge=0, le=U32_MAX),
    account: str = Query(..., description="0x-prefixed 32-byte or 20-byte account"),
) -> DerivedAccountResponse:
    """Derive the account siblings of ``chain_id`` use for ``account``."""
    raw = parse_account(account)
    try:
        derived = hashed_account(chain_id, raw)
    except UnsupportedError as e:
        raise HTTPException(status_code=422, detail=str(e))
    logger.info(f"Derived account for chain {chain_id}: 0x{derived.hex()}")
    return DerivedAccountResponse(chain_id=chain_id, account=raw, derived=derived)
