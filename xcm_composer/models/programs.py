"""Program API request and response models.

These models define the HTTP interface of the composer. Requests name the
route and the beneficiary; responses carry the built program together with
a readable outline and the transfer records.
"""

from pydantic import BaseModel, Field

from xcm_composer.program.composer import FinalAction, ReserveTransferred, Route
from xcm_composer.program.ir import (
    AccountBytes,
    Amount,
    Asset,
    ChainId,
    HexBytes,
    Location,
    Program,
    Weight,
    WeightLimit,
)
from xcm_composer.service.executor import DispatchReceipt


class FundDirectRequest(BaseModel):
    """Fund an account on a neighbouring chain in one hop."""

    account: AccountBytes
    from_chain: ChainId
    to_chain: ChainId
    amount: Amount = Field(..., gt=0)
    hashed: bool = Field(default=False, description="Deposit to the derived sibling account")
    dispatch: bool = False


class FundIndirectRequest(BaseModel):
    """Fund an account two hops away, through a reserve chain."""

    account: AccountBytes
    from_chain: ChainId
    hop: ChainId = Field(..., description="Reserve chain the funds pass through")
    to_chain: ChainId
    amount: Amount = Field(..., gt=0)
    hashed: bool = False
    dispatch: bool = False


class SwapRequest(BaseModel):
    """Move funds to a swap chain through a reserve, swap, then deposit or forward.

    ``give``, ``want`` and ``fee`` are given as seen from ``from_chain``.
    """

    from_chain: ChainId
    reserve: ChainId
    swap_chain: ChainId
    amount: Amount = Field(..., gt=0)
    give: Asset
    want: Asset
    is_sell: bool = False
    fee: Asset | None = None
    beneficiary: AccountBytes
    hashed: bool = False
    forward_to: ChainId | None = Field(
        default=None, description="Reserve chain to deliver the proceeds on; None deposits locally"
    )
    dispatch: bool = False


class ComposeRequest(BaseModel):
    """Free-form composition over an arbitrary route."""

    route: Route
    amount: Amount = Field(..., gt=0)
    action: FinalAction
    weight_limit: WeightLimit | None = None
    fee_divisor: int | None = Field(default=None, gt=0)
    dispatch: bool = False


class ExecuteRequest(BaseModel):
    """Run an encoded call on another chain as the origin's sovereign account."""

    from_chain: ChainId
    chain: ChainId = Field(..., description="Chain the call is dispatched on")
    call: HexBytes = Field(..., min_length=1)
    fee: Asset = Field(..., description="Execution fee, as seen from ``chain``")
    weight: Weight
    dispatch: bool = False


class DispatchResultModel(BaseModel):
    """Outcome of handing a program to the executor."""

    status: str
    receipt: DispatchReceipt | None = None
    error: str | None = None
    validation_errors: list[str] = Field(default_factory=list)


class ProgramResponse(BaseModel):
    """A built program and what it does."""

    route: str
    program: Program
    outline: str
    depth: int
    transfers: list[ReserveTransferred]
    destination: Location | None = None
    dispatch: DispatchResultModel | None = None


class DerivedAccountResponse(BaseModel):
    """The account a sibling chain credits for ``account`` on ``chain_id``."""

    chain_id: ChainId
    account: HexBytes
    derived: HexBytes
