"""Program routes: build transfer programs and optionally dispatch them."""

import logging
import os

from fastapi import APIRouter, Depends, HTTPException

from xcm_composer.models.programs import (
    ComposeRequest,
    DispatchResultModel,
    ExecuteRequest,
    FundDirectRequest,
    FundIndirectRequest,
    ProgramResponse,
    SwapRequest,
)
from xcm_composer.program.builders.program_builder import DEFAULT_FEE_DIVISOR
from xcm_composer.program.composer import (
    CompositionResult,
    compose,
    execute_on,
    fund_direct,
    fund_indirect,
    swap_and_deposit,
    swap_and_forward,
)
from xcm_composer.program.errors import ReanchorError, UnsupportedError
from xcm_composer.program.visitors import nesting_depth, outline
from xcm_composer.service.dispatch_service import DispatchService
from xcm_composer.service.executor import HttpExecutor

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/programs", tags=["programs"])


def get_dispatch_service() -> DispatchService:
    """Dispatch service backed by the executor configured in the environment."""
    return DispatchService(executor=HttpExecutor())


def default_fee_divisor() -> int:
    return int(os.getenv("XCM_FEE_DIVISOR", str(DEFAULT_FEE_DIVISOR)))


def _build(build, *args, **kwargs) -> CompositionResult:
    """Run a template, mapping caller mistakes to 422."""
    try:
        return build(*args, **kwargs)
    except (ReanchorError, UnsupportedError) as e:
        logger.warning(f"Cannot build program: {e}")
        raise HTTPException(status_code=422, detail=str(e))
    except ValueError as e:
        # Invalid routes surface as pydantic validation errors
        logger.warning(f"Invalid program request: {e}")
        raise HTTPException(status_code=422, detail=str(e))


def _respond(
    result: CompositionResult,
    dispatch: bool,
    service: DispatchService,
) -> ProgramResponse:
    dispatch_result = None
    if dispatch:
        outcome = service.dispatch(result.program, result.destination)
        dispatch_result = DispatchResultModel(
            status=outcome.status,
            receipt=outcome.receipt,
            error=outcome.error,
            validation_errors=outcome.validation_errors,
        )

    return ProgramResponse(
        route=str(result.route),
        program=result.program,
        outline=outline(result.program),
        depth=nesting_depth(result.program),
        transfers=result.transfers,
        destination=result.destination,
        dispatch=dispatch_result,
    )


@router.post("/fund-direct", response_model=ProgramResponse)
async def build_fund_direct(
    request: FundDirectRequest,
    service: DispatchService = Depends(get_dispatch_service),
) -> ProgramResponse:
    """Reserve-transfer funds to an account on a neighbouring chain."""
    logger.info(f"fund-direct {request.from_chain} -> {request.to_chain}, amount {request.amount}")
    result = _build(
        fund_direct,
        request.account,
        request.from_chain,
        request.to_chain,
        request.amount,
        request.hashed,
    )
    return _respond(result, request.dispatch, service)


@router.post("/fund-indirect", response_model=ProgramResponse)
async def build_fund_indirect(
    request: FundIndirectRequest,
    service: DispatchService = Depends(get_dispatch_service),
) -> ProgramResponse:
    """Reserve-transfer funds to an account two hops away."""
    logger.info(
        f"fund-indirect {request.from_chain} -> {request.hop} -> {request.to_chain}, "
        f"amount {request.amount}"
    )
    result = _build(
        fund_indirect,
        request.account,
        request.from_chain,
        request.hop,
        request.to_chain,
        request.amount,
        request.hashed,
    )
    return _respond(result, request.dispatch, service)


@router.post("/swap", response_model=ProgramResponse)
async def build_swap(
    request: SwapRequest,
    service: DispatchService = Depends(get_dispatch_service),
) -> ProgramResponse:
    """Transfer to a swap chain, swap, then deposit there or forward the proceeds."""
    common = dict(
        from_chain=request.from_chain,
        reserve=request.reserve,
        swap_chain=request.swap_chain,
        amount=request.amount,
        give=request.give,
        want=request.want,
        is_sell=request.is_sell,
        beneficiary=request.beneficiary,
        fee=request.fee,
        hashed=request.hashed,
    )
    if request.forward_to is None:
        result = _build(swap_and_deposit, **common)
    else:
        result = _build(swap_and_forward, dest_reserve=request.forward_to, **common)
    return _respond(result, request.dispatch, service)


@router.post("/compose", response_model=ProgramResponse)
async def build_composed(
    request: ComposeRequest,
    service: DispatchService = Depends(get_dispatch_service),
) -> ProgramResponse:
    """Compose a program over an arbitrary route and final action."""
    fee_divisor = request.fee_divisor or default_fee_divisor()
    result = _build(
        compose,
        request.route,
        request.amount,
        request.action,
        weight_limit=request.weight_limit,
        fee_divisor=fee_divisor,
    )
    return _respond(result, request.dispatch, service)


@router.post("/execute", response_model=ProgramResponse)
async def build_execute(
    request: ExecuteRequest,
    service: DispatchService = Depends(get_dispatch_service),
) -> ProgramResponse:
    """Dispatch an encoded call on another chain, paid by the origin's sovereign account."""
    logger.info(f"execute {request.from_chain} -> {request.chain}, {len(request.call)}-byte call")
    result = _build(
        execute_on,
        request.from_chain,
        request.chain,
        request.call,
        request.fee,
        request.weight,
    )
    return _respond(result, request.dispatch, service)
