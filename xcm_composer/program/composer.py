"""Composition driver: one parameterized recipe for every transfer template.

A route is the ordered list of chains the principal passes through:

    origin -> hops[0] (reserve) -> hops[1] -> ... -> hops[-1] (terminal)

The origin withdraws the principal and hands it to ``hops[0]`` with
InitiateReserveWithdraw. Every following chain receives it through
DepositReserveAsset. The terminal chain runs the final action: deposit,
swap then deposit, swap then forward, or a caller-supplied program.

Canonical rules:
- Every top-level program starts with exactly one WithdrawAsset.
- The default weight limit is Unlimited.
- Hashed beneficiaries are derived for the origin chain.
- Each hop's execution fee comes out of what earlier hops left of the
  principal, and is reanchored hop by hop into that chain's frame.
- Swap assets are given in the origin's frame and carried to the terminal.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Annotated, Literal, Self

from pydantic import Field, model_validator

from xcm_composer.program.accounts import hashed_account
from xcm_composer.program.builders.program_builder import DEFAULT_FEE_DIVISOR, MessageBuilder
from xcm_composer.program.errors import UnsupportedError
from xcm_composer.program.ir import (
    AccountBytes,
    AllAssets,
    Amount,
    Asset,
    ChainId,
    DepositAsset,
    Location,
    Program,
    Unlimited,
    Weight,
    WeightLimit,
    XcmModel,
)
from xcm_composer.program.primitives import (
    account_location,
    fee_amount,
    fungible_amount,
    native_asset,
    para,
)
from xcm_composer.program.reanchor import global_context, reanchored_asset
from xcm_composer.program.registries.chains import ASSET_HUB, HYDRATION, POP, USDT_LOCATION

logger = logging.getLogger(__name__)


# =============================================================================
# Topology and actions
# =============================================================================


class Route(XcmModel):
    """Chains the principal passes through, origin first."""

    origin: ChainId
    hops: tuple[ChainId, ...] = Field(min_length=1)

    @model_validator(mode="after")
    def validate_hops(self) -> Self:
        chains = self.chains
        for prev, nxt in zip(chains, chains[1:]):
            if prev == nxt:
                raise ValueError(f"Route visits chain {prev} twice in a row")
        return self

    @property
    def chains(self) -> tuple[int, ...]:
        return (self.origin, *self.hops)

    @property
    def terminal(self) -> int:
        return self.hops[-1]

    def legs(self) -> list[tuple[int, int]]:
        chains = self.chains
        return list(zip(chains, chains[1:]))

    def __str__(self) -> str:
        return " -> ".join(str(c) for c in self.chains)


class DepositAction(XcmModel):
    """Deposit everything that arrives into the beneficiary's account."""

    type: Literal["deposit"] = "deposit"
    beneficiary: AccountBytes
    hashed: bool = False


class ForwardAction(XcmModel):
    """After a swap, send the proceeds to their reserve chain and deposit there."""

    type: Literal["forward"] = "forward"
    reserve: ChainId
    beneficiary: AccountBytes
    hashed: bool = False


class SwapAction(XcmModel):
    """Swap on the terminal chain, then deposit or forward the proceeds.

    ``give``, ``want`` and ``fee`` are expressed in the origin's frame.
    """

    type: Literal["swap"] = "swap"
    give: Asset
    want: Asset
    is_sell: bool = False
    fee: Asset | None = None
    then: Annotated[DepositAction | ForwardAction, Field(discriminator="type")]


class CustomAction(XcmModel):
    """Run a caller-supplied program on the terminal chain."""

    type: Literal["custom"] = "custom"
    program: Program


FinalAction = Annotated[
    DepositAction | SwapAction | CustomAction,
    Field(discriminator="type"),
]


class ReserveTransferred(XcmModel):
    """Record of one leg of a composed transfer."""

    account: AccountBytes | None = None
    amount: Amount
    from_chain: ChainId
    to_chain: ChainId


@dataclass
class CompositionResult:
    """A composed top-level program and the transfers it describes."""

    program: Program
    route: Route
    transfers: list[ReserveTransferred] = field(default_factory=list)
    # Where to send the program; None executes it on the origin
    destination: Location | None = None


# =============================================================================
# Driver
# =============================================================================


def carry_asset(asset: Asset, path: Sequence[int]) -> Asset:
    """Reanchor ``asset`` from ``path[0]``'s frame into ``path[-1]``'s, one hop at a time."""
    for here, there in zip(path, path[1:]):
        asset = reanchored_asset(asset, para(there), global_context(here))
    return asset


def fee_schedule(route: Route, amount: int, divisor: int) -> dict[int, Asset]:
    """Execution fee for each hop, keyed by its index in ``route.chains``.

    Each fee is a ``divisor`` fraction of what earlier hops left of the
    principal, so the fee budgets never add up to more than ``amount``.
    """
    chains = route.chains
    fees: dict[int, Asset] = {}
    remaining = amount
    for index in range(1, len(chains)):
        fee = fee_amount(native_asset(remaining), divisor)
        remaining -= fungible_amount(fee)
        fees[index] = carry_asset(fee, chains[: index + 1])
    return fees


def compose(
    route: Route,
    amount: int,
    action: DepositAction | SwapAction | CustomAction,
    weight_limit: WeightLimit | None = None,
    fee_divisor: int = DEFAULT_FEE_DIVISOR,
) -> CompositionResult:
    """Build the top-level program that moves ``amount`` along ``route``.

    Args:
        route: Origin and hops; the last hop runs ``action``
        amount: Principal of the relay-native asset to withdraw at the origin
        action: What the terminal chain does with the arrived assets
        weight_limit: Execution budget on every hop (default Unlimited)
        fee_divisor: Fraction of the remaining principal each hop may spend

    Returns:
        CompositionResult with the program and one transfer record per leg

    Raises:
        BuilderContractError: If the builders are misused
        ReanchorError: If an asset cannot be expressed on some hop
        UnsupportedError: If the action cannot run on this route
    """
    if weight_limit is None:
        weight_limit = Unlimited()
    chains = route.chains
    base = MessageBuilder(fee_divisor=fee_divisor).with_weight_limit(weight_limit)
    top = base.with_next_hop(route.origin).with_destination(chains[1])

    if len(route.hops) == 1 and isinstance(action, DepositAction):
        program = top.with_beneficiary(action.beneficiary, action.hashed).reserve_transfer(
            amount, Program()
        )
    else:
        fees = fee_schedule(route, amount, fee_divisor)
        inner = _terminal_program(route, action, fees[len(chains) - 1], base)

        if len(route.hops) == 1:
            program = top.reserve_withdraw(amount, inner)
        else:
            # Wrap outwards, from the chain before the terminal back to hops[1]
            for index in range(len(chains) - 2, 1, -1):
                inner = (
                    base.with_next_hop(chains[index])
                    .with_deposit_chain(chains[index + 1])
                    .continuation_program(fees[index], inner)
                )
            program = top.with_deposit_chain(chains[2]).reserve_transfer(amount, inner)

    account = _action_beneficiary(action)
    transfers = [
        ReserveTransferred(account=account, amount=amount, from_chain=src, to_chain=dst)
        for src, dst in route.legs()
    ]
    logger.info(
        f"Composed {action.type} program over {route} "
        f"({len(route.hops)} hop(s), {len(program)} top-level instructions)"
    )
    return CompositionResult(program=program, route=route, transfers=transfers)


def _terminal_program(
    route: Route,
    action: DepositAction | SwapAction | CustomAction,
    fee: Asset,
    builder: MessageBuilder,
) -> Program:
    """Program the terminal chain runs once the principal arrives."""
    match action:
        case DepositAction():
            return (
                builder.with_next_hop(route.origin)
                .with_beneficiary(action.beneficiary, action.hashed)
                .deposit_program(fee)
            )
        case SwapAction():
            give = carry_asset(action.give, route.chains)
            want = carry_asset(action.want, route.chains)
            swap_fee = carry_asset(action.fee, route.chains) if action.fee else None
            exchange = builder.exchange_asset(give, want, action.is_sell, swap_fee)
            return exchange + _after_swap(route, action.then, want, builder)
        case CustomAction():
            return action.program
        case _:
            raise UnsupportedError(f"Unsupported final action: {type(action).__name__}")


def _after_swap(
    route: Route,
    then: DepositAction | ForwardAction,
    want: Asset,
    builder: MessageBuilder,
) -> Program:
    match then:
        case DepositAction():
            account = _resolve_account(then.beneficiary, then.hashed, route.origin)
            return Program.of(
                DepositAsset(assets=AllAssets(), beneficiary=account_location(account))
            )
        case ForwardAction():
            if then.reserve == route.terminal:
                raise UnsupportedError(
                    f"Cannot forward swap proceeds from chain {then.reserve} to itself"
                )
            # Proceeds pay for their own deposit on the reserve
            remote_want = reanchored_asset(
                want, para(then.reserve), global_context(route.terminal)
            )
            return (
                builder.with_next_hop(route.origin)
                .with_beneficiary(then.beneficiary, then.hashed)
                .with_next_hop(route.terminal)
                .with_destination(then.reserve)
                .reserve_forward(fee_amount(remote_want, builder.fee_divisor), Program())
            )
        case _:
            raise UnsupportedError(f"Unsupported swap follow-up: {type(then).__name__}")


def _resolve_account(account: bytes, hashed: bool, origin: int) -> bytes:
    return hashed_account(origin, account) if hashed else account


def _action_beneficiary(action: DepositAction | SwapAction | CustomAction) -> bytes | None:
    if isinstance(action, DepositAction):
        return action.beneficiary
    if isinstance(action, SwapAction):
        return action.then.beneficiary
    return None


# =============================================================================
# Templates
# =============================================================================


def fund_direct(
    account: bytes,
    from_chain: int,
    to_chain: int,
    amount: int,
    hashed: bool = False,
) -> CompositionResult:
    """Reserve-transfer ``amount`` from ``from_chain`` straight to ``to_chain``."""
    return compose(
        Route(origin=from_chain, hops=(to_chain,)),
        amount,
        DepositAction(beneficiary=account, hashed=hashed),
    )


def fund_indirect(
    account: bytes,
    from_chain: int,
    hop: int,
    to_chain: int,
    amount: int,
    hashed: bool = False,
) -> CompositionResult:
    """Reserve-transfer ``amount`` to ``to_chain`` through the reserve ``hop``."""
    return compose(
        Route(origin=from_chain, hops=(hop, to_chain)),
        amount,
        DepositAction(beneficiary=account, hashed=hashed),
    )


def swap_and_deposit(
    from_chain: int,
    reserve: int,
    swap_chain: int,
    amount: int,
    give: Asset,
    want: Asset,
    is_sell: bool,
    beneficiary: bytes,
    fee: Asset | None = None,
    hashed: bool = False,
) -> CompositionResult:
    """Move ``amount`` to ``swap_chain`` through ``reserve``, swap, deposit locally."""
    return compose(
        Route(origin=from_chain, hops=(reserve, swap_chain)),
        amount,
        SwapAction(
            give=give,
            want=want,
            is_sell=is_sell,
            fee=fee,
            then=DepositAction(beneficiary=beneficiary, hashed=hashed),
        ),
    )


def swap_and_forward(
    from_chain: int,
    reserve: int,
    swap_chain: int,
    amount: int,
    give: Asset,
    want: Asset,
    is_sell: bool,
    dest_reserve: int,
    beneficiary: bytes,
    fee: Asset | None = None,
    hashed: bool = False,
) -> CompositionResult:
    """Like ``swap_and_deposit``, but deliver the proceeds on ``dest_reserve``."""
    return compose(
        Route(origin=from_chain, hops=(reserve, swap_chain)),
        amount,
        SwapAction(
            give=give,
            want=want,
            is_sell=is_sell,
            fee=fee,
            then=ForwardAction(reserve=dest_reserve, beneficiary=beneficiary, hashed=hashed),
        ),
    )


def transfer_and_execute(
    from_chain: int,
    reserve: int,
    target: int,
    amount: int,
    program: Program,
) -> CompositionResult:
    """Move ``amount`` to ``target`` through ``reserve`` and run ``program`` there."""
    return compose(
        Route(origin=from_chain, hops=(reserve, target)),
        amount,
        CustomAction(program=program),
    )


def execute_on(
    from_chain: int,
    chain: int,
    call: bytes,
    fee: Asset,
    weight: Weight,
) -> CompositionResult:
    """Dispatch an encoded ``call`` on ``chain`` as ``from_chain``'s sovereign account.

    ``fee`` is given as seen from ``chain``; the sovereign account pays it.
    The program is sent to ``chain`` rather than executed on the origin.
    """
    route = Route(origin=from_chain, hops=(chain,))
    program = MessageBuilder().transact_program(call, fee, weight)
    logger.info(f"Composed transact program over {route} ({len(call)}-byte call)")
    return CompositionResult(program=program, route=route, destination=para(chain))


def execute_on_hydration(from_chain: int, call: bytes, fee: Asset, weight: Weight) -> CompositionResult:
    """Dispatch ``call`` on Hydration."""
    return execute_on(from_chain, HYDRATION, call, fee, weight)


def swap_on_destination(
    from_chain: int,
    to_chain: int,
    beneficiary: bytes,
    give: Asset,
    want: Asset,
    is_sell: bool,
    fee: Asset | None = None,
) -> CompositionResult:
    """Relocate ``give`` from a reserve chain to ``to_chain`` and swap it there.

    Proceeds go to the account derived for ``beneficiary`` on ``from_chain``.
    """
    route = Route(origin=from_chain, hops=(to_chain,))
    program = (
        MessageBuilder()
        .with_max_weight_limit()
        .with_next_hop(from_chain)
        .with_destination(to_chain)
        .swap(beneficiary, give, want, is_sell, fee)
    )
    logger.info(f"Composed relocate-and-swap program over {route}")
    return CompositionResult(
        program=program,
        route=route,
        transfers=[
            ReserveTransferred(
                account=beneficiary,
                amount=fungible_amount(give),
                from_chain=from_chain,
                to_chain=to_chain,
            )
        ],
    )


def fund_asset_hub(account: bytes, amount: int, hashed: bool = False) -> CompositionResult:
    """Fund an account on Asset Hub from Pop."""
    return fund_direct(account, POP, ASSET_HUB, amount, hashed)


def fund_hydration(account: bytes, amount: int, hashed: bool = False) -> CompositionResult:
    """Fund an account on Hydration from Pop, through Asset Hub."""
    return fund_indirect(account, POP, ASSET_HUB, HYDRATION, amount, hashed)


def swap_usdt_on_hydration(
    amount: int,
    amount_out: int,
    max_amount_in: int,
    fee: int,
    beneficiary: bytes,
    forward_to: int | None = None,
) -> CompositionResult:
    """Buy exactly ``amount_out`` USDT on Hydration with at most ``max_amount_in`` native.

    Proceeds are deposited on Hydration, or forwarded to ``forward_to``.
    """
    give = native_asset(max_amount_in)
    want = Asset.fungible(USDT_LOCATION, amount_out)
    swap_fee = native_asset(fee)
    if forward_to is None:
        return swap_and_deposit(
            POP, ASSET_HUB, HYDRATION, amount, give, want, False, beneficiary, swap_fee
        )
    return swap_and_forward(
        POP, ASSET_HUB, HYDRATION, amount, give, want, False, forward_to, beneficiary, swap_fee
    )
