"""Message program builder.

``MessageBuilder`` is an immutable record of addressing state. Setters return a
new builder, so a half-configured builder can be shared without one branch's
settings leaking into another. Terminal methods return a ``Program``.

Programs are composed inside-out: build what the last chain runs first, then
pass it as ``inner`` to the call that builds the program for the chain before
it.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from xcm_composer.program.accounts import hashed_account
from xcm_composer.program.errors import BuilderContractError, UnsupportedError
from xcm_composer.program.ir import (
    AllAssets,
    AllCounted,
    Asset,
    BuyExecution,
    Definite,
    DepositAsset,
    DepositReserveAsset,
    ExchangeAsset,
    InitiateReserveWithdraw,
    Limited,
    Location,
    OriginKind,
    Program,
    SetFeesMode,
    Transact,
    TransferReserveAsset,
    Unlimited,
    Weight,
    WeightLimit,
    WithdrawAsset,
)
from xcm_composer.program.primitives import (
    account_location,
    fee_amount,
    merge_assets,
    native_asset,
    para,
)
from xcm_composer.program.reanchor import global_context, reanchored_asset

DEFAULT_FEE_DIVISOR = 2
EXCHANGE_FEE_DIVISOR = 3
SWAP_FEE_AMOUNT = 10_000_000_000


@dataclass(frozen=True)
class AccountTarget:
    """Deposit into an account on the chain that runs the program."""

    account: bytes


@dataclass(frozen=True)
class ChainTarget:
    """Deposit into another chain's sovereign account (reserve deposit)."""

    chain_id: int


DepositTarget = AccountTarget | ChainTarget


@dataclass(frozen=True)
class MessageBuilder:
    """Immutable addressing state for building one top-level program."""

    current_hop: int | None = None
    dest_chain: int | None = None
    weight_limit: WeightLimit = field(default_factory=Limited.maximum)
    deposit_target: DepositTarget | None = None
    fee_divisor: int = DEFAULT_FEE_DIVISOR

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    def with_next_hop(self, chain_id: int) -> MessageBuilder:
        """Set the chain whose frame reanchoring and account derivation use."""
        return replace(self, current_hop=chain_id)

    def with_destination(self, chain_id: int) -> MessageBuilder:
        """Set the chain transfers are sent to. Defaults to the relay chain."""
        return replace(self, dest_chain=chain_id)

    def with_weight_limit(self, weight_limit: WeightLimit) -> MessageBuilder:
        return replace(self, weight_limit=weight_limit)

    def with_max_weight_limit(self) -> MessageBuilder:
        return replace(self, weight_limit=Unlimited())

    def with_beneficiary(self, account: bytes, hashed: bool = False) -> MessageBuilder:
        """Set the account that receives deposits.

        With ``hashed=True`` the account is replaced by the account derived for
        it on the current hop.

        Raises:
            BuilderContractError: If ``hashed`` is set before ``with_next_hop``
        """
        if hashed:
            account = hashed_account(self._require_hop(), account)
        return replace(self, deposit_target=AccountTarget(account))

    def with_deposit_chain(self, chain_id: int) -> MessageBuilder:
        """Forward deposits to another chain's sovereign account."""
        return replace(self, deposit_target=ChainTarget(chain_id))

    # -------------------------------------------------------------------------
    # Terminal operations
    # -------------------------------------------------------------------------

    def deposit_program(self, fee_asset: Asset) -> Program:
        """Pay for execution and deposit everything held to the beneficiary.

        Raises:
            BuilderContractError: If no beneficiary is set
            UnsupportedError: If the deposit target is a chain
        """
        match self.deposit_target:
            case AccountTarget(account=account):
                return Program.of(
                    BuyExecution(fees=fee_asset, weight_limit=self.weight_limit),
                    DepositAsset(assets=AllAssets(), beneficiary=account_location(account)),
                )
            case ChainTarget(chain_id=chain_id):
                raise UnsupportedError(
                    f"Cannot deposit locally into chain {chain_id}; use a reserve deposit"
                )
            case _:
                raise BuilderContractError("No beneficiary set before building a deposit")

    def continuation_program(self, fee_asset: Asset, inner: Program) -> Program:
        """Program for the chain that receives a transfer.

        An empty ``inner`` means this is the last stop: deposit to the
        beneficiary. Otherwise pay for execution and forward everything to the
        deposit chain, which then runs ``inner``.

        Raises:
            BuilderContractError: If no deposit target is set
            UnsupportedError: If forwarding is requested towards an account
        """
        if inner.is_empty():
            return self.deposit_program(fee_asset)

        match self.deposit_target:
            case ChainTarget(chain_id=chain_id):
                return Program.of(
                    BuyExecution(fees=fee_asset, weight_limit=self.weight_limit),
                    DepositReserveAsset(assets=AllAssets(), dest=para(chain_id), xcm=inner),
                )
            case AccountTarget():
                raise UnsupportedError(
                    "A follow-up program needs a chain to forward to, not an account"
                )
            case _:
                raise BuilderContractError("No deposit target set before building a continuation")

    def reserve_withdraw(self, amount: int, remote: Program) -> Program:
        """Withdraw ``amount`` of the native asset and hand it to the reserve with ``remote``."""
        asset = native_asset(amount)
        return Program.of(
            WithdrawAsset(assets=(asset,)),
            InitiateReserveWithdraw(
                assets=Definite(assets=(asset,)),
                reserve=self.destination(),
                xcm=remote,
            ),
        )

    def reserve_transfer(self, amount: int, inner: Program) -> Program:
        """Move ``amount`` of the native asset to the destination under reserve rules.

        The destination pays for its own execution with a fee fraction of the
        principal, reanchored from the current hop into the destination's frame.

        Raises:
            BuilderContractError: If the current hop is not set
            ReanchorError: If the fee cannot be expressed at the destination
        """
        context = global_context(self._require_hop())
        fee = fee_amount(native_asset(amount), self.fee_divisor)
        reserve_fee = reanchored_asset(fee, self.destination(), context)
        return self.reserve_withdraw(amount, self.continuation_program(reserve_fee, inner))

    def reserve_forward(self, fee_asset: Asset, inner: Program) -> Program:
        """Like ``reserve_transfer`` but forwards whatever is already held.

        ``fee_asset`` must already be expressed in the destination's frame.
        """
        return Program.of(
            InitiateReserveWithdraw(
                assets=AllAssets(),
                reserve=self.destination(),
                xcm=self.continuation_program(fee_asset, inner),
            )
        )

    def exchange_asset(
        self,
        give: Asset,
        want: Asset,
        is_sell: bool,
        fee: Asset | None = None,
    ) -> Program:
        """Swap on the chain that runs this program.

        ``is_sell`` sells exactly ``give``; otherwise buys exactly ``want``.
        The fee defaults to a third of ``give``.
        """
        if fee is None:
            fee = fee_amount(give, EXCHANGE_FEE_DIVISOR)
        return Program.of(
            BuyExecution(fees=fee, weight_limit=self.weight_limit),
            ExchangeAsset(give=Definite(assets=(give,)), want=(want,), maximal=is_sell),
        )

    def swap(
        self,
        beneficiary: bytes,
        give: Asset,
        want: Asset,
        is_sell: bool,
        fee: Asset | None = None,
    ) -> Program:
        """Relocate ``give`` to the destination, swap it there and deposit the result.

        All assets are given in the current hop's frame. The proceeds go to the
        account derived for ``beneficiary`` on the current hop.

        Raises:
            BuilderContractError: If the current hop is not set
            ReanchorError: If an asset cannot be expressed at the destination
        """
        hop = self._require_hop()
        context = global_context(hop)
        dest = self.destination()
        if fee is None:
            fee = native_asset(SWAP_FEE_AMOUNT)

        remote_fee = reanchored_asset(fee, dest, context)
        remote_give = reanchored_asset(give, dest, context)
        remote_want = reanchored_asset(want, dest, context)
        derived = account_location(hashed_account(hop, beneficiary))

        return Program.of(
            SetFeesMode(jit_withdraw=True),
            TransferReserveAsset(
                assets=merge_assets(give, fee),
                dest=dest,
                xcm=Program.of(
                    BuyExecution(fees=remote_fee, weight_limit=self.weight_limit),
                    ExchangeAsset(
                        give=Definite(assets=(remote_give,)),
                        want=(remote_want,),
                        maximal=is_sell,
                    ),
                    DepositAsset(assets=AllCounted(count=1), beneficiary=derived),
                ),
            ),
        )

    def transact_program(self, call: bytes, fee: Asset, weight: Weight) -> Program:
        """Pay with ``fee`` and dispatch ``call`` as the sender's sovereign account."""
        return Program.of(
            WithdrawAsset(assets=(fee,)),
            BuyExecution(fees=fee, weight_limit=Unlimited()),
            Transact(
                origin_kind=OriginKind.SOVEREIGN_ACCOUNT,
                require_weight_at_most=weight,
                call=call,
            ),
        )

    # -------------------------------------------------------------------------
    # Addressing
    # -------------------------------------------------------------------------

    def destination(self) -> Location:
        if self.dest_chain is None:
            return Location.parent()
        return para(self.dest_chain)

    def _require_hop(self) -> int:
        if self.current_hop is None:
            raise BuilderContractError("Current hop must be set with with_next_hop() first")
        return self.current_hop
