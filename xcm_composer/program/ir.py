"""Typed message-program model.

This module defines the values a message program is made of: junctions and
locations, assets, weight limits, asset filters and instructions. Uses
Pydantic for serialization and discriminated unions for polymorphism.

The model is:
- Fully typed (every variant carries a ``type`` tag)
- Immutable (all models are frozen, programs are tuples)
- Serializable to/from JSON (byte fields travel as 0x-prefixed hex)
- Nested (transfer instructions carry the Program the receiving chain runs)
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    PlainSerializer,
    RootModel,
)

MAX_JUNCTIONS = 8
U32_MAX = 2**32 - 1
U64_MAX = 2**64 - 1
U128_MAX = 2**128 - 1


# =============================================================================
# Scalar types
# =============================================================================


def _parse_hex(value: Any) -> Any:
    """Accept 0x-prefixed (or bare) hex strings wherever bytes are expected."""
    if isinstance(value, str):
        text = value[2:] if value[:2] in ("0x", "0X") else value
        try:
            return bytes.fromhex(text)
        except ValueError as e:
            raise ValueError(f"Invalid hex string: {value!r}") from e
    return value


def _check_account_width(value: bytes) -> bytes:
    if len(value) not in (20, 32):
        raise ValueError(f"Account must be 20 or 32 bytes, got {len(value)}")
    return value


HexBytes = Annotated[
    bytes,
    BeforeValidator(_parse_hex),
    PlainSerializer(lambda b: "0x" + b.hex(), return_type=str, when_used="json"),
]

ChainId = Annotated[int, Field(ge=0, le=U32_MAX)]
Amount = Annotated[int, Field(ge=0, le=U128_MAX)]
U32 = Annotated[int, Field(ge=0, le=U32_MAX)]
U64 = Annotated[int, Field(ge=0, le=U64_MAX)]

# 32-byte or 20-byte raw account identifier
AccountBytes = Annotated[HexBytes, AfterValidator(_check_account_width)]


class XcmModel(BaseModel):
    """Base for all program values. Values are immutable once built."""

    model_config = ConfigDict(frozen=True)


# =============================================================================
# Enums
# =============================================================================


class NetworkId(str, Enum):
    """Global consensus systems a location can be rooted in."""

    POLKADOT = "polkadot"
    KUSAMA = "kusama"
    WESTEND = "westend"
    ROCOCO = "rococo"
    PASEO = "paseo"


class OriginKind(str, Enum):
    """Origin a Transact call is dispatched with."""

    NATIVE = "native"
    SOVEREIGN_ACCOUNT = "sovereign_account"
    SUPERUSER = "superuser"
    XCM = "xcm"


# =============================================================================
# Junctions
# =============================================================================


class Parachain(XcmModel):
    """A chain reachable through the relay."""

    type: Literal["parachain"] = "parachain"
    id: ChainId

    def __str__(self) -> str:
        return f"Parachain({self.id})"


class AccountId32(XcmModel):
    """A 32-byte account."""

    type: Literal["account_id32"] = "account_id32"
    id: Annotated[HexBytes, Field(min_length=32, max_length=32)]
    network: NetworkId | None = None

    def __str__(self) -> str:
        return f"AccountId32(0x{self.id.hex()})"


class AccountKey20(XcmModel):
    """A 20-byte account key."""

    type: Literal["account_key20"] = "account_key20"
    key: Annotated[HexBytes, Field(min_length=20, max_length=20)]
    network: NetworkId | None = None

    def __str__(self) -> str:
        return f"AccountKey20(0x{self.key.hex()})"


class PalletInstance(XcmModel):
    type: Literal["pallet_instance"] = "pallet_instance"
    index: int = Field(ge=0, le=255)

    def __str__(self) -> str:
        return f"PalletInstance({self.index})"


class GeneralIndex(XcmModel):
    type: Literal["general_index"] = "general_index"
    index: Amount

    def __str__(self) -> str:
        return f"GeneralIndex({self.index})"


class GlobalConsensus(XcmModel):
    type: Literal["global_consensus"] = "global_consensus"
    network: NetworkId

    def __str__(self) -> str:
        return f"GlobalConsensus({self.network.value})"


class OnlyChild(XcmModel):
    """Placeholder for an unknown parent when inverting a location."""

    type: Literal["only_child"] = "only_child"

    def __str__(self) -> str:
        return "OnlyChild"


Junction = Annotated[
    Parachain
    | AccountId32
    | AccountKey20
    | PalletInstance
    | GeneralIndex
    | GlobalConsensus
    | OnlyChild,
    Field(discriminator="type"),
]


# =============================================================================
# Locations and assets
# =============================================================================


class Location(XcmModel):
    """A relative path: ascend ``parents`` levels, then descend ``interior``.

    A Location only means something inside the execution context it was
    produced for. Use ``reanchor.reanchored`` before handing it to another
    chain.
    """

    parents: int = Field(default=0, ge=0, le=255)
    interior: tuple[Junction, ...] = Field(default=(), max_length=MAX_JUNCTIONS)

    @classmethod
    def new(cls, parents: int, *junctions: Junction) -> Location:
        return cls(parents=parents, interior=junctions)

    @classmethod
    def here(cls) -> Location:
        return cls()

    @classmethod
    def parent(cls) -> Location:
        return cls(parents=1)

    def is_here(self) -> bool:
        return self.parents == 0 and not self.interior

    def __str__(self) -> str:
        path = "/".join(str(j) for j in self.interior) or "Here"
        return f"({self.parents}, {path})"


class Fungible(XcmModel):
    type: Literal["fungible"] = "fungible"
    amount: Amount


class NonFungible(XcmModel):
    type: Literal["non_fungible"] = "non_fungible"
    instance: int = Field(ge=0)


Fungibility = Annotated[Fungible | NonFungible, Field(discriminator="type")]


class Asset(XcmModel):
    """An asset identified by its location, with a fungible or unique quantity."""

    id: Location
    fun: Fungibility

    @classmethod
    def fungible(cls, location: Location, amount: int) -> Asset:
        return cls(id=location, fun=Fungible(amount=amount))

    def __str__(self) -> str:
        if isinstance(self.fun, Fungible):
            return f"{self.fun.amount} of {self.id}"
        return f"#{self.fun.instance} of {self.id}"


# =============================================================================
# Weight limits
# =============================================================================


class Weight(XcmModel):
    ref_time: U64
    proof_size: U64


class Unlimited(XcmModel):
    """No execution budget."""

    type: Literal["unlimited"] = "unlimited"


class Limited(XcmModel):
    """Execution budget the receiving chain must not exceed."""

    type: Literal["limited"] = "limited"
    ref_time: U64
    proof_size: U64

    @classmethod
    def maximum(cls) -> Limited:
        return cls(ref_time=U64_MAX, proof_size=U64_MAX)


WeightLimit = Annotated[Unlimited | Limited, Field(discriminator="type")]


# =============================================================================
# Asset filters
# =============================================================================


class Definite(XcmModel):
    """Exactly these assets."""

    type: Literal["definite"] = "definite"
    assets: tuple[Asset, ...]


class AllAssets(XcmModel):
    """Everything in the holding register."""

    type: Literal["all"] = "all"


class AllCounted(XcmModel):
    """Everything in holding, limited to ``count`` distinct assets."""

    type: Literal["all_counted"] = "all_counted"
    count: U32


AssetFilter = Annotated[Definite | AllAssets | AllCounted, Field(discriminator="type")]


# =============================================================================
# Instructions
# =============================================================================


class WithdrawAsset(XcmModel):
    """Move assets from the origin's account into the holding register."""

    type: Literal["withdraw_asset"] = "withdraw_asset"
    assets: tuple[Asset, ...]


class BuyExecution(XcmModel):
    """Pay for execution on the current chain out of holding."""

    type: Literal["buy_execution"] = "buy_execution"
    fees: Asset
    weight_limit: WeightLimit


class InitiateReserveWithdraw(XcmModel):
    """Burn assets locally and ask the reserve to release them, then run ``xcm`` there."""

    type: Literal["initiate_reserve_withdraw"] = "initiate_reserve_withdraw"
    assets: AssetFilter
    reserve: Location
    xcm: Program


class DepositReserveAsset(XcmModel):
    """Deposit held assets into ``dest``'s sovereign account and run ``xcm`` on ``dest``."""

    type: Literal["deposit_reserve_asset"] = "deposit_reserve_asset"
    assets: AssetFilter
    dest: Location
    xcm: Program


class DepositAsset(XcmModel):
    """Deposit held assets into a local beneficiary."""

    type: Literal["deposit_asset"] = "deposit_asset"
    assets: AssetFilter
    beneficiary: Location


class ExchangeAsset(XcmModel):
    """Swap held assets. ``maximal`` sells exactly ``give``; otherwise buys exactly ``want``."""

    type: Literal["exchange_asset"] = "exchange_asset"
    give: AssetFilter
    want: tuple[Asset, ...]
    maximal: bool


class TransferReserveAsset(XcmModel):
    """Move assets from the origin's account to ``dest``'s sovereign account, then run ``xcm``."""

    type: Literal["transfer_reserve_asset"] = "transfer_reserve_asset"
    assets: tuple[Asset, ...]
    dest: Location
    xcm: Program


class SetFeesMode(XcmModel):
    type: Literal["set_fees_mode"] = "set_fees_mode"
    jit_withdraw: bool


class Transact(XcmModel):
    """Dispatch an encoded call on the current chain."""

    type: Literal["transact"] = "transact"
    origin_kind: OriginKind
    require_weight_at_most: Weight
    call: HexBytes


Instruction = Annotated[
    WithdrawAsset
    | BuyExecution
    | InitiateReserveWithdraw
    | DepositReserveAsset
    | DepositAsset
    | ExchangeAsset
    | TransferReserveAsset
    | SetFeesMode
    | Transact,
    Field(discriminator="type"),
]

# Instructions that carry a program for the receiving chain
NESTING_INSTRUCTIONS = (InitiateReserveWithdraw, DepositReserveAsset, TransferReserveAsset)


# =============================================================================
# Program
# =============================================================================


class Program(RootModel[tuple[Instruction, ...]]):
    """An ordered, immutable sequence of instructions for one chain's executor.

    Serializes as a JSON list. Nested programs appear inline in the
    ``xcm`` field of transfer instructions.
    """

    model_config = ConfigDict(frozen=True)

    root: tuple[Instruction, ...] = ()

    @classmethod
    def of(cls, *instructions: Instruction) -> Program:
        return cls(instructions)

    def __iter__(self):
        return iter(self.root)

    def __len__(self) -> int:
        return len(self.root)

    def __getitem__(self, index: int):
        return self.root[index]

    def __add__(self, other: Program) -> Program:
        return Program(self.root + other.root)

    def is_empty(self) -> bool:
        return not self.root

    def to_json(self, indent: int | None = 2) -> str:
        """Serialize to JSON string."""
        return self.model_dump_json(indent=indent)

    @classmethod
    def from_json(cls, json_str: str) -> Program:
        """Deserialize from JSON string."""
        return cls.model_validate_json(json_str)


# Update forward refs for the recursive instructions
InitiateReserveWithdraw.model_rebuild()
DepositReserveAsset.model_rebuild()
TransferReserveAsset.model_rebuild()
Program.model_rebuild()
