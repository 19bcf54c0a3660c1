"""Small constructors and fee arithmetic shared by the builder and composer."""

from __future__ import annotations

from xcm_composer.program.errors import BuilderContractError, UnsupportedError
from xcm_composer.program.ir import (
    AccountId32,
    AccountKey20,
    Asset,
    Fungible,
    Location,
    Parachain,
)


def fungible_amount(asset: Asset) -> int:
    """Return the amount if ``asset`` is fungible, or zero."""
    if isinstance(asset.fun, Fungible):
        return asset.fun.amount
    return 0


def fee_amount(asset: Asset, divisor: int) -> Asset:
    """Return ``asset`` with its amount divided by ``divisor`` (truncating).

    Non-fungible assets yield a zero-amount fee with the same id.

    Raises:
        BuilderContractError: If divisor is zero
    """
    if divisor == 0:
        raise BuilderContractError("Fee divisor must be non-zero")
    return Asset.fungible(asset.id, fungible_amount(asset) // divisor)


def with_amount(asset: Asset, amount: int) -> Asset:
    """Same asset id, new fungible amount."""
    return Asset.fungible(asset.id, amount)


def merge_assets(*assets: Asset) -> tuple[Asset, ...]:
    """Combine assets, summing fungible amounts that share an id.

    Order of first appearance is kept.
    """
    merged: dict[Location, Asset] = {}
    for asset in assets:
        if asset.id in merged:
            total = fungible_amount(merged[asset.id]) + fungible_amount(asset)
            merged[asset.id] = with_amount(asset, total)
        else:
            merged[asset.id] = asset
    return tuple(merged.values())


def native_asset(amount: int) -> Asset:
    """The relay chain's native token, as seen from any chain below it."""
    return Asset.fungible(Location.parent(), amount)


def para(chain_id: int) -> Location:
    """Location of a sibling chain."""
    return Location.new(1, Parachain(id=chain_id))


def account_location(account: bytes) -> Location:
    """Location of a local account.

    Raises:
        UnsupportedError: If the account is neither 32 nor 20 bytes
    """
    if len(account) == 32:
        return Location.new(0, AccountId32(id=account))
    if len(account) == 20:
        return Location.new(0, AccountKey20(key=account))
    raise UnsupportedError(f"Unsupported account width: {len(account)} bytes")
