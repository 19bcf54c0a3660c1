"""Chain and asset registry.

Maps well-known names to chain ids and asset locations declaratively, so
templates and the API do not hard-code magic numbers. Asset locations are
given as seen from a sibling parachain.
"""

from __future__ import annotations

from xcm_composer.program.errors import UnsupportedError
from xcm_composer.program.ir import GeneralIndex, Location, PalletInstance, Parachain

ASSET_HUB = 1000
HYDRATION = 2034
POP = 4001

CHAINS: dict[str, int] = {
    "asset_hub": ASSET_HUB,
    "hydration": HYDRATION,
    "pop": POP,
}

# USDT lives in Asset Hub's assets pallet (instance 50) under id 1984
USDT_LOCATION = Location.new(
    1,
    Parachain(id=ASSET_HUB),
    PalletInstance(index=50),
    GeneralIndex(index=1984),
)

ASSETS: dict[str, Location] = {
    "native": Location.parent(),
    "usdt": USDT_LOCATION,
}


def chain_id(name: str) -> int:
    """Look up a chain id by name.

    Raises:
        UnsupportedError: If the chain is unknown
    """
    try:
        return CHAINS[name.lower()]
    except KeyError:
        raise UnsupportedError(f"Unknown chain: {name}. Known chains: {sorted(CHAINS)}") from None


def asset_location(name: str) -> Location:
    """Look up an asset location by name.

    Raises:
        UnsupportedError: If the asset is unknown
    """
    try:
        return ASSETS[name.lower()]
    except KeyError:
        raise UnsupportedError(f"Unknown asset: {name}. Known assets: {sorted(ASSETS)}") from None
