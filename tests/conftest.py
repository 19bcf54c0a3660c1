"""Shared test fixtures and helpers."""

import pytest

from xcm_composer.program.ir import Asset, Location
from xcm_composer.program.primitives import native_asset
from xcm_composer.program.registries.chains import USDT_LOCATION

ALICE = bytes([1] * 32)
BOB = bytes([2] * 32)
EVM_ACCOUNT = bytes(range(20))


def native(amount: int) -> Asset:
    """Relay-native asset as seen from a parachain."""
    return native_asset(amount)


def usdt(amount: int, location: Location = USDT_LOCATION) -> Asset:
    """USDT as seen from a sibling of Asset Hub, unless another location is given."""
    return Asset.fungible(location, amount)


@pytest.fixture
def alice() -> bytes:
    return ALICE


@pytest.fixture
def bob() -> bytes:
    return BOB


@pytest.fixture
def evm_account() -> bytes:
    return EVM_ACCOUNT
