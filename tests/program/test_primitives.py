"""Tests for fee arithmetic and small constructors."""

import pytest

from tests.conftest import ALICE, EVM_ACCOUNT, native, usdt
from xcm_composer.program.errors import BuilderContractError, UnsupportedError
from xcm_composer.program.ir import (
    AccountId32,
    AccountKey20,
    Asset,
    Location,
    NonFungible,
    Parachain,
)
from xcm_composer.program.primitives import (
    account_location,
    fee_amount,
    fungible_amount,
    merge_assets,
    para,
    with_amount,
)


class TestFeeAmount:
    def test_divides_amount(self):
        assert fee_amount(native(1000), 2) == native(500)

    def test_truncates(self):
        assert fee_amount(native(1001), 2) == native(500)
        assert fee_amount(native(1), 2) == native(0)

    def test_keeps_asset_id(self):
        assert fee_amount(usdt(90), 3) == usdt(30)

    def test_zero_divisor(self):
        with pytest.raises(BuilderContractError, match="non-zero"):
            fee_amount(native(1000), 0)

    def test_non_fungible_yields_zero(self):
        unique = Asset(id=Location.here(), fun=NonFungible(instance=3))
        fee = fee_amount(unique, 2)
        assert fungible_amount(fee) == 0
        assert fee.id == Location.here()


class TestMergeAssets:
    def test_sums_same_id(self):
        merged = merge_assets(native(10), usdt(5), native(3))
        assert merged == (native(13), usdt(5))

    def test_keeps_distinct(self):
        assert merge_assets(usdt(1), native(2)) == (usdt(1), native(2))

    def test_with_amount(self):
        assert with_amount(usdt(1), 9) == usdt(9)


class TestLocations:
    def test_para(self):
        assert para(1000) == Location.new(1, Parachain(id=1000))

    def test_account_id32(self):
        assert account_location(ALICE) == Location.new(0, AccountId32(id=ALICE))

    def test_account_key20(self):
        assert account_location(EVM_ACCOUNT) == Location.new(0, AccountKey20(key=EVM_ACCOUNT))

    def test_unsupported_width(self):
        with pytest.raises(UnsupportedError):
            account_location(bytes(16))
