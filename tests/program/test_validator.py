"""Tests for ProgramValidator."""

import pytest

from tests.conftest import ALICE, native
from xcm_composer.program.composer import fund_direct, fund_indirect, swap_on_destination
from xcm_composer.program.errors import ProgramValidationError
from xcm_composer.program.ir import (
    AllAssets,
    BuyExecution,
    Definite,
    DepositAsset,
    DepositReserveAsset,
    InitiateReserveWithdraw,
    Location,
    PalletInstance,
    Program,
    TransferReserveAsset,
    Unlimited,
)
from xcm_composer.program.primitives import account_location, para
from xcm_composer.program.registries.chains import ASSET_HUB, HYDRATION, POP
from xcm_composer.program.validator import (
    MAX_NESTING_DEPTH,
    ProgramValidator,
    ensure_valid,
    validate_program,
)


def deposit(account: bytes = ALICE) -> DepositAsset:
    return DepositAsset(assets=AllAssets(), beneficiary=account_location(account))


class TestValidPrograms:
    def test_composed_programs_are_valid(self):
        assert validate_program(fund_direct(ALICE, POP, ASSET_HUB, 1000).program).is_valid
        indirect = fund_indirect(ALICE, POP, ASSET_HUB, HYDRATION, 1000)
        assert validate_program(indirect.program).is_valid

    def test_jit_fees_fund_reserve_transfer(self):
        result = swap_on_destination(POP, HYDRATION, ALICE, native(100), native(1), False)
        assert validate_program(result.program).is_valid


class TestInvalidPrograms:
    def test_empty(self):
        result = validate_program(Program())
        assert not result.is_valid
        assert result.errors[0].message == "Program is empty"

    def test_zero_fee(self):
        """A principal too small to split leaves a zero execution fee."""
        result = validate_program(fund_direct(ALICE, POP, ASSET_HUB, 1).program)
        assert not result.is_valid
        assert result.errors[0].path == "program[1].xcm[0].fees"

    def test_reserve_withdraw_without_withdraw(self):
        program = Program.of(
            InitiateReserveWithdraw(
                assets=Definite(assets=(native(10),)),
                reserve=para(ASSET_HUB),
                xcm=Program.of(deposit()),
            )
        )
        result = validate_program(program)
        assert [e.path for e in result.errors] == ["program[0]"]

    def test_reserve_withdraw_of_all_assets_needs_no_withdraw(self):
        program = Program.of(
            InitiateReserveWithdraw(
                assets=AllAssets(), reserve=para(ASSET_HUB), xcm=Program.of(deposit())
            )
        )
        assert validate_program(program).is_valid

    def test_transfer_reserve_without_funding(self):
        program = Program.of(
            TransferReserveAsset(
                assets=(native(10),), dest=para(HYDRATION), xcm=Program.of(deposit())
            )
        )
        result = validate_program(program)
        assert "SetFeesMode" in result.summary()

    def test_empty_nested_program(self):
        program = Program.of(
            DepositReserveAsset(assets=AllAssets(), dest=para(HYDRATION), xcm=Program())
        )
        result = validate_program(program)
        assert result.errors[0].path == "program[0].xcm"

    def test_remote_beneficiary(self):
        program = Program.of(DepositAsset(assets=AllAssets(), beneficiary=para(ASSET_HUB)))
        result = validate_program(program)
        assert "local account" in result.errors[0].message

    def test_beneficiary_not_an_account(self):
        program = Program.of(
            DepositAsset(
                assets=AllAssets(), beneficiary=Location.new(0, PalletInstance(index=50))
            )
        )
        result = validate_program(program)
        assert "account junction" in result.errors[0].message

    def test_too_deep(self):
        inner = Program.of(deposit())
        for _ in range(MAX_NESTING_DEPTH):
            inner = Program.of(
                BuyExecution(fees=native(1), weight_limit=Unlimited()),
                DepositReserveAsset(assets=AllAssets(), dest=para(HYDRATION), xcm=inner),
            )
        result = ProgramValidator(inner).validate()
        assert not result.is_valid
        assert any("Nesting depth" in e.message for e in result.errors)


class TestEnsureValid:
    def test_returns_valid_program(self):
        program = fund_direct(ALICE, POP, ASSET_HUB, 1000).program
        assert ensure_valid(program) is program

    def test_raises_with_summary(self):
        with pytest.raises(ProgramValidationError, match="Program is empty"):
            ensure_valid(Program())
