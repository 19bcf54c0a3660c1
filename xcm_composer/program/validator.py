"""Program Validator - checks a Program is safe to hand to an executor.

Catches construction bugs that would leave funds unreachable or burned:
empty continuation programs, zero or non-fungible fees, transfers of assets
that were never withdrawn, and malformed beneficiaries.
"""

from dataclasses import dataclass, field

from .errors import ProgramValidationError
from .ir import (
    NESTING_INSTRUCTIONS,
    AccountId32,
    AccountKey20,
    BuyExecution,
    Definite,
    DepositAsset,
    InitiateReserveWithdraw,
    Instruction,
    Program,
    SetFeesMode,
    TransferReserveAsset,
    WithdrawAsset,
)
from .primitives import fungible_amount
from .visitors.depth import nesting_depth

# Deepest nesting an executor will decode
MAX_NESTING_DEPTH = 8


@dataclass
class ValidationError:
    """A single validation error."""

    path: str  # Where in the program the error occurred
    message: str  # What's wrong


@dataclass
class ValidationResult:
    """Result of validating a program."""

    errors: list[ValidationError] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, path: str, message: str) -> None:
        self.errors.append(ValidationError(path=path, message=message))

    def summary(self) -> str:
        return "; ".join(f"{e.path}: {e.message}" for e in self.errors)


class ProgramValidator:
    """Validates a Program for internal consistency."""

    def __init__(self, program: Program):
        self.program = program
        self.result = ValidationResult()

    def validate(self) -> ValidationResult:
        """Run all validations and return result."""
        if self.program.is_empty():
            self.result.add_error("program", "Program is empty")
            return self.result

        depth = nesting_depth(self.program)
        if depth > MAX_NESTING_DEPTH:
            self.result.add_error(
                "program",
                f"Nesting depth {depth} exceeds the maximum of {MAX_NESTING_DEPTH}",
            )

        self._validate_top_level()
        self._validate_program(self.program, "program")
        return self.result

    def _validate_top_level(self) -> None:
        """Definite transfers at the top level must be funded first."""
        withdrawn = False
        jit_fees = False
        for i, instruction in enumerate(self.program):
            path = f"program[{i}]"
            if isinstance(instruction, WithdrawAsset):
                withdrawn = True
            elif isinstance(instruction, SetFeesMode):
                jit_fees = jit_fees or instruction.jit_withdraw
            elif isinstance(instruction, InitiateReserveWithdraw):
                if isinstance(instruction.assets, Definite) and not withdrawn:
                    self.result.add_error(
                        path, "InitiateReserveWithdraw of definite assets without a prior WithdrawAsset"
                    )
            elif isinstance(instruction, TransferReserveAsset):
                if not (withdrawn or jit_fees):
                    self.result.add_error(
                        path, "TransferReserveAsset without a prior WithdrawAsset or SetFeesMode"
                    )

    def _validate_program(self, program: Program, path: str) -> None:
        for i, instruction in enumerate(program):
            self._validate_instruction(instruction, f"{path}[{i}]")

    def _validate_instruction(self, instruction: Instruction, path: str) -> None:
        if isinstance(instruction, BuyExecution):
            if fungible_amount(instruction.fees) == 0:
                self.result.add_error(
                    f"{path}.fees", f"Execution fee must be a non-zero fungible amount, got {instruction.fees}"
                )
        elif isinstance(instruction, DepositAsset):
            self._validate_beneficiary(instruction, path)
        elif isinstance(instruction, NESTING_INSTRUCTIONS):
            if instruction.xcm.is_empty():
                self.result.add_error(
                    f"{path}.xcm",
                    f"{type(instruction).__name__} carries an empty program; "
                    "assets would arrive with nothing to deposit them",
                )
            self._validate_program(instruction.xcm, f"{path}.xcm")

    def _validate_beneficiary(self, instruction: DepositAsset, path: str) -> None:
        beneficiary = instruction.beneficiary
        if beneficiary.parents != 0 or not beneficiary.interior:
            self.result.add_error(
                f"{path}.beneficiary",
                f"Beneficiary must be a local account, got {beneficiary}",
            )
            return
        if not isinstance(beneficiary.interior[-1], (AccountId32, AccountKey20)):
            self.result.add_error(
                f"{path}.beneficiary",
                f"Beneficiary must end in an account junction, got {beneficiary}",
            )


def validate_program(program: Program) -> ValidationResult:
    """Convenience function to validate a program."""
    return ProgramValidator(program).validate()


def ensure_valid(program: Program) -> Program:
    """Return ``program`` unchanged, or raise if it fails validation.

    Raises:
        ProgramValidationError: With every error found
    """
    result = validate_program(program)
    if not result.is_valid:
        raise ProgramValidationError(f"Invalid program: {result.summary()}")
    return program
