"""Base visitor class for typed Program tree traversal."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from xcm_composer.program.ir import (
        DepositReserveAsset,
        InitiateReserveWithdraw,
        Instruction,
        Program,
        TransferReserveAsset,
    )

T = TypeVar("T")


class ProgramVisitor(ABC, Generic[T]):
    """Abstract visitor for Program trees.

    Subclasses implement visit methods for specific instruction types.
    The base class handles traversal into the nested programs carried by
    InitiateReserveWithdraw, DepositReserveAsset and TransferReserveAsset.

    Type parameter T is the return type of visit methods.

    Usage:
        class Counter(ProgramVisitor[int]):
            def visit_default(self, instruction):
                return 1

            def combine_nested(self, original, inner):
                return 1 + inner

            def combine_program(self, program, children):
                return sum(children)
    """

    def visit_program(self, program: Program) -> T:
        """Visit every instruction of ``program`` and combine the results."""
        children = [self.visit(instruction) for instruction in program]
        return self.combine_program(program, children)

    def visit(self, instruction: Instruction) -> T:
        """Dispatch to the appropriate visit method.

        Looks for visit_{ClassName} method, falls back to visit_default.
        """
        method_name = f"visit_{type(instruction).__name__}"
        visitor = getattr(self, method_name, self.visit_default)
        return visitor(instruction)

    @abstractmethod
    def visit_default(self, instruction: Instruction) -> T:
        """Default handler for instructions without a nested program."""
        ...

    # Nesting instructions - traverse the carried program, then combine

    def visit_InitiateReserveWithdraw(self, instruction: InitiateReserveWithdraw) -> T:
        return self.combine_nested(instruction, self.visit_program(instruction.xcm))

    def visit_DepositReserveAsset(self, instruction: DepositReserveAsset) -> T:
        return self.combine_nested(instruction, self.visit_program(instruction.xcm))

    def visit_TransferReserveAsset(self, instruction: TransferReserveAsset) -> T:
        return self.combine_nested(instruction, self.visit_program(instruction.xcm))

    # Combine methods - subclasses override to customize combination logic

    @abstractmethod
    def combine_nested(self, original: Instruction, inner: T) -> T:
        """Combine the result of a nested program with its carrying instruction."""
        ...

    @abstractmethod
    def combine_program(self, program: Program, children: list[T]) -> T:
        """Combine results from the instructions of one program."""
        ...
