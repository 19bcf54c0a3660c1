"""NestingDepth visitor: how many chains a program reaches."""

from __future__ import annotations

from xcm_composer.program.ir import Instruction, Program
from xcm_composer.program.visitors.base import ProgramVisitor


class NestingDepth(ProgramVisitor[int]):
    """Compute the nesting depth of a program.

    A flat program has depth 1; every nested program adds one level.
    An empty program has depth 0.
    """

    def visit_default(self, instruction: Instruction) -> int:
        return 0

    def combine_nested(self, original: Instruction, inner: int) -> int:
        return inner

    def combine_program(self, program: Program, children: list[int]) -> int:
        if not children:
            return 0
        return 1 + max(children)


def nesting_depth(program: Program) -> int:
    return NestingDepth().visit_program(program)
