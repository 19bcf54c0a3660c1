"""Visitor implementations for Program tree traversal."""

from .base import ProgramVisitor
from .depth import NestingDepth, nesting_depth
from .outline import ProgramOutliner, describe, outline

__all__ = [
    "NestingDepth",
    "ProgramOutliner",
    "ProgramVisitor",
    "describe",
    "nesting_depth",
    "outline",
]
