"""Cross-chain message program construction.

Builds typed instruction programs (Program) that move assets between
chains under reserve-transfer rules.

The construction pipeline:
  1. Route + FinalAction → compose() → CompositionResult
  2. compose() drives MessageBuilder inside-out, terminal chain first
  3. Program.to_json() → JSON document for an executor

Assets and locations are always relative to the chain that reads them;
reanchored() converts between chains' frames.
"""

from .accounts import hashed_account
from .builders import MessageBuilder
from .composer import (
    CompositionResult,
    CustomAction,
    DepositAction,
    ForwardAction,
    ReserveTransferred,
    Route,
    SwapAction,
    compose,
    execute_on,
    fund_direct,
    fund_indirect,
)
from .errors import (
    BuilderContractError,
    ProgramBuildError,
    ReanchorError,
    UnsupportedError,
)
from .ir import Asset, Location, Program
from .reanchor import reanchored
from .validator import validate_program

__all__ = [
    "Asset",
    "BuilderContractError",
    "CompositionResult",
    "CustomAction",
    "DepositAction",
    "ForwardAction",
    "Location",
    "MessageBuilder",
    "Program",
    "ProgramBuildError",
    "ReanchorError",
    "ReserveTransferred",
    "Route",
    "SwapAction",
    "UnsupportedError",
    "compose",
    "execute_on",
    "fund_direct",
    "fund_indirect",
    "hashed_account",
    "reanchored",
    "validate_program",
]
