"""ProgramOutliner visitor: human-readable, indented view of a program.

Used in logs, API responses and the CLI. Each nested program is indented
under the instruction that carries it:

    WithdrawAsset(1000 of (1, Here))
    InitiateReserveWithdraw(assets=1000 of (1, Here), reserve=(1, Parachain(1000)))
      BuyExecution(fees=500 of (1, Here), weight_limit=Unlimited)
      DepositAsset(assets=All, beneficiary=(0, AccountId32(0x...)))
"""

from __future__ import annotations

from xcm_composer.program.ir import (
    AllAssets,
    AllCounted,
    BuyExecution,
    Definite,
    DepositAsset,
    DepositReserveAsset,
    ExchangeAsset,
    InitiateReserveWithdraw,
    Instruction,
    Limited,
    Program,
    SetFeesMode,
    Transact,
    TransferReserveAsset,
    WithdrawAsset,
)
from xcm_composer.program.visitors.base import ProgramVisitor

INDENT = "  "


def _assets(assets) -> str:
    return ", ".join(str(a) for a in assets)


def _filter(asset_filter) -> str:
    match asset_filter:
        case Definite(assets=assets):
            return _assets(assets)
        case AllAssets():
            return "All"
        case AllCounted(count=count):
            return f"AllCounted({count})"
    return str(asset_filter)


def describe(instruction: Instruction) -> str:
    """One-line description of a single instruction (nested programs omitted)."""
    match instruction:
        case WithdrawAsset():
            return f"WithdrawAsset({_assets(instruction.assets)})"
        case BuyExecution():
            limit = instruction.weight_limit
            if isinstance(limit, Limited):
                limit_text = f"Limited({limit.ref_time}, {limit.proof_size})"
            else:
                limit_text = "Unlimited"
            return f"BuyExecution(fees={instruction.fees}, weight_limit={limit_text})"
        case InitiateReserveWithdraw():
            return (
                f"InitiateReserveWithdraw(assets={_filter(instruction.assets)}, "
                f"reserve={instruction.reserve})"
            )
        case DepositReserveAsset():
            return f"DepositReserveAsset(assets={_filter(instruction.assets)}, dest={instruction.dest})"
        case DepositAsset():
            return (
                f"DepositAsset(assets={_filter(instruction.assets)}, "
                f"beneficiary={instruction.beneficiary})"
            )
        case ExchangeAsset():
            return (
                f"ExchangeAsset(give={_filter(instruction.give)}, "
                f"want={_assets(instruction.want)}, maximal={instruction.maximal})"
            )
        case TransferReserveAsset():
            return f"TransferReserveAsset(assets={_assets(instruction.assets)}, dest={instruction.dest})"
        case SetFeesMode():
            return f"SetFeesMode(jit_withdraw={instruction.jit_withdraw})"
        case Transact():
            weight = instruction.require_weight_at_most
            return (
                f"Transact(origin_kind={instruction.origin_kind.value}, "
                f"weight=({weight.ref_time}, {weight.proof_size}), call={len(instruction.call)} bytes)"
            )
    return type(instruction).__name__


class ProgramOutliner(ProgramVisitor[list[str]]):
    """Render a program as indented lines, one per instruction."""

    def visit_default(self, instruction: Instruction) -> list[str]:
        return [describe(instruction)]

    def combine_nested(self, original: Instruction, inner: list[str]) -> list[str]:
        return [describe(original)] + [INDENT + line for line in inner]

    def combine_program(self, program: Program, children: list[list[str]]) -> list[str]:
        return [line for lines in children for line in lines]


def outline(program: Program) -> str:
    return "\n".join(ProgramOutliner().visit_program(program))
