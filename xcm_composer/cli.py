"""
CLI for building transfer programs and deriving sibling accounts.

Prints program JSON (or an indented outline with --outline) so programs can
be inspected or piped to other tools before anything is sent.
"""

import argparse
import logging
import sys

from xcm_composer.program.accounts import hashed_account
from xcm_composer.program.composer import CompositionResult, fund_direct, fund_indirect
from xcm_composer.program.errors import ProgramBuildError
from xcm_composer.program.registries.chains import chain_id
from xcm_composer.program.validator import ensure_valid
from xcm_composer.program.visitors import outline

logging.basicConfig(level=logging.WARNING, format="%(message)s")
logger = logging.getLogger(__name__)


def parse_chain(value: str) -> int:
    """Chain id from a number or a registered name (e.g. "asset_hub")."""
    if value.isdigit():
        return int(value)
    try:
        return chain_id(value)
    except ProgramBuildError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def parse_account(value: str) -> bytes:
    text = value[2:] if value.startswith(("0x", "0X")) else value
    try:
        account = bytes.fromhex(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Account is not valid hex: {value}") from None
    if len(account) not in (20, 32):
        raise argparse.ArgumentTypeError(f"Account must be 20 or 32 bytes, got {len(account)}")
    return account


def _print_result(result: CompositionResult, as_outline: bool) -> None:
    ensure_valid(result.program)
    if as_outline:
        print(f"# {result.route}")
        print(outline(result.program))
    else:
        print(result.program.to_json())


def cmd_derive_account(args):
    """Print the account siblings of a chain credit for an account."""
    derived = hashed_account(args.chain, args.account)
    print("0x" + derived.hex())


def cmd_fund_direct(args):
    """Build a one-hop funding program."""
    result = fund_direct(args.account, args.from_chain, args.to_chain, args.amount, args.hashed)
    _print_result(result, args.outline)


def cmd_fund_indirect(args):
    """Build a two-hop funding program through a reserve."""
    result = fund_indirect(
        args.account, args.from_chain, args.hop, args.to_chain, args.amount, args.hashed
    )
    _print_result(result, args.outline)


def _add_funding_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--account", required=True, type=parse_account, help="Beneficiary (hex)")
    parser.add_argument("--from-chain", required=True, type=parse_chain, help="Origin chain")
    parser.add_argument("--to-chain", required=True, type=parse_chain, help="Destination chain")
    parser.add_argument("--amount", required=True, type=int, help="Principal in plancks")
    parser.add_argument(
        "--hashed", action="store_true", help="Deposit to the derived sibling account"
    )
    parser.add_argument("--outline", action="store_true", help="Print an outline, not JSON")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description="Build cross-chain transfer programs")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Derive-account command
    derive_parser = subparsers.add_parser("derive-account", help="Derive a sibling account")
    derive_parser.add_argument("--chain", required=True, type=parse_chain, help="Account's chain")
    derive_parser.add_argument("--account", required=True, type=parse_account, help="Account (hex)")

    # Fund-direct command
    direct_parser = subparsers.add_parser("fund-direct", help="Fund an account one hop away")
    _add_funding_arguments(direct_parser)

    # Fund-indirect command
    indirect_parser = subparsers.add_parser(
        "fund-indirect", help="Fund an account through a reserve chain"
    )
    _add_funding_arguments(indirect_parser)
    indirect_parser.add_argument("--hop", required=True, type=parse_chain, help="Reserve chain")

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "derive-account": cmd_derive_account,
        "fund-direct": cmd_fund_direct,
        "fund-indirect": cmd_fund_indirect,
    }

    try:
        commands[args.command](args)
    except (ProgramBuildError, ValueError) as e:
        logger.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
