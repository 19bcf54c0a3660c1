"""Program builders."""

from .program_builder import (
    DEFAULT_FEE_DIVISOR,
    EXCHANGE_FEE_DIVISOR,
    AccountTarget,
    ChainTarget,
    DepositTarget,
    MessageBuilder,
)

__all__ = [
    "DEFAULT_FEE_DIVISOR",
    "EXCHANGE_FEE_DIVISOR",
    "AccountTarget",
    "ChainTarget",
    "DepositTarget",
    "MessageBuilder",
]
