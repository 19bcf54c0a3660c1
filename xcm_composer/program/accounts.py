"""Sibling-chain account derivation.

A chain that receives a message from a sibling cannot credit the sender's raw
account: the same 32 bytes may belong to someone else there. Instead the
receiving chain derives a dedicated account by hashing a description of the
remote location:

    b"SiblingChain" ++ compact(chain_id) ++ compact(len(tail)) ++ tail

    tail = b"AccountId32"  ++ account   (32-byte accounts)
    tail = b"AccountKey20" ++ account   (20-byte accounts)

The preimage is hashed with blake2b-256. The digest is copied into an
account of the same width as the input, so 20-byte accounts keep the first
20 bytes of the digest.

Senders use ``hashed_account`` off-chain to predict where funds will land
before they send anything.
"""

from __future__ import annotations

import hashlib

from xcm_composer.program.errors import UnsupportedError
from xcm_composer.program.ir import U32_MAX

SIBLING_CHAIN_TAG = b"SiblingChain"
ACCOUNT_ID32_TAG = b"AccountId32"
ACCOUNT_KEY20_TAG = b"AccountKey20"


def encode_compact(value: int) -> bytes:
    """Encode a non-negative integer with the compact variable-length scheme.

    - below 2**6: one byte, ``value << 2``
    - below 2**14: two bytes little-endian, ``(value << 2) | 0b01``
    - below 2**30: four bytes little-endian, ``(value << 2) | 0b10``
    - otherwise: a prefix byte ``((n - 4) << 2) | 0b11`` followed by the
      ``n`` little-endian bytes of the value (n >= 4)
    """
    if value < 0:
        raise ValueError(f"Compact encoding requires a non-negative integer, got {value}")
    if value < 1 << 6:
        return bytes([value << 2])
    if value < 1 << 14:
        return ((value << 2) | 0b01).to_bytes(2, "little")
    if value < 1 << 30:
        return ((value << 2) | 0b10).to_bytes(4, "little")

    length = max(4, (value.bit_length() + 7) // 8)
    if length > 67:
        raise ValueError(f"Value too large for compact encoding: {value}")
    return bytes([((length - 4) << 2) | 0b11]) + value.to_bytes(length, "little")


def _account_tail(account: bytes) -> bytes:
    if len(account) == 32:
        tail = ACCOUNT_ID32_TAG + account
    elif len(account) == 20:
        tail = ACCOUNT_KEY20_TAG + account
    else:
        raise UnsupportedError(f"Unsupported account width: {len(account)} bytes")
    # The tail is embedded as a length-prefixed byte vector
    return encode_compact(len(tail)) + tail


def sibling_account_preimage(chain_id: int, account: bytes) -> bytes:
    """Build the exact byte string that ``hashed_account`` hashes."""
    if not 0 <= chain_id <= U32_MAX:
        raise ValueError(f"Chain id out of range: {chain_id}")
    return SIBLING_CHAIN_TAG + encode_compact(chain_id) + _account_tail(account)


def hashed_account(chain_id: int, account: bytes) -> bytes:
    """Derive the account that represents ``account`` on ``chain_id`` to its siblings.

    Args:
        chain_id: Chain on which ``account`` lives
        account: Raw 32-byte or 20-byte account

    Returns:
        Derived account of the same width as ``account``

    Raises:
        UnsupportedError: If the account is neither 32 nor 20 bytes
    """
    digest = hashlib.blake2b(sibling_account_preimage(chain_id, account), digest_size=32).digest()
    return digest[: len(account)]
