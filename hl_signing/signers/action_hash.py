"""
Action Hasher

Derives the 32-byte digest that L1 (protocol-level) actions are signed over:

    keccak256(
        msgpack(action)
        || nonce as u64 big-endian
        || 0x00                                  (no vault)
         | 0x01 || 20 address bytes               (vault)
        || <nothing>                             (no expiry)
         | 0x00 || expiresAfter as u64 big-endian (expiry)
    )

The expiry marker is ``0x00`` when present and omitted when absent. That is
what the venue computes, so it is reproduced as-is.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

from eth_utils import keccak

from hl_signing.signers.encoder import (
    Action,
    address_to_bytes,
    normalize_address,
    pack_action,
)
from hl_signing.signers.exceptions import EncodingError

U64_MAX = 2**64 - 1

VAULT_ABSENT = b"\x00"
VAULT_PRESENT = b"\x01"
EXPIRY_PRESENT = b"\x00"


def get_timestamp_ms() -> int:
    """Current Unix time in milliseconds, the venue's nonce convention."""
    return int(time.time() * 1000)


def _u64(value: int, name: str) -> bytes:
    if isinstance(value, bool) or not isinstance(value, int):
        raise EncodingError(f"{name} must be an integer, got {type(value).__name__}")
    if not 0 <= value <= U64_MAX:
        raise EncodingError(f"{name} must fit in an unsigned 64-bit integer, got {value}")
    return value.to_bytes(8, "big")


@dataclass(frozen=True)
class SigningContext:
    """
    Per-request inputs that are hashed alongside the action.

    Attributes:
        nonce: Millisecond timestamp used as the request nonce.
        vault_address: Optional vault/sub-account the action is made for.
            Stored lower-cased.
        expires_after: Optional absolute expiry in milliseconds.
        is_mainnet: Selects the phantom agent source and the
            ``hyperliquidChain`` value.
    """

    nonce: int
    vault_address: str | None = None
    expires_after: int | None = None
    is_mainnet: bool = True

    def __post_init__(self) -> None:
        _u64(self.nonce, "nonce")
        if self.expires_after is not None:
            _u64(self.expires_after, "expires_after")
        if self.vault_address is not None:
            object.__setattr__(self, "vault_address", normalize_address(self.vault_address))


def action_hash(
    action: Action,
    nonce: int,
    vault_address: str | None = None,
    expires_after: int | None = None,
) -> bytes:
    """
    Compute the L1 action digest.

    Args:
        action: The canonical action structure (or multi-sig envelope tuple).
        nonce: Millisecond nonce.
        vault_address: Optional ``0x`` address of the vault acted for.
        expires_after: Optional absolute expiry in milliseconds.

    Returns:
        The 32-byte Keccak-256 digest.

    Raises:
        EncodingError: If the action cannot be packed, the vault address is
            malformed, or nonce/expiry do not fit in a u64.
    """
    data = pack_action(action)
    data += _u64(nonce, "nonce")
    if vault_address is None:
        data += VAULT_ABSENT
    else:
        data += VAULT_PRESENT
        data += address_to_bytes(vault_address)
    if expires_after is not None:
        data += EXPIRY_PRESENT
        data += _u64(expires_after, "expires_after")
    return keccak(data)


def context_action_hash(
    action: Action,
    context: SigningContext,
) -> bytes:
    """Compute :func:`action_hash` from a :class:`SigningContext`."""
    return action_hash(action, context.nonce, context.vault_address, context.expires_after)
