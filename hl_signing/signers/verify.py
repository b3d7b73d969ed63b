"""
Signature Verifier

Recovers the signer of an L1 or user-signed action and compares it with the
expected address. A mismatch is returned as a :class:`VerificationMismatch`
value, not raised, so that it can be used for defensive checks before
submission without disturbing the normal signing flow.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from hl_signing.signers.encoder import Action, normalize_address
from hl_signing.signers.l1_signer import recover_agent_or_user_from_l1_action
from hl_signing.signers.typed_data import Signature
from hl_signing.signers.user_signer import SchemaLike, recover_user_from_user_signed_action

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class VerificationMismatch:
    """
    Outcome of a failed verification.

    Attributes:
        expected: The address the caller expected to have signed.
        recovered: The address the signature actually recovers to.
    """

    expected: str
    recovered: str

    def __str__(self) -> str:
        return f"signature recovers to {self.recovered}, expected {self.expected}"


def _compare(expected: str, recovered: str, kind: str) -> VerificationMismatch | None:
    expected = normalize_address(expected)
    if recovered == expected:
        return None
    mismatch = VerificationMismatch(expected=expected, recovered=recovered)
    logger.warning("Signature verification mismatch", kind=kind, expected=expected, recovered=recovered)
    return mismatch


def verify_l1_action(
    expected_address: str,
    action: Action,
    vault_address: str | None,
    nonce: int,
    expires_after: int | None,
    is_mainnet: bool,
    signature: Signature | Mapping[str, Any],
) -> VerificationMismatch | None:
    """
    Check that ``signature`` over an L1 action comes from ``expected_address``.

    Returns:
        ``None`` when the recovered signer matches, else the mismatch.
    """
    recovered = recover_agent_or_user_from_l1_action(
        action, vault_address, nonce, expires_after, is_mainnet, signature
    )
    return _compare(expected_address, recovered, "l1")


def verify_user_signed_action(
    expected_address: str,
    action: Mapping[str, Any],
    signature: Signature | Mapping[str, Any],
    schema: SchemaLike,
    is_mainnet: bool,
    primary_type: str | None = None,
) -> VerificationMismatch | None:
    """
    Check that ``signature`` over a user-signed action comes from ``expected_address``.

    Returns:
        ``None`` when the recovered signer matches, else the mismatch.
    """
    recovered = recover_user_from_user_signed_action(
        action, signature, schema, is_mainnet, primary_type
    )
    return _compare(expected_address, recovered, "user_signed")
