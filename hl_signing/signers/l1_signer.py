"""
L1 Action Signer

Signs protocol-level actions (orders, cancels, leverage, sub-accounts, ...)
through a "phantom agent":

1. ``digest = action_hash(action, nonce, vault_address, expires_after)``
2. ``agent = {"source": "a" | "b", "connectionId": digest}``
3. EIP-712 sign ``Agent`` under the fixed ``Exchange`` domain (chain 1337)

The domain is identical on mainnet and testnet. Only the agent's ``source``
changes ("a" mainnet, "b" testnet).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from hl_signing.signers.action_hash import action_hash
from hl_signing.signers.encoder import Action
from hl_signing.signers.exceptions import EncodingError
from hl_signing.signers.typed_data import (
    EIP712_DOMAIN_TYPES,
    ZERO_ADDRESS,
    PrivateKey,
    Signature,
    recover_typed_data_signer,
    sign_typed_data,
)

logger = structlog.get_logger(__name__)

L1_DOMAIN = {
    "chainId": 1337,
    "name": "Exchange",
    "verifyingContract": ZERO_ADDRESS,
    "version": "1",
}

AGENT_TYPES = [
    {"name": "source", "type": "string"},
    {"name": "connectionId", "type": "bytes32"},
]

MAINNET_SOURCE = "a"
TESTNET_SOURCE = "b"


@dataclass(frozen=True)
class PhantomAgent:
    """The ``Agent`` struct an L1 action digest is wrapped in."""

    source: str
    connection_id: bytes

    def to_message(self) -> dict[str, Any]:
        return {"source": self.source, "connectionId": self.connection_id}


def construct_phantom_agent(digest: bytes, is_mainnet: bool) -> PhantomAgent:
    """
    Wrap an action digest for EIP-712 signing.

    Raises:
        EncodingError: If ``digest`` is not 32 bytes.
    """
    if not isinstance(digest, (bytes, bytearray)) or len(digest) != 32:
        raise EncodingError("Phantom agent connectionId must be a 32-byte digest")
    return PhantomAgent(
        source=MAINNET_SOURCE if is_mainnet else TESTNET_SOURCE,
        connection_id=bytes(digest),
    )


def l1_payload(phantom_agent: PhantomAgent) -> dict[str, Any]:
    """Full EIP-712 typed data for a phantom agent."""
    return {
        "domain": dict(L1_DOMAIN),
        "types": {
            "Agent": AGENT_TYPES,
            "EIP712Domain": EIP712_DOMAIN_TYPES,
        },
        "primaryType": "Agent",
        "message": phantom_agent.to_message(),
    }


def _action_type(action: Action) -> str:
    if isinstance(action, Mapping):
        return str(action.get("type", ""))
    return "multiSigPayload"


def sign_l1_action(
    private_key: PrivateKey,
    action: Action,
    vault_address: str | None,
    nonce: int,
    expires_after: int | None,
    is_mainnet: bool,
) -> Signature:
    """
    Sign an L1 action.

    Args:
        private_key: Key of the user or of an approved agent wallet.
        action: Fully resolved action (or multi-sig envelope tuple).
        vault_address: Vault/sub-account acted for, or ``None``.
        nonce: Millisecond nonce.
        expires_after: Optional absolute expiry in milliseconds.
        is_mainnet: Selects the phantom agent source.

    Returns:
        The signature over the phantom agent.

    Raises:
        EncodingError: If the action or context cannot be encoded.
        InvalidKeyError: If the key is invalid.
        SigningError: If signing fails.

    Example:
        >>> sig = sign_l1_action(key, {"type": "scheduleCancel"}, None, nonce, None, True)
        >>> sig.to_dict()["v"] in (27, 28)
        True
    """
    digest = action_hash(action, nonce, vault_address, expires_after)
    agent = construct_phantom_agent(digest, is_mainnet)
    logger.debug(
        "Signing L1 action",
        action_type=_action_type(action),
        nonce=nonce,
        has_vault=vault_address is not None,
        expires_after=expires_after,
        is_mainnet=is_mainnet,
    )
    return sign_typed_data(private_key, l1_payload(agent))


def recover_agent_or_user_from_l1_action(
    action: Action,
    vault_address: str | None,
    nonce: int,
    expires_after: int | None,
    is_mainnet: bool,
    signature: Signature | Mapping[str, Any],
) -> str:
    """
    Recover the lowercase address that signed an L1 action.

    The result is the agent wallet's address when an agent signed, and the
    user's own address otherwise.
    """
    digest = action_hash(action, nonce, vault_address, expires_after)
    agent = construct_phantom_agent(digest, is_mainnet)
    return recover_typed_data_signer(l1_payload(agent), signature)
