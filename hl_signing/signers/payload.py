"""
Exchange request envelopes.

Builds the JSON body the transport layer posts to ``/exchange``:

    {"action": ..., "nonce": ..., "signature": {"r", "s", "v"},
     "vaultAddress": ..., "expiresAfter": ...}

User-signed actions carry their nonce inside the action and are never sent
for a vault, so their envelope omits ``vaultAddress`` and ``expiresAfter``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from hl_signing.signers.action_hash import SigningContext
from hl_signing.signers.encoder import Action
from hl_signing.signers.exceptions import EncodingError
from hl_signing.signers.l1_signer import sign_l1_action
from hl_signing.signers.typed_data import PrivateKey, Signature, address_of, load_account
from hl_signing.signers.user_signer import (
    SchemaLike,
    prepare_user_signed_action,
    resolve_schema,
    sign_user_signed_action,
)

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ExchangeRequest:
    """A signed action ready to be serialized as the request body."""

    action: Action
    nonce: int
    signature: Signature
    vault_address: str | None = None
    expires_after: int | None = None
    user_signed: bool = False

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {
            "action": self.action,
            "nonce": self.nonce,
            "signature": self.signature.to_dict(),
        }
        if not self.user_signed:
            body["vaultAddress"] = self.vault_address
            body["expiresAfter"] = self.expires_after
        return body


def build_l1_request(
    private_key: PrivateKey,
    action: Action,
    context: SigningContext,
) -> ExchangeRequest:
    """
    Sign an L1 action and wrap it for the transport layer.

    A vault address equal to the signer's own address is dropped, since the
    venue treats that as acting for oneself.

    Raises:
        EncodingError: If the action or context cannot be encoded.
        SigningError: If signing fails.
    """
    account = load_account(private_key)
    vault_address = context.vault_address
    if vault_address is not None and vault_address == address_of(account):
        vault_address = None

    signature = sign_l1_action(
        account,
        action,
        vault_address,
        context.nonce,
        context.expires_after,
        context.is_mainnet,
    )
    return ExchangeRequest(
        action=action,
        nonce=context.nonce,
        signature=signature,
        vault_address=vault_address,
        expires_after=context.expires_after,
    )


def _user_signed_nonce(action: Mapping[str, Any]) -> int:
    for field in ("nonce", "time"):
        value = action.get(field)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    raise EncodingError("User-signed action must carry an integer 'nonce' or 'time' field")


def build_user_signed_request(
    private_key: PrivateKey,
    action: Mapping[str, Any],
    schema: SchemaLike,
    is_mainnet: bool,
    primary_type: str | None = None,
    signature_chain_id: str | None = None,
) -> ExchangeRequest:
    """
    Sign a user-signed action and wrap it for the transport layer.

    The posted action is the prepared copy carrying ``signatureChainId`` and
    ``hyperliquidChain``; the request nonce is the action's ``nonce`` (or
    ``time`` for the older transfer kinds).
    """
    resolved = resolve_schema(schema, primary_type)
    prepared = prepare_user_signed_action(action, resolved, is_mainnet, signature_chain_id)
    signature = sign_user_signed_action(private_key, prepared, resolved, is_mainnet)
    nonce = _user_signed_nonce(prepared)
    logger.debug("Built user-signed request", primary_type=resolved.primary_type, nonce=nonce)
    return ExchangeRequest(
        action=prepared,
        nonce=nonce,
        signature=signature,
        user_signed=True,
    )
