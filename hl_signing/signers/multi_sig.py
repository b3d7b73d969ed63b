"""
Multi-Sig Envelope

A multi-sig user's action is authorized by several signers, each producing
one signature over the same digest. This module produces a single
participant's contribution; collecting signatures is the caller's job.

- L1 inner action: hash and sign ``[multiSigUser, outerSigner, action]``
  exactly like a plain L1 action.
- User-signed inner action: the action is enriched with
  ``payloadMultiSigUser``/``outerSigner`` and signed under its own schema
  extended with those two address fields.
- Outer ``multiSig`` action (sent by the outer signer): hash the action
  without its ``type`` and sign ``{multiSigActionHash, nonce}`` as
  ``HyperliquidTransaction:SendMultiSig``.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

import structlog

from hl_signing.signers.action_hash import action_hash
from hl_signing.signers.encoder import normalize_address
from hl_signing.signers.exceptions import EncodingError
from hl_signing.signers.l1_signer import sign_l1_action
from hl_signing.signers.schemas import (
    MULTI_SIG_PARTICIPANT_FIELDS,
    SEND_MULTI_SIG,
    TypedDataSchema,
)
from hl_signing.signers.typed_data import PrivateKey, Signature
from hl_signing.signers.user_signer import (
    SchemaLike,
    resolve_schema,
    sign_user_signed_action,
)

logger = structlog.get_logger(__name__)


def _require_mapping(action: Any) -> None:
    if not isinstance(action, Mapping):
        raise EncodingError(f"Multi-sig action must be a mapping, got {type(action).__name__}")


def multi_sig_l1_envelope(
    action: Mapping[str, Any],
    payload_multi_sig_user: str,
    outer_signer: str,
) -> list[Any]:
    """The ``[multiSigUser, outerSigner, action]`` list hashed for L1 actions."""
    _require_mapping(action)
    return [
        normalize_address(payload_multi_sig_user),
        normalize_address(outer_signer),
        action,
    ]


def multi_sig_action_hash(
    action: Mapping[str, Any],
    nonce: int,
    vault_address: str | None = None,
    expires_after: int | None = None,
) -> str:
    """
    Hex digest of an outer ``multiSig`` action with ``type`` stripped.

    Raises:
        EncodingError: If the action has no ``type`` or cannot be encoded.
    """
    _require_mapping(action)
    if "type" not in action:
        raise EncodingError("Multi-sig action must carry a 'type' discriminator")
    action_without_tag = {k: v for k, v in action.items() if k != "type"}
    digest = action_hash(action_without_tag, nonce, vault_address, expires_after)
    return "0x" + digest.hex()


def sign_multi_sig_l1_action_payload(
    private_key: PrivateKey,
    action: Mapping[str, Any],
    is_mainnet: bool,
    vault_address: str | None,
    nonce: int,
    expires_after: int | None,
    payload_multi_sig_user: str,
    outer_signer: str,
) -> Signature:
    """
    Sign an L1 action on behalf of a multi-sig user.

    Args:
        private_key: Key of one authorized signer of the multi-sig user.
        action: The inner L1 action.
        is_mainnet: Selects the phantom agent source.
        vault_address: Vault acted for, or ``None``.
        nonce: Millisecond nonce shared by all signers.
        expires_after: Optional absolute expiry in milliseconds.
        payload_multi_sig_user: Address of the multi-sig account.
        outer_signer: Address that will submit the outer ``multiSig`` action.
    """
    envelope = multi_sig_l1_envelope(action, payload_multi_sig_user, outer_signer)
    logger.debug(
        "Signing multi-sig L1 payload",
        action_type=action.get("type"),
        multi_sig_user=envelope[0],
        outer_signer=envelope[1],
        nonce=nonce,
    )
    return sign_l1_action(private_key, envelope, vault_address, nonce, expires_after, is_mainnet)


def multi_sig_user_signed_envelope(
    action: Mapping[str, Any],
    schema: SchemaLike,
    payload_multi_sig_user: str,
    outer_signer: str,
    primary_type: str | None = None,
) -> tuple[dict[str, Any], TypedDataSchema]:
    """Enrich a user-signed action and its schema with the multi-sig participants."""
    _require_mapping(action)
    envelope = copy.deepcopy(dict(action))
    envelope["payloadMultiSigUser"] = normalize_address(payload_multi_sig_user)
    envelope["outerSigner"] = normalize_address(outer_signer)
    enriched = resolve_schema(schema, primary_type).extended(*MULTI_SIG_PARTICIPANT_FIELDS)
    return envelope, enriched


def sign_multi_sig_user_signed_action_payload(
    private_key: PrivateKey,
    action: Mapping[str, Any],
    is_mainnet: bool,
    schema: SchemaLike,
    payload_multi_sig_user: str,
    outer_signer: str,
    primary_type: str | None = None,
) -> Signature:
    """Sign a user-signed action on behalf of a multi-sig user."""
    envelope, enriched = multi_sig_user_signed_envelope(
        action, schema, payload_multi_sig_user, outer_signer, primary_type
    )
    return sign_user_signed_action(private_key, envelope, enriched, is_mainnet)


def sign_multi_sig_action(
    private_key: PrivateKey,
    action: Mapping[str, Any],
    is_mainnet: bool,
    vault_address: str | None,
    nonce: int,
    expires_after: int | None = None,
) -> Signature:
    """
    Sign the outer ``multiSig`` action as the outer signer.

    Raises:
        EncodingError: If the action cannot be hashed.
    """
    envelope = {
        "multiSigActionHash": multi_sig_action_hash(action, nonce, vault_address, expires_after),
        "nonce": nonce,
    }
    logger.debug("Signing multi-sig envelope", nonce=nonce, is_mainnet=is_mainnet)
    return sign_user_signed_action(private_key, envelope, SEND_MULTI_SIG, is_mainnet)
