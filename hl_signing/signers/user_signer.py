"""
User-Signed Action Signer

Transfers, withdrawals, agent and builder-fee approvals and similar actions
are signed directly as wallet typed data instead of through a phantom agent.

Before hashing, a copy of the action gets:
- ``signatureChainId``: hex chain id of the EIP-712 domain (``0x66eee``
  unless the caller chooses another)
- ``hyperliquidChain``: ``"Mainnet"`` or ``"Testnet"``, which is also the
  first field of every schema

The domain is ``HyperliquidSignTransaction`` v1 at ``int(signatureChainId)``
with a zero verifying contract. The caller's action is never mutated.
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any, Union

import structlog

from hl_signing.signers.encoder import normalize_address
from hl_signing.signers.exceptions import EncodingError
from hl_signing.signers.schemas import (
    APPROVE_AGENT,
    APPROVE_BUILDER_FEE,
    CHAIN_FIELD,
    CONVERT_TO_MULTI_SIG_USER,
    SEND_ASSET,
    SPOT_SEND,
    TOKEN_DELEGATE,
    USD_CLASS_TRANSFER,
    USD_SEND,
    USER_DEX_ABSTRACTION,
    WITHDRAW,
    TypedDataSchema,
)
from hl_signing.signers.typed_data import (
    EIP712_DOMAIN_TYPES,
    ZERO_ADDRESS,
    PrivateKey,
    Signature,
    recover_typed_data_signer,
    sign_typed_data,
)

logger = structlog.get_logger(__name__)

DEFAULT_SIGNATURE_CHAIN_ID = "0x66eee"
USER_SIGNED_DOMAIN_NAME = "HyperliquidSignTransaction"
USER_SIGNED_DOMAIN_VERSION = "1"

MAINNET_CHAIN = "Mainnet"
TESTNET_CHAIN = "Testnet"

SchemaLike = Union[TypedDataSchema, list[dict[str, str]]]


def chain_name(is_mainnet: bool) -> str:
    return MAINNET_CHAIN if is_mainnet else TESTNET_CHAIN


def parse_chain_id(signature_chain_id: str) -> int:
    """
    Parse a hex ``signatureChainId`` such as ``"0x66eee"``.

    Raises:
        EncodingError: If the value is not a positive hex integer.
    """
    try:
        chain_id = int(signature_chain_id, 16)
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Invalid signatureChainId: {signature_chain_id!r}") from e
    if chain_id <= 0:
        raise EncodingError(f"signatureChainId must be positive, got {signature_chain_id!r}")
    return chain_id


def resolve_schema(schema: SchemaLike, primary_type: str | None = None) -> TypedDataSchema:
    """
    Accept a :class:`TypedDataSchema` or a raw ``payload_types`` list.

    A raw list needs ``primary_type``; for a schema object it overrides the
    schema's own primary type when given.
    """
    if isinstance(schema, TypedDataSchema):
        if primary_type and primary_type != schema.primary_type:
            return TypedDataSchema(primary_type, schema.fields)
        return schema
    if not primary_type:
        raise EncodingError("primary_type is required when passing raw payload types")
    return TypedDataSchema.from_payload_types(primary_type, schema)


def _coerce_field(name: str, abi_type: str, value: Any) -> Any:
    if abi_type == "address":
        return normalize_address(value)
    if abi_type == "bytes32":
        if isinstance(value, str):
            clean = value[2:] if value.startswith("0x") else value
            try:
                value = bytes.fromhex(clean)
            except ValueError as e:
                raise EncodingError(f"Field {name} is not valid hex") from e
        if not isinstance(value, (bytes, bytearray)) or len(value) != 32:
            raise EncodingError(f"Field {name} must be 32 bytes")
        return bytes(value)
    if abi_type.startswith("uint"):
        if isinstance(value, bool) or not isinstance(value, int) or value < 0:
            raise EncodingError(f"Field {name} must be a non-negative integer")
    elif abi_type == "bool":
        if not isinstance(value, bool):
            raise EncodingError(f"Field {name} must be a bool")
    elif abi_type == "string":
        if not isinstance(value, str):
            raise EncodingError(f"Field {name} must be a string")
    return value


def prepare_user_signed_action(
    action: Mapping[str, Any],
    schema: SchemaLike,
    is_mainnet: bool,
    signature_chain_id: str | None = None,
    primary_type: str | None = None,
) -> dict[str, Any]:
    """
    Return the copy of ``action`` that is actually signed and posted.

    Sets ``signatureChainId`` (explicit argument, else the action's own value,
    else ``0x66eee``) and ``hyperliquidChain``, and lower-cases every
    ``address``-typed field.

    Raises:
        EncodingError: If a schema field is missing or has the wrong type.
    """
    if not isinstance(action, Mapping):
        raise EncodingError(f"User-signed action must be a mapping, got {type(action).__name__}")
    resolved = resolve_schema(schema, primary_type).with_chain_field()
    prepared = copy.deepcopy(dict(action))

    if signature_chain_id is None:
        signature_chain_id = prepared.get("signatureChainId", DEFAULT_SIGNATURE_CHAIN_ID)
    parse_chain_id(signature_chain_id)
    prepared["signatureChainId"] = signature_chain_id
    prepared[CHAIN_FIELD] = chain_name(is_mainnet)

    for name, abi_type in resolved.fields:
        if name not in prepared:
            raise EncodingError(f"Action is missing field {name!r} required by {resolved.primary_type}")
        if abi_type == "address":
            prepared[name] = normalize_address(prepared[name])
        else:
            _coerce_field(name, abi_type, prepared[name])
    return prepared


def user_signed_payload(
    primary_type: str,
    payload_types: list[dict[str, str]],
    action: Mapping[str, Any],
) -> dict[str, Any]:
    """
    Full EIP-712 typed data for a prepared user-signed action.

    Only the fields named in ``payload_types`` enter the message. ``bytes32``
    fields may be given as hex strings.
    """
    if not isinstance(action, Mapping):
        raise EncodingError(f"User-signed action must be a mapping, got {type(action).__name__}")
    if "signatureChainId" not in action:
        raise EncodingError(
            "Action has no signatureChainId; pass it through prepare_user_signed_action first"
        )
    chain_id = parse_chain_id(action["signatureChainId"])
    message = {}
    for name, abi_type in TypedDataSchema.from_payload_types(primary_type, payload_types).fields:
        if name not in action:
            raise EncodingError(f"Action is missing field {name!r} required by {primary_type}")
        message[name] = _coerce_field(name, abi_type, action[name])

    return {
        "domain": {
            "name": USER_SIGNED_DOMAIN_NAME,
            "version": USER_SIGNED_DOMAIN_VERSION,
            "chainId": chain_id,
            "verifyingContract": ZERO_ADDRESS,
        },
        "types": {
            primary_type: payload_types,
            "EIP712Domain": EIP712_DOMAIN_TYPES,
        },
        "primaryType": primary_type,
        "message": message,
    }


def sign_user_signed_action(
    private_key: PrivateKey,
    action: Mapping[str, Any],
    schema: SchemaLike,
    is_mainnet: bool,
    primary_type: str | None = None,
    signature_chain_id: str | None = None,
) -> Signature:
    """
    Sign a wallet-level action under its typed-data schema.

    Args:
        private_key: The user's own key (agents cannot sign these).
        action: The action fields; not modified.
        schema: The kind's :class:`TypedDataSchema`, or raw payload types.
        is_mainnet: Selects the ``hyperliquidChain`` value.
        primary_type: Required with raw payload types.
        signature_chain_id: Hex chain id of the signing domain.

    Returns:
        The signature; post it with :func:`prepare_user_signed_action`'s
        output as the action.

    Raises:
        EncodingError: If the action does not fit the schema.
        InvalidKeyError: If the key is invalid.
        SigningError: If signing fails.
    """
    resolved = resolve_schema(schema, primary_type).with_chain_field()
    prepared = prepare_user_signed_action(action, resolved, is_mainnet, signature_chain_id)
    logger.debug(
        "Signing user-signed action",
        primary_type=resolved.primary_type,
        signature_chain_id=prepared["signatureChainId"],
        is_mainnet=is_mainnet,
    )
    payload = user_signed_payload(resolved.primary_type, resolved.payload_types(), prepared)
    return sign_typed_data(private_key, payload)


def recover_user_from_user_signed_action(
    action: Mapping[str, Any],
    signature: Signature | Mapping[str, Any],
    schema: SchemaLike,
    is_mainnet: bool,
    primary_type: str | None = None,
) -> str:
    """Recover the lowercase address that signed a user-signed action."""
    resolved = resolve_schema(schema, primary_type).with_chain_field()
    prepared = prepare_user_signed_action(action, resolved, is_mainnet)
    payload = user_signed_payload(resolved.primary_type, resolved.payload_types(), prepared)
    return recover_typed_data_signer(payload, signature)


def sign_usd_transfer_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, USD_SEND, is_mainnet)


def sign_spot_transfer_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, SPOT_SEND, is_mainnet)


def sign_withdraw_from_bridge_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, WITHDRAW, is_mainnet)


def sign_usd_class_transfer_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, USD_CLASS_TRANSFER, is_mainnet)


def sign_send_asset_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, SEND_ASSET, is_mainnet)


def sign_user_dex_abstraction_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, USER_DEX_ABSTRACTION, is_mainnet)


def sign_token_delegate_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, TOKEN_DELEGATE, is_mainnet)


def sign_agent(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    """Approve an agent (API) wallet to sign L1 actions for this user."""
    return sign_user_signed_action(private_key, action, APPROVE_AGENT, is_mainnet)


def sign_approve_builder_fee(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    return sign_user_signed_action(private_key, action, APPROVE_BUILDER_FEE, is_mainnet)


def sign_convert_to_multi_sig_user_action(
    private_key: PrivateKey, action: Mapping[str, Any], is_mainnet: bool
) -> Signature:
    """``signers`` is the JSON string of ``{"authorizedUsers": [...], "threshold": n}``."""
    return sign_user_signed_action(private_key, action, CONVERT_TO_MULTI_SIG_USER, is_mainnet)
