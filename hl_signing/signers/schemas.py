"""
EIP-712 schemas for wallet-signed ("user-signed") Hyperliquid actions.

Each action kind is a fixed, ordered list of ``(field, abi type)`` pairs
under a ``HyperliquidTransaction:<Kind>`` primary type. Field order is part
of the type hash, so these tables are versioned with the venue protocol:
adding a venue-side field means adding it here in the same change.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from hl_signing.signers.exceptions import EncodingError

CHAIN_FIELD = "hyperliquidChain"
PRIMARY_TYPE_PREFIX = "HyperliquidTransaction:"


@dataclass(frozen=True)
class TypedDataSchema:
    """
    One user-signed action kind.

    Attributes:
        primary_type: EIP-712 primary type, e.g.
            ``"HyperliquidTransaction:UsdSend"``.
        fields: Ordered ``(name, abi type)`` pairs.
    """

    primary_type: str
    fields: tuple[tuple[str, str], ...]

    @classmethod
    def from_payload_types(
        cls,
        primary_type: str,
        payload_types: list[dict[str, str]],
    ) -> TypedDataSchema:
        """
        Build a schema from ``[{"name": ..., "type": ...}, ...]``.

        Raises:
            EncodingError: If an entry lacks a string ``name`` or ``type``.
        """
        if not isinstance(payload_types, (list, tuple)):
            raise EncodingError(
                f"Payload types for {primary_type} must be a list, got {type(payload_types).__name__}"
            )
        fields = []
        for i, entry in enumerate(payload_types):
            try:
                name, abi_type = entry["name"], entry["type"]
            except (KeyError, TypeError) as e:
                raise EncodingError(
                    f"Payload type #{i} of {primary_type} needs 'name' and 'type'"
                ) from e
            if not isinstance(name, str) or not isinstance(abi_type, str):
                raise EncodingError(f"Payload type #{i} of {primary_type} must use strings")
            fields.append((name, abi_type))
        return cls(primary_type=primary_type, fields=tuple(fields))

    @property
    def field_names(self) -> tuple[str, ...]:
        return tuple(name for name, _ in self.fields)

    def field_type(self, name: str) -> str | None:
        for field_name, abi_type in self.fields:
            if field_name == name:
                return abi_type
        return None

    def payload_types(self) -> list[dict[str, str]]:
        """The EIP-712 ``types[primaryType]`` list."""
        return [{"name": name, "type": abi_type} for name, abi_type in self.fields]

    def with_chain_field(self) -> TypedDataSchema:
        """Return the schema with ``hyperliquidChain`` as its first field."""
        if CHAIN_FIELD in self.field_names:
            return self
        return TypedDataSchema(self.primary_type, ((CHAIN_FIELD, "string"), *self.fields))

    def extended(self, *extra: tuple[str, str]) -> TypedDataSchema:
        """Return the schema with ``extra`` fields appended."""
        return TypedDataSchema(self.primary_type, (*self.fields, *extra))


def _schema(kind: str, *fields: tuple[str, str]) -> TypedDataSchema:
    return TypedDataSchema(PRIMARY_TYPE_PREFIX + kind, ((CHAIN_FIELD, "string"), *fields))


USD_SEND = _schema(
    "UsdSend",
    ("destination", "string"),
    ("amount", "string"),
    ("time", "uint64"),
)

SPOT_SEND = _schema(
    "SpotSend",
    ("destination", "string"),
    ("token", "string"),
    ("amount", "string"),
    ("time", "uint64"),
)

WITHDRAW = _schema(
    "Withdraw",
    ("destination", "string"),
    ("amount", "string"),
    ("time", "uint64"),
)

USD_CLASS_TRANSFER = _schema(
    "UsdClassTransfer",
    ("amount", "string"),
    ("toPerp", "bool"),
    ("nonce", "uint64"),
)

SEND_ASSET = _schema(
    "SendAsset",
    ("destination", "string"),
    ("sourceDex", "string"),
    ("destinationDex", "string"),
    ("token", "string"),
    ("amount", "string"),
    ("fromSubAccount", "string"),
    ("nonce", "uint64"),
)

USER_DEX_ABSTRACTION = _schema(
    "UserDexAbstraction",
    ("user", "address"),
    ("enabled", "bool"),
    ("nonce", "uint64"),
)

TOKEN_DELEGATE = _schema(
    "TokenDelegate",
    ("validator", "address"),
    ("wei", "uint64"),
    ("isUndelegate", "bool"),
    ("nonce", "uint64"),
)

APPROVE_AGENT = _schema(
    "ApproveAgent",
    ("agentAddress", "address"),
    ("agentName", "string"),
    ("nonce", "uint64"),
)

APPROVE_BUILDER_FEE = _schema(
    "ApproveBuilderFee",
    ("maxFeeRate", "string"),
    ("builder", "address"),
    ("nonce", "uint64"),
)

CONVERT_TO_MULTI_SIG_USER = _schema(
    "ConvertToMultiSigUser",
    ("signers", "string"),
    ("nonce", "uint64"),
)

SEND_MULTI_SIG = _schema(
    "SendMultiSig",
    ("multiSigActionHash", "bytes32"),
    ("nonce", "uint64"),
)

# Keyed by the action's "type" discriminator
SCHEMAS_BY_ACTION_TYPE: dict[str, TypedDataSchema] = {
    "usdSend": USD_SEND,
    "spotSend": SPOT_SEND,
    "withdraw3": WITHDRAW,
    "usdClassTransfer": USD_CLASS_TRANSFER,
    "sendAsset": SEND_ASSET,
    "userDexAbstraction": USER_DEX_ABSTRACTION,
    "tokenDelegate": TOKEN_DELEGATE,
    "approveAgent": APPROVE_AGENT,
    "approveBuilderFee": APPROVE_BUILDER_FEE,
    "convertToMultiSigUser": CONVERT_TO_MULTI_SIG_USER,
}

MULTI_SIG_PARTICIPANT_FIELDS: tuple[tuple[str, str], ...] = (
    ("payloadMultiSigUser", "address"),
    ("outerSigner", "address"),
)


def schema_for_action(action: dict[str, Any]) -> TypedDataSchema | None:
    """Look up the schema for a user-signed action by its ``type``."""
    return SCHEMAS_BY_ACTION_TYPE.get(action.get("type", ""))
