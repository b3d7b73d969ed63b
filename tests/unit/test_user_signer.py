"""
Unit tests for user-signed (wallet typed-data) actions.
"""

import json

import pytest

from hl_signing.signers.exceptions import EncodingError
from hl_signing.signers.schemas import (
    APPROVE_AGENT,
    APPROVE_BUILDER_FEE,
    CONVERT_TO_MULTI_SIG_USER,
    SCHEMAS_BY_ACTION_TYPE,
    SEND_ASSET,
    SEND_MULTI_SIG,
    SPOT_SEND,
    TOKEN_DELEGATE,
    USD_CLASS_TRANSFER,
    USD_SEND,
    USER_DEX_ABSTRACTION,
    WITHDRAW,
    TypedDataSchema,
    schema_for_action,
)
from hl_signing.signers.user_signer import (
    DEFAULT_SIGNATURE_CHAIN_ID,
    parse_chain_id,
    prepare_user_signed_action,
    recover_user_from_user_signed_action,
    resolve_schema,
    sign_agent,
    sign_approve_builder_fee,
    sign_convert_to_multi_sig_user_action,
    sign_send_asset_action,
    sign_spot_transfer_action,
    sign_token_delegate_action,
    sign_usd_class_transfer_action,
    sign_usd_transfer_action,
    sign_user_dex_abstraction_action,
    sign_user_signed_action,
    sign_withdraw_from_bridge_action,
    user_signed_payload,
)

DESTINATION = "0x5e9ee1089755c3435139848e47e6635505d5a13a"
NONCE = 1687816341423


@pytest.fixture
def usd_send():
    """A USDC transfer action."""
    return {"type": "usdSend", "destination": DESTINATION, "amount": "1", "time": NONCE}


KIND_CASES = [
    (
        sign_usd_transfer_action,
        USD_SEND,
        {"type": "usdSend", "destination": DESTINATION, "amount": "1", "time": NONCE},
    ),
    (
        sign_spot_transfer_action,
        SPOT_SEND,
        {
            "type": "spotSend",
            "destination": DESTINATION,
            "token": "PURR:0xc4bf3f870c0e9465323c0b6ed28096c2",
            "amount": "0.1",
            "time": NONCE,
        },
    ),
    (
        sign_withdraw_from_bridge_action,
        WITHDRAW,
        {"type": "withdraw3", "destination": DESTINATION, "amount": "1", "time": NONCE},
    ),
    (
        sign_usd_class_transfer_action,
        USD_CLASS_TRANSFER,
        {"type": "usdClassTransfer", "amount": "1", "toPerp": True, "nonce": NONCE},
    ),
    (
        sign_send_asset_action,
        SEND_ASSET,
        {
            "type": "sendAsset",
            "destination": DESTINATION,
            "sourceDex": "",
            "destinationDex": "spot",
            "token": "USDC",
            "amount": "1",
            "fromSubAccount": "",
            "nonce": NONCE,
        },
    ),
    (
        sign_user_dex_abstraction_action,
        USER_DEX_ABSTRACTION,
        {"type": "userDexAbstraction", "user": DESTINATION, "enabled": True, "nonce": NONCE},
    ),
    (
        sign_token_delegate_action,
        TOKEN_DELEGATE,
        {
            "type": "tokenDelegate",
            "validator": "0x5ac99df645f3414876c816caa18b2d234024b487",
            "wei": 100163871320,
            "isUndelegate": True,
            "nonce": NONCE,
        },
    ),
    (
        sign_agent,
        APPROVE_AGENT,
        {
            "type": "approveAgent",
            "agentAddress": "0x1111111111111111111111111111111111111111",
            "agentName": "",
            "nonce": NONCE,
        },
    ),
    (
        sign_approve_builder_fee,
        APPROVE_BUILDER_FEE,
        {
            "type": "approveBuilderFee",
            "maxFeeRate": "0.001%",
            "builder": "0x8c967E73E7B15087c42A10D344cFf4c96D877f1D",
            "nonce": NONCE,
        },
    ),
    (
        sign_convert_to_multi_sig_user_action,
        CONVERT_TO_MULTI_SIG_USER,
        {
            "type": "convertToMultiSigUser",
            "signers": json.dumps(
                {"authorizedUsers": ["0x1111111111111111111111111111111111111111"], "threshold": 1}
            ),
            "nonce": NONCE,
        },
    ),
]


class TestSchemas:
    """Tests for the schema table."""

    def test_every_schema_starts_with_chain_field(self):
        """Should put hyperliquidChain first in every schema."""
        for schema in [*SCHEMAS_BY_ACTION_TYPE.values(), SEND_MULTI_SIG]:
            assert schema.fields[0] == ("hyperliquidChain", "string")
            assert schema.primary_type.startswith("HyperliquidTransaction:")

    def test_usd_send_field_order(self):
        """Should list UsdSend fields in protocol order."""
        assert USD_SEND.field_names == ("hyperliquidChain", "destination", "amount", "time")
        assert USD_SEND.primary_type == "HyperliquidTransaction:UsdSend"

    def test_withdraw_primary_type(self):
        """Should map withdraw3 to the Withdraw primary type."""
        assert SCHEMAS_BY_ACTION_TYPE["withdraw3"].primary_type == "HyperliquidTransaction:Withdraw"

    def test_field_type_lookup(self):
        """Should look up a field's ABI type."""
        assert TOKEN_DELEGATE.field_type("wei") == "uint64"
        assert TOKEN_DELEGATE.field_type("missing") is None

    def test_schema_for_action(self):
        """Should resolve a schema from the action type."""
        assert schema_for_action({"type": "approveAgent"}) is APPROVE_AGENT
        assert schema_for_action({"type": "order"}) is None

    def test_payload_types_round_trip(self):
        """Should rebuild the same schema from its payload types."""
        rebuilt = TypedDataSchema.from_payload_types(USD_SEND.primary_type, USD_SEND.payload_types())
        assert rebuilt == USD_SEND

    def test_with_chain_field_prepends_once(self):
        """Should prepend hyperliquidChain only when missing."""
        bare = TypedDataSchema("HyperliquidTransaction:Test", (("to", "address"),))
        with_chain = bare.with_chain_field()
        assert with_chain.field_names == ("hyperliquidChain", "to")
        assert with_chain.with_chain_field() is with_chain


class TestPrepareUserSignedAction:
    """Tests for the prepared (signed and posted) action copy."""

    def test_injects_chain_fields(self, usd_send):
        """Should set signatureChainId and hyperliquidChain."""
        prepared = prepare_user_signed_action(usd_send, USD_SEND, True)
        assert prepared["signatureChainId"] == DEFAULT_SIGNATURE_CHAIN_ID == "0x66eee"
        assert prepared["hyperliquidChain"] == "Mainnet"
        assert prepare_user_signed_action(usd_send, USD_SEND, False)["hyperliquidChain"] == "Testnet"

    def test_does_not_mutate_input(self, usd_send):
        """Should leave the caller's action untouched."""
        before = dict(usd_send)
        prepare_user_signed_action(usd_send, USD_SEND, True)
        assert usd_send == before

    def test_keeps_action_chain_id(self, usd_send):
        """Should keep a signatureChainId the action already carries."""
        prepared = prepare_user_signed_action({**usd_send, "signatureChainId": "0xa4b1"}, USD_SEND, True)
        assert prepared["signatureChainId"] == "0xa4b1"

    def test_explicit_chain_id_wins(self, usd_send):
        """Should prefer the explicit signature_chain_id argument."""
        prepared = prepare_user_signed_action(
            {**usd_send, "signatureChainId": "0xa4b1"}, USD_SEND, True, signature_chain_id="0x1"
        )
        assert prepared["signatureChainId"] == "0x1"

    def test_lowercases_address_fields(self):
        """Should lowercase address-typed fields."""
        action = dict(KIND_CASES[8][2])
        prepared = prepare_user_signed_action(action, APPROVE_BUILDER_FEE, True)
        assert prepared["builder"] == action["builder"].lower()

    def test_missing_field_raises(self, usd_send):
        """Should raise when a schema field is absent."""
        del usd_send["amount"]
        with pytest.raises(EncodingError, match="missing field 'amount'"):
            prepare_user_signed_action(usd_send, USD_SEND, True)

    def test_wrong_field_type_raises(self, usd_send):
        """Should raise when a uint field is not an integer."""
        usd_send["time"] = "1687816341423"
        with pytest.raises(EncodingError, match="non-negative integer"):
            prepare_user_signed_action(usd_send, USD_SEND, True)

    def test_invalid_chain_id_raises(self, usd_send):
        """Should raise for a non-hex signatureChainId."""
        with pytest.raises(EncodingError, match="signatureChainId"):
            prepare_user_signed_action(usd_send, USD_SEND, True, signature_chain_id="mainnet")


class TestUserSignedPayload:
    """Tests for the user-signed typed data."""

    def test_domain(self, usd_send):
        """Should use HyperliquidSignTransaction at int(signatureChainId)."""
        prepared = prepare_user_signed_action(usd_send, USD_SEND, True)
        payload = user_signed_payload(USD_SEND.primary_type, USD_SEND.payload_types(), prepared)
        assert payload["domain"] == {
            "name": "HyperliquidSignTransaction",
            "version": "1",
            "chainId": 0x66EEE,
            "verifyingContract": "0x0000000000000000000000000000000000000000",
        }
        assert payload["primaryType"] == "HyperliquidTransaction:UsdSend"

    def test_message_holds_only_schema_fields(self, usd_send):
        """Should drop type and signatureChainId from the message."""
        prepared = prepare_user_signed_action(usd_send, USD_SEND, True)
        payload = user_signed_payload(USD_SEND.primary_type, USD_SEND.payload_types(), prepared)
        assert list(payload["message"]) == ["hyperliquidChain", "destination", "amount", "time"]

    def test_bytes32_hex_is_decoded(self):
        """Should turn hex bytes32 fields into raw bytes."""
        action = {"multiSigActionHash": "0x" + "ab" * 32, "nonce": 1}
        prepared = prepare_user_signed_action(action, SEND_MULTI_SIG, True)
        payload = user_signed_payload(SEND_MULTI_SIG.primary_type, SEND_MULTI_SIG.payload_types(), prepared)
        assert payload["message"]["multiSigActionHash"] == b"\xab" * 32

    def test_short_bytes32_raises(self):
        """Should raise for bytes32 values of the wrong length."""
        with pytest.raises(EncodingError, match="32 bytes"):
            prepare_user_signed_action({"multiSigActionHash": "0xabcd", "nonce": 1}, SEND_MULTI_SIG, True)


class TestSignUserSignedAction:
    """Tests for signing and recovering user-signed actions."""

    @pytest.mark.parametrize(("signer", "schema", "action"), KIND_CASES)
    @pytest.mark.parametrize("is_mainnet", [True, False])
    def test_every_kind_round_trips(self, private_key, signer_address, signer, schema, action, is_mainnet):
        """Should recover the signer for every action kind on both networks."""
        signature = signer(private_key, action, is_mainnet)
        recovered = recover_user_from_user_signed_action(action, signature, schema, is_mainnet)
        assert recovered == signer_address
        assert signature.v in (27, 28)

    def test_networks_differ(self, private_key, usd_send):
        """Should sign different digests on mainnet and testnet."""
        mainnet = sign_usd_transfer_action(private_key, usd_send, True)
        testnet = sign_usd_transfer_action(private_key, usd_send, False)
        assert mainnet != testnet

    def test_deterministic(self, private_key, usd_send):
        """Should produce identical signatures for identical inputs."""
        assert sign_usd_transfer_action(private_key, usd_send, True) == sign_usd_transfer_action(
            private_key, usd_send, True
        )

    def test_does_not_mutate_action(self, private_key, usd_send):
        """Should not add chain fields to the caller's action."""
        sign_usd_transfer_action(private_key, usd_send, True)
        assert "signatureChainId" not in usd_send
        assert "hyperliquidChain" not in usd_send

    def test_custom_chain_id_round_trips(self, private_key, signer_address, usd_send):
        """Should sign and recover under a non-default signing chain."""
        signature = sign_user_signed_action(private_key, usd_send, USD_SEND, True, signature_chain_id="0xa4b1")
        prepared = prepare_user_signed_action(usd_send, USD_SEND, True, signature_chain_id="0xa4b1")
        assert recover_user_from_user_signed_action(prepared, signature, USD_SEND, True) == signer_address
        # Recovering under the default chain id yields someone else
        assert recover_user_from_user_signed_action(usd_send, signature, USD_SEND, True) != signer_address

    def test_raw_payload_types(self, private_key, signer_address):
        """Should accept raw payload types with an explicit primary type."""
        payload_types = [
            {"name": "hyperliquidChain", "type": "string"},
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ]
        action = {"to": DESTINATION, "amount": 1000000}
        signature = sign_user_signed_action(
            private_key, action, payload_types, True, primary_type="HyperliquidTransaction:Test"
        )
        recovered = recover_user_from_user_signed_action(
            action, signature, payload_types, True, primary_type="HyperliquidTransaction:Test"
        )
        assert recovered == signer_address

    def test_raw_payload_types_without_chain_field(self, private_key, signer_address):
        """Should prepend hyperliquidChain when raw types omit it."""
        payload_types = [{"name": "to", "type": "address"}]
        action = {"to": DESTINATION}
        signature = sign_user_signed_action(
            private_key, action, payload_types, False, primary_type="HyperliquidTransaction:Test"
        )
        with_chain = [{"name": "hyperliquidChain", "type": "string"}, *payload_types]
        recovered = recover_user_from_user_signed_action(
            action, signature, with_chain, False, primary_type="HyperliquidTransaction:Test"
        )
        assert recovered == signer_address

    def test_raw_payload_types_require_primary_type(self, private_key):
        """Should raise when raw payload types come without a primary type."""
        with pytest.raises(EncodingError, match="primary_type is required"):
            sign_user_signed_action(private_key, {"to": DESTINATION}, [{"name": "to", "type": "address"}], True)

    def test_primary_type_override(self):
        """Should swap the primary type of a schema object."""
        resolved = resolve_schema(USD_SEND, "HyperliquidTransaction:Other")
        assert resolved.primary_type == "HyperliquidTransaction:Other"
        assert resolved.fields == USD_SEND.fields


class TestParseChainId:
    """Tests for signatureChainId parsing."""

    def test_parses_hex(self):
        """Should parse hex with or without 0x."""
        assert parse_chain_id("0x66eee") == 421614
        assert parse_chain_id("a4b1") == 42161

    @pytest.mark.parametrize("value", ["", "0x0", "xyz", None])
    def test_rejects_invalid(self, value):
        """Should raise for empty, zero or non-hex ids."""
        with pytest.raises(EncodingError):
            parse_chain_id(value)  # type: ignore[arg-type]


class TestMalformedInput:
    """Tests for malformed actions and schemas."""

    def test_payload_without_chain_id_raises(self, usd_send):
        """Should raise EncodingError when signatureChainId was never set."""
        action = {**usd_send, "hyperliquidChain": "Mainnet"}
        with pytest.raises(EncodingError, match="signatureChainId"):
            user_signed_payload(USD_SEND.primary_type, USD_SEND.payload_types(), action)

    @pytest.mark.parametrize(
        "payload_types",
        [[{"nam": "x"}], [{"name": "x"}], ["x"], [{"name": 1, "type": "string"}], None],
    )
    def test_malformed_raw_schema_raises(self, private_key, payload_types):
        """Should raise EncodingError for raw payload types missing name or type."""
        with pytest.raises(EncodingError):
            sign_user_signed_action(
                private_key, {"x": "1"}, payload_types, True, primary_type="HyperliquidTransaction:Test"
            )

    def test_from_payload_types_names_entry(self):
        """Should point at the offending payload type entry."""
        with pytest.raises(EncodingError, match="#1"):
            TypedDataSchema.from_payload_types("P", [{"name": "a", "type": "string"}, {"nam": "b"}])

    @pytest.mark.parametrize("action", [[1], "usdSend", None])
    def test_non_mapping_action_raises(self, private_key, action):
        """Should raise EncodingError when the action is not a mapping."""
        with pytest.raises(EncodingError, match="must be a mapping"):
            sign_user_signed_action(private_key, action, USD_SEND, True)

    def test_non_mapping_action_in_payload_raises(self):
        """Should raise EncodingError when building typed data from a list."""
        with pytest.raises(EncodingError, match="must be a mapping"):
            user_signed_payload(USD_SEND.primary_type, USD_SEND.payload_types(), [1])  # type: ignore[arg-type]
