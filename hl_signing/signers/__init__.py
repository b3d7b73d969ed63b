"""
Signers module for Hyperliquid exchange actions.

Provides canonical encoding, hashing and EIP-712 signing for:
- L1 actions: msgpack + keccak digest wrapped in a phantom agent
- User-signed actions: wallet typed data per action kind
- Multi-sig envelopes for both paths
"""

from hl_signing.signers.action_hash import (
    SigningContext,
    action_hash,
    context_action_hash,
    get_timestamp_ms,
)
from hl_signing.signers.encoder import address_to_bytes, normalize_address, pack_action
from hl_signing.signers.exceptions import (
    EncodingError,
    InvalidKeyError,
    SignerError,
    SigningError,
)
from hl_signing.signers.l1_signer import (
    PhantomAgent,
    construct_phantom_agent,
    l1_payload,
    recover_agent_or_user_from_l1_action,
    sign_l1_action,
)
from hl_signing.signers.multi_sig import (
    multi_sig_action_hash,
    sign_multi_sig_action,
    sign_multi_sig_l1_action_payload,
    sign_multi_sig_user_signed_action_payload,
)
from hl_signing.signers.numeric import (
    float_to_int,
    float_to_int_for_hashing,
    float_to_usd_int,
    float_to_wire,
)
from hl_signing.signers.payload import (
    ExchangeRequest,
    build_l1_request,
    build_user_signed_request,
)
from hl_signing.signers.schemas import SCHEMAS_BY_ACTION_TYPE, TypedDataSchema
from hl_signing.signers.typed_data import Signature, address_of, typed_data_digest
from hl_signing.signers.user_signer import (
    prepare_user_signed_action,
    recover_user_from_user_signed_action,
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
from hl_signing.signers.verify import (
    VerificationMismatch,
    verify_l1_action,
    verify_user_signed_action,
)

__all__ = [
    # Errors
    "SignerError",
    "EncodingError",
    "SigningError",
    "InvalidKeyError",
    # Numeric
    "float_to_wire",
    "float_to_int",
    "float_to_int_for_hashing",
    "float_to_usd_int",
    # Encoding and hashing
    "pack_action",
    "address_to_bytes",
    "normalize_address",
    "SigningContext",
    "action_hash",
    "context_action_hash",
    "get_timestamp_ms",
    # L1
    "PhantomAgent",
    "construct_phantom_agent",
    "l1_payload",
    "sign_l1_action",
    "recover_agent_or_user_from_l1_action",
    # Typed data
    "Signature",
    "address_of",
    "typed_data_digest",
    "TypedDataSchema",
    "SCHEMAS_BY_ACTION_TYPE",
    # User-signed
    "prepare_user_signed_action",
    "user_signed_payload",
    "sign_user_signed_action",
    "recover_user_from_user_signed_action",
    "sign_usd_transfer_action",
    "sign_spot_transfer_action",
    "sign_withdraw_from_bridge_action",
    "sign_usd_class_transfer_action",
    "sign_send_asset_action",
    "sign_user_dex_abstraction_action",
    "sign_token_delegate_action",
    "sign_agent",
    "sign_approve_builder_fee",
    "sign_convert_to_multi_sig_user_action",
    # Multi-sig
    "multi_sig_action_hash",
    "sign_multi_sig_action",
    "sign_multi_sig_l1_action_payload",
    "sign_multi_sig_user_signed_action_payload",
    # Verification
    "VerificationMismatch",
    "verify_l1_action",
    "verify_user_signed_action",
    # Transport envelope
    "ExchangeRequest",
    "build_l1_request",
    "build_user_signed_request",
]
