"""
EIP-712 Typed-Data Signing Primitives

Shared by the L1 and user-signed paths:

1. Load a secp256k1 key into an ``eth_account`` ``LocalAccount``
2. Build the EIP-712 ``SignableMessage`` for a full typed-data dictionary
3. Sign ``keccak256(0x1901 || domainSeparator || structHash)`` with ECDSA
   (RFC 6979 deterministic nonces), normalizing ``v`` to 27/28
4. Recover the signer address from ``(r, s, v)``

The private key is only held for the duration of a call.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Union

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_account.signers.local import LocalAccount
from eth_utils import keccak

from hl_signing.signers.exceptions import InvalidKeyError, SigningError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

EIP712_DOMAIN_TYPES = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
]

# Anything eth_account can turn into a LocalAccount
PrivateKey = Union[str, bytes, LocalAccount]


def _parse_v(v: Any) -> int:
    if isinstance(v, str):
        return int(v, 16) if v[:2] in ("0x", "0X") else int(v, 10)
    return int(v)


@dataclass(frozen=True)
class Signature:
    """
    An ECDSA signature in Ethereum's ``(r, s, v)`` convention.

    Attributes:
        r: 256-bit ``r`` component.
        s: 256-bit ``s`` component.
        v: Recovery value, always 27 or 28.
    """

    r: int
    s: int
    v: int

    def __post_init__(self) -> None:
        if self.v not in (27, 28):
            raise SigningError(f"Signature v must be 27 or 28, got {self.v}")
        for name in ("r", "s"):
            value = getattr(self, name)
            if not 0 < value < 2**256:
                raise SigningError(f"Signature {name} is out of range")

    @classmethod
    def from_vrs(cls, v: int, r: int, s: int) -> Signature:
        """Build a signature, lifting a raw 0/1 recovery id to 27/28."""
        if v in (0, 1):
            v += 27
        return cls(r=r, s=s, v=v)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Signature:
        """
        Parse the wire form ``{"r": "0x..", "s": "0x..", "v": 27}``.

        ``r`` and ``s`` may also be given as integers. A string ``v`` is
        hex when ``0x``-prefixed and decimal otherwise.

        Raises:
            SigningError: If a component is missing or malformed.
        """
        try:
            r, s, v = data["r"], data["s"], data["v"]
            r = int(r, 16) if isinstance(r, str) else int(r)
            s = int(s, 16) if isinstance(s, str) else int(s)
            v = _parse_v(v)
        except (KeyError, TypeError, ValueError) as e:
            raise SigningError(f"Malformed signature: {e}") from e
        return cls.from_vrs(v, r, s)

    def to_dict(self) -> dict[str, Any]:
        """Wire form: 0x-prefixed 64-hex-char ``r``/``s`` and integer ``v``."""
        return {"r": f"0x{self.r:064x}", "s": f"0x{self.s:064x}", "v": self.v}


def load_account(private_key: PrivateKey) -> LocalAccount:
    """
    Turn a hex key (``0x`` optional), raw 32 bytes, or account into a signer.

    Raises:
        InvalidKeyError: If the key is empty or not a valid secp256k1 scalar.
    """
    if isinstance(private_key, LocalAccount):
        return private_key
    if not private_key:
        raise InvalidKeyError("Private key cannot be empty")
    if not isinstance(private_key, (str, bytes)):
        raise InvalidKeyError(
            f"Expected hex string or bytes private key, got {type(private_key).__name__}"
        )

    try:
        return Account.from_key(private_key)
    except Exception as e:
        # Never echo the key itself
        raise InvalidKeyError(f"Failed to load private key: {type(e).__name__}") from e


def address_of(private_key: PrivateKey) -> str:
    """Lowercase ``0x`` address controlled by ``private_key``."""
    return load_account(private_key).address.lower()


def encode_full_message(full_message: Mapping[str, Any]) -> SignableMessage:
    """
    Encode ``{"domain", "types", "primaryType", "message"}`` for signing.

    Raises:
        SigningError: If the typed data does not match its declared types.
    """
    try:
        return encode_typed_data(full_message=dict(full_message))
    except Exception as e:
        raise SigningError(f"Failed to encode typed data: {e}") from e


def typed_data_digest(full_message: Mapping[str, Any]) -> bytes:
    """The 32-byte EIP-712 digest ``keccak256(0x19 01 || domain || struct)``."""
    signable = encode_full_message(full_message)
    return keccak(b"\x19" + signable.version + signable.header + signable.body)


def sign_typed_data(private_key: PrivateKey, full_message: Mapping[str, Any]) -> Signature:
    """
    Sign an EIP-712 typed-data dictionary.

    Args:
        private_key: The signing key.
        full_message: Complete typed data including ``EIP712Domain`` types.

    Returns:
        The signature with ``v`` in {27, 28}.

    Raises:
        InvalidKeyError: If the key cannot be loaded.
        SigningError: If encoding or the curve operation fails.
    """
    account = load_account(private_key)
    signable = encode_full_message(full_message)
    try:
        signed = account.sign_message(signable)
    except Exception as e:
        raise SigningError(f"Failed to sign typed data: {e}") from e
    return Signature.from_vrs(signed.v, signed.r, signed.s)


def recover_typed_data_signer(
    full_message: Mapping[str, Any],
    signature: Signature | Mapping[str, Any],
) -> str:
    """
    Recover the lowercase address that produced ``signature``.

    Raises:
        SigningError: If the signature cannot be recovered.
    """
    if not isinstance(signature, Signature):
        signature = Signature.from_dict(signature)
    signable = encode_full_message(full_message)
    try:
        address = Account.recover_message(
            signable,
            vrs=(signature.v, signature.r, signature.s),
        )
    except Exception as e:
        raise SigningError(f"Failed to recover signer: {e}") from e
    return address.lower()
