"""
Exceptions raised by the Hyperliquid action signers.

Every public entry point in ``hl_signing.signers`` raises one of these and
chains the underlying library error with ``raise ... from e``.
"""

from __future__ import annotations


class SignerError(Exception):
    """Base exception for Hyperliquid signer errors."""

    pass


class EncodingError(SignerError):
    """Raised when an action, address or number cannot be canonically encoded."""

    pass


class SigningError(SignerError):
    """Raised when the signing operation fails."""

    pass


class InvalidKeyError(SigningError):
    """Raised when the secp256k1 private key is invalid or cannot be loaded."""

    pass
