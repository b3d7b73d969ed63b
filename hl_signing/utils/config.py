"""
Signing configuration using Pydantic settings.

Loads network selection, signing-domain chain id, vault and expiry defaults
from environment variables with validation. Supports .env files for local
development. Private keys are deliberately not part of these settings:
callers hand a key to each signing call.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from hl_signing.signers.action_hash import SigningContext, get_timestamp_ms
from hl_signing.signers.encoder import normalize_address
from hl_signing.signers.exceptions import EncodingError

# Values below this are offsets from the nonce, not absolute timestamps
RELATIVE_EXPIRY_THRESHOLD_MS = 1_000_000_000_000


class SigningConfig(BaseSettings):
    """Configuration for Hyperliquid action signing."""

    model_config = SettingsConfigDict(
        env_prefix="HL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    network: Literal["mainnet", "testnet"] = Field(
        default="mainnet",
        description="Venue network; selects phantom agent source and hyperliquidChain",
    )
    signature_chain_id: str = Field(
        default="0x66eee",
        description="Hex chain id of the user-signed EIP-712 domain",
    )
    vault_address: str | None = Field(
        default=None,
        description="Vault or sub-account address L1 actions are made for",
    )
    expires_after_ms: int | None = Field(
        default=None,
        ge=0,
        description="Request expiry: offset from the nonce if < 1e12, else absolute ms",
    )

    @field_validator("signature_chain_id")
    @classmethod
    def validate_chain_id(cls, v: str) -> str:
        """Require a positive hex chain id."""
        try:
            chain_id = int(v, 16)
        except ValueError as e:
            raise ValueError(f"signature_chain_id must be hex, got {v!r}") from e
        if chain_id <= 0:
            raise ValueError("signature_chain_id must be positive")
        return v.lower()

    @field_validator("vault_address")
    @classmethod
    def validate_vault_address(cls, v: str | None) -> str | None:
        """Normalize the vault address to lowercase 0x form."""
        if v is None or v == "":
            return None
        try:
            return normalize_address(v)
        except EncodingError as e:
            raise ValueError(str(e)) from e

    @property
    def is_mainnet(self) -> bool:
        return self.network == "mainnet"

    def resolve_expires_after(self, nonce: int) -> int | None:
        """Turn the configured expiry into an absolute millisecond timestamp."""
        if self.expires_after_ms is None:
            return None
        if self.expires_after_ms < RELATIVE_EXPIRY_THRESHOLD_MS:
            return nonce + self.expires_after_ms
        return self.expires_after_ms

    def new_context(self, nonce: int | None = None) -> SigningContext:
        """
        Create a signing context from these settings.

        Args:
            nonce: Millisecond nonce; defaults to the current time.

        Example:
            >>> context = get_settings().signing.new_context()
            >>> context.is_mainnet
            True
        """
        if nonce is None:
            nonce = get_timestamp_ms()
        return SigningContext(
            nonce=nonce,
            vault_address=self.vault_address,
            expires_after=self.resolve_expires_after(nonce),
            is_mainnet=self.is_mainnet,
        )


class AppConfig(BaseSettings):
    """Main application configuration."""

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "testing"] = Field(
        default="development",
        description="Application environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format",
    )


class Settings(BaseSettings):
    """Aggregated settings with all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    signing: SigningConfig = Field(default_factory=SigningConfig)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings instance loaded from environment.

    Example:
        >>> settings = get_settings()
        >>> print(settings.signing.network)
    """
    return Settings()
