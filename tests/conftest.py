"""Shared fixtures for the signing tests."""

import pytest
from eth_account import Account

# Well-known throwaway key used by the venue's reference test suites
TEST_PRIVATE_KEY = "0x0123456789012345678901234567890123456789012345678901234567890123"


@pytest.fixture
def private_key() -> str:
    """Hex private key used for signing."""
    return TEST_PRIVATE_KEY


@pytest.fixture
def signer_address(private_key: str) -> str:
    """Lowercase address controlled by the test key."""
    return Account.from_key(private_key).address.lower()


@pytest.fixture
def other_private_key() -> str:
    """A second key, for mismatch scenarios."""
    return "0x" + "11" * 32
