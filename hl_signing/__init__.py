"""
Hyperliquid action signing.

Canonical encoding, hashing and EIP-712 signing of exchange actions,
byte-compatible with the venue's reference clients. The public API lives in
``hl_signing.signers``; settings and logging in ``hl_signing.utils``.

Importing any part of the package installs the structlog pipeline from
``hl_signing.utils.logger`` (INFO level, console output, secret
redaction), so the signers' DEBUG lines stay hidden until a caller opts in
with ``configure_logging(level="DEBUG")`` or ``configure_from_settings()``.
"""

from hl_signing.utils.logger import configure_from_settings, configure_logging

__version__ = "0.1.0"

__all__ = ["configure_from_settings", "configure_logging", "__version__"]
