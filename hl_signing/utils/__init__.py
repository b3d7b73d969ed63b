"""
Utility modules for the signing library.

Provides:
- Configuration management (config)
- Structured logging (logger)
"""

from hl_signing.utils.config import (
    AppConfig,
    Settings,
    SigningConfig,
    get_settings,
)
from hl_signing.utils.logger import configure_from_settings, configure_logging, get_logger

__all__ = [
    # Config
    "AppConfig",
    "Settings",
    "SigningConfig",
    "get_settings",
    # Logger
    "configure_from_settings",
    "configure_logging",
    "get_logger",
]
