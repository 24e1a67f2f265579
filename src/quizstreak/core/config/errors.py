"""
Configuration exceptions.

All configuration errors inherit from ConfigError so callers can catch the
whole family at startup.
"""

from __future__ import annotations

from typing import Optional


class ConfigError(Exception):
    """Base class for configuration errors."""

    def __init__(self, message: str, key: Optional[str] = None) -> None:
        super().__init__(message)
        self.key = key


class ConfigValidationError(ConfigError):
    """Raised when a configuration value fails validation."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Invalid configuration for '{key}': {reason}", key=key)
        self.reason = reason


class MissingConfigError(ConfigError):
    """Raised when a required configuration key is absent."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Required configuration key '{key}' is missing", key=key)


__all__ = [
    "ConfigError",
    "ConfigValidationError",
    "MissingConfigError",
]
