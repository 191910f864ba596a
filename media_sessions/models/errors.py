"""Custom errors and exceptions for Media Sessions."""

from __future__ import annotations

from typing import Any


class MediaSessionError(Exception):
    """Custom Exception for all errors."""

    error_code = 0


class EngineError(MediaSessionError):
    """Error raised when the native engine rejects or fails a command."""

    error_code = 1

    def __init__(self, code: Any, msg: str | None = None) -> None:
        """Initialize with the engine-defined error code."""
        super().__init__(msg or f"Engine error {code}")
        self.code = code


class SessionCommandFailed(MediaSessionError):
    """Error raised when a command to a session failed unexpectedly."""

    error_code = 2


class UnknownSessionError(MediaSessionError):
    """Error raised when a session id is not registered."""

    error_code = 3


class InvalidMessageError(MediaSessionError):
    """Error raised when the engine message channel delivers a malformed message."""

    error_code = 4


class InvalidConfigError(MediaSessionError):
    """Error raised when the configuration contains invalid values."""

    error_code = 5


class UnsupportedFeatureError(MediaSessionError):
    """Error raised when the engine lacks a capability."""

    error_code = 6
