"""Domain errors for Configstore."""

from __future__ import annotations

from typing import Any, Dict


class ConfigstoreError(Exception):
    """Base exception for Configstore domain errors."""

    def __init__(self, message: str, *, details: Dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class DirectoryResolutionError(ConfigstoreError):
    """No configuration directory could be determined for this platform."""


class StoreIOError(ConfigstoreError):
    """Filesystem operation on the store failed."""


class NotFoundError(StoreIOError):
    """No entry file exists for the requested key."""


class SerializationError(ConfigstoreError):
    """Value could not be encoded, or stored content could not be decoded."""


class InvalidKeyError(ConfigstoreError):
    """Key or application name is not a single file-name segment."""


class ConfigError(ConfigstoreError):
    """Configuration errors."""
