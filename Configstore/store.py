"""Per-application key/value store keeping one JSON document per key."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, List

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError
from pydantic_core import PydanticSerializationError, to_json

from Configstore.config.settings import Settings, load_settings
from Configstore.core.app_dirs import AppUI, resolve_config_dir
from Configstore.errors import (
    ConfigError,
    DirectoryResolutionError,
    InvalidKeyError,
    NotFoundError,
    SerializationError,
    StoreIOError,
)

__all__ = ["AppUI", "Configstore"]

logger = logging.getLogger(__name__)

ENTRY_SUFFIX = ".json"
_FORBIDDEN_CHARS = ("/", "\\", "\x00")


def _check_segment(value: str, what: str) -> str:
    if not isinstance(value, str):
        raise InvalidKeyError(f"{what} must be a string, got {type(value).__name__}")
    if value in ("", ".", ".."):
        raise InvalidKeyError(f"Invalid {what}: {value!r}", details={what: value})
    for ch in _FORBIDDEN_CHARS:
        if ch in value:
            raise InvalidKeyError(
                f"{what} must be a single path segment: {value!r}",
                details={what: value},
            )
    return value


def _io_error(message: str, path: Path, exc: OSError) -> StoreIOError:
    details = {"path": str(path)}
    if exc.errno is not None:
        details["errno"] = exc.errno
    return StoreIOError(f"{message}: {exc}", details=details)


class Configstore:
    """Stores values as <config dir>/<namespace>/<app_name>/<key>.json.

    Construction resolves and creates the directory once. Every ``set`` and
    ``get`` is a single synchronous write or read; nothing is cached and no
    locking is done, so concurrent writers to the same key race.
    """

    def __init__(
        self,
        app_name: str,
        app_ui: AppUI = AppUI.COMMAND_LINE,
        *,
        settings: Settings | None = None,
    ) -> None:
        self.app_name = _check_segment(app_name, "app_name")
        try:
            self.app_ui = AppUI(app_ui)
        except ValueError as exc:
            raise ConfigError(
                f"Unknown UI type: {app_ui!r}", details={"app_ui": app_ui}
            ) from exc
        self.settings = settings or load_settings()

        prefix_dir = resolve_config_dir(self.app_name, self.app_ui, self.settings)
        if prefix_dir is None:
            raise DirectoryResolutionError(
                "Unable to find config directory",
                details={"app_name": self.app_name, "app_ui": self.app_ui.value},
            )
        logger.debug("Resolved config directory for %s: %s", self.app_name, prefix_dir)

        existed = prefix_dir.is_dir()
        try:
            prefix_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise _io_error("Failed to create config directory", prefix_dir, exc) from exc
        if not existed:
            logger.info("Created config directory %s", prefix_dir)
        self.prefix_dir = prefix_dir

    def __repr__(self) -> str:
        return f"Configstore(app_name={self.app_name!r}, prefix_dir={str(self.prefix_dir)!r})"

    def path_for(self, key: str) -> Path:
        """Return the entry file path for ``key``."""
        _check_segment(key, "key")
        return self.prefix_dir / f"{key}{ENTRY_SUFFIX}"

    def set(self, key: str, value: Any) -> None:
        """Serialize ``value`` to the entry file, replacing any previous value."""
        path = self.path_for(key)
        try:
            payload = to_json(value, indent=self.settings.indent)
        except PydanticSerializationError as exc:
            raise SerializationError(
                f"Cannot serialize value for key {key!r}: {exc}",
                details={"key": key, "type": type(value).__name__},
            ) from exc

        if self.settings.atomic_writes:
            self._write_atomic(path, payload)
        else:
            try:
                with open(path, "wb") as f:
                    f.write(payload)
            except OSError as exc:
                raise _io_error(f"Failed to write key {key!r}", path, exc) from exc
        logger.debug("Saved %s (%d bytes)", path, len(payload))

    def _write_atomic(self, path: Path, payload: bytes) -> None:
        tmp_name = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self.prefix_dir, prefix=f".{path.name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "wb") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as exc:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise _io_error(f"Failed to write {path.name}", path, exc) from exc

    def get(self, key: str, type_: Any = Any) -> Any:
        """Read the entry for ``key`` and validate it as ``type_``.

        Raises NotFoundError when the key was never set (or was deleted) and
        SerializationError when the stored JSON does not match ``type_``.
        """
        path = self.path_for(key)
        try:
            with open(path, "rb") as f:
                data = f.read()
        except FileNotFoundError as exc:
            raise NotFoundError(
                f"No value stored for key {key!r}",
                details={"key": key, "path": str(path)},
            ) from exc
        except OSError as exc:
            raise _io_error(f"Failed to read key {key!r}", path, exc) from exc

        try:
            value = TypeAdapter(type_).validate_json(data, strict=True)
        except PydanticUserError as exc:
            raise SerializationError(
                f"Unsupported target type {type_!r}", details={"key": key}
            ) from exc
        except ValidationError as exc:
            raise SerializationError(
                f"Stored value for key {key!r} does not match {type_!r}",
                details={"key": key, "path": str(path), "errors": exc.errors(include_url=False)},
            ) from exc
        logger.debug("Loaded %s", path)
        return value

    def has(self, key: str) -> bool:
        """Check if an entry exists for ``key``."""
        return self.path_for(key).is_file()

    def delete(self, key: str) -> bool:
        """Remove the entry for ``key``. Returns False if there was none."""
        path = self.path_for(key)
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise _io_error(f"Failed to delete key {key!r}", path, exc) from exc
        logger.debug("Deleted %s", path)
        return True

    def keys(self) -> List[str]:
        try:
            names = [p.stem for p in self.prefix_dir.glob(f"*{ENTRY_SUFFIX}") if p.is_file()]
        except OSError as exc:
            raise _io_error("Failed to list entries", self.prefix_dir, exc) from exc
        return sorted(names)
