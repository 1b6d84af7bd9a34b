"""Library settings for Configstore, loaded from the packaged YAML defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping

import yaml

from Configstore.errors import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_PATH = Path(__file__).resolve().parent / "settings.yaml"

DEFAULTS: Dict[str, Any] = {
    "product_namespace": "configstore",
    "indent": None,
    "atomic_writes": False,
    "root_override": None,
}

ENV_OVERRIDES = {
    "CONFIGSTORE_NAMESPACE": "product_namespace",
    "CONFIGSTORE_INDENT": "indent",
    "CONFIGSTORE_ATOMIC_WRITES": "atomic_writes",
    "CONFIGSTORE_ROOT": "root_override",
}


@dataclass(frozen=True)
class Settings:
    """Typed view of the YAML defaults and environment overrides."""

    product_namespace: str = "configstore"
    indent: int | None = None
    atomic_writes: bool = False
    root_override: Path | None = None

    def with_overrides(self, **changes: Any) -> "Settings":
        return replace(self, **changes)


def _bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in {"1", "true", "yes", "on"}:
        return True
    if text in {"0", "false", "no", "off", ""}:
        return False
    raise ConfigError(f"Invalid boolean setting: {value!r}", details={"value": value})


def _indent(value: Any) -> int | None:
    if value is None or (isinstance(value, str) and value.strip().lower() in {"", "none", "null"}):
        return None
    try:
        indent = int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid indent setting: {value!r}", details={"value": value}) from exc
    if indent < 0:
        raise ConfigError(f"Indent must not be negative: {indent}", details={"value": value})
    return indent


def _load_yaml(path: Path) -> Dict[str, Any]:
    """Read the defaults file; fall back to built-ins when it is unusable."""
    if not path.exists():
        logger.warning("Settings file %s not found, using built-in defaults", path)
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as exc:
        logger.warning("Failed to load settings from %s, using built-in defaults: %s", path, exc)
        return {}
    if data is None:
        return {}
    if not isinstance(data, dict):
        logger.warning("Settings file %s is not a mapping, using built-in defaults", path)
        return {}
    return data


def build_settings(raw: Mapping[str, Any]) -> Settings:
    unknown = sorted(set(raw) - set(DEFAULTS))
    if unknown:
        logger.warning("Ignoring unknown settings: %s", ", ".join(unknown))
    merged = dict(DEFAULTS)
    merged.update({k: v for k, v in raw.items() if k in DEFAULTS})

    namespace = str(merged["product_namespace"] or "").strip()
    if not namespace:
        raise ConfigError("product_namespace must not be empty")
    root = merged["root_override"]
    root_path = Path(root).expanduser() if root not in (None, "") else None

    return Settings(
        product_namespace=namespace,
        indent=_indent(merged["indent"]),
        atomic_writes=_bool(merged["atomic_writes"]),
        root_override=root_path,
    )


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Build Settings from the YAML defaults with environment overrides applied."""
    raw = _load_yaml(path or SETTINGS_PATH)
    env = os.environ if environ is None else environ
    for env_key, field_name in ENV_OVERRIDES.items():
        value = env.get(env_key)
        if value is not None and value.strip():
            raw[field_name] = value.strip()
    settings = build_settings(raw)
    logger.debug("Loaded settings: %s", settings)
    return settings
