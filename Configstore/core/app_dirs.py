"""Platform configuration directory resolution."""

from __future__ import annotations

import logging
import sys
from enum import Enum
from pathlib import Path
from typing import Optional

from platformdirs import user_config_dir
from platformdirs.unix import Unix

from Configstore.config.settings import Settings

logger = logging.getLogger(__name__)


class AppUI(str, Enum):
    """Kind of application; selects the platform convention for config files."""

    COMMAND_LINE = "command_line"
    GRAPHICAL = "graphical"


def _platform_root(app_ui: AppUI) -> str:
    if sys.platform == "darwin" and app_ui is AppUI.COMMAND_LINE:
        # CLI tools on macOS keep config under ~/.config rather than Application Support.
        return Unix().user_config_dir
    return user_config_dir(roaming=True)


def resolve_config_root(app_ui: AppUI, settings: Settings | None = None) -> Optional[Path]:
    """Return the platform configuration root, or None when it cannot be determined."""
    if settings is not None and settings.root_override is not None:
        return settings.root_override.resolve()
    try:
        raw = _platform_root(AppUI(app_ui))
    except (KeyError, RuntimeError, OSError) as exc:
        logger.debug("Config root lookup failed: %s", exc)
        return None
    if not raw:
        return None
    root = Path(raw)
    if not root.is_absolute():
        # Unexpanded '~' when no home directory is known.
        logger.debug("Config root %r is not absolute", raw)
        return None
    return root


def resolve_config_dir(app_name: str, app_ui: AppUI, settings: Settings) -> Optional[Path]:
    """Return <root>/<product namespace>/<app_name>, or None if no root exists."""
    root = resolve_config_root(app_ui, settings)
    if root is None:
        return None
    return root / settings.product_namespace / app_name
