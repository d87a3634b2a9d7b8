"""User-level path resolution.

Precedence for the user config directory (highest to lowest):
1. Environment variable: PO_CONFIG_DIR
2. ``$XDG_CONFIG_HOME/po``
3. ``~/.config/po``

Precedence for the cache root:
1. Environment variable: PO_CACHE_DIR
2. ``$XDG_CACHE_HOME/po``
3. ``~/.cache/po``

Relative values are treated as relative to the user's home directory (not CWD).
"""

from __future__ import annotations

import os
from pathlib import Path

CONFIG_FILE_NAME = "po.yml"
APP_DIR_NAME = "po"


def _env_path(name: str) -> Path | None:
    raw = os.environ.get(name)
    if not isinstance(raw, str) or not raw.strip():
        return None
    p = Path(raw.strip()).expanduser()
    if not p.is_absolute():
        p = Path.home() / p
    return p


def get_user_config_dir() -> Path:
    """Return the directory holding the user-level ``po.yml``."""
    override = _env_path("PO_CONFIG_DIR")
    if override is not None:
        return override

    xdg = _env_path("XDG_CONFIG_HOME")
    base = xdg if xdg is not None else Path.home() / ".config"
    return base / APP_DIR_NAME


def get_user_config_path() -> Path:
    """Return the fixed well-known location of the user-level document."""
    return get_user_config_dir() / CONFIG_FILE_NAME


def get_cache_dir() -> Path:
    """Return the per-user cache root (not created)."""
    override = _env_path("PO_CACHE_DIR")
    if override is not None:
        return override

    xdg = _env_path("XDG_CACHE_HOME")
    base = xdg if xdg is not None else Path.home() / ".cache"
    return base / APP_DIR_NAME


__all__ = [
    "CONFIG_FILE_NAME",
    "get_user_config_dir",
    "get_user_config_path",
    "get_cache_dir",
]
