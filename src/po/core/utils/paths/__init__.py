"""Path resolution for po documents and caches."""
from __future__ import annotations

from .project import find_project_config, is_root_path
from .user import (
    CONFIG_FILE_NAME,
    get_cache_dir,
    get_user_config_dir,
    get_user_config_path,
)

__all__ = [
    "CONFIG_FILE_NAME",
    "find_project_config",
    "get_cache_dir",
    "get_user_config_dir",
    "get_user_config_path",
    "is_root_path",
]
