"""Project-level document discovery.

The project document is the nearest ``po.yml`` found by walking from the
current working directory up towards the filesystem root.
"""
from __future__ import annotations

from pathlib import Path
from typing import Optional

from .user import CONFIG_FILE_NAME


def is_root_path(path: Path) -> bool:
    """Return True when ``path`` is a filesystem root (its own parent)."""
    return path == path.parent


def find_project_config(
    start: Optional[Path] = None,
    filename: str = CONFIG_FILE_NAME,
) -> Optional[Path]:
    """Return the nearest ancestor ``filename`` starting at ``start`` (default: CWD).

    The walk checks ``start`` itself first and stops at the filesystem root
    (inclusive). Returns None when no ancestor contains the file.
    """
    current = Path(start) if start is not None else Path.cwd()
    current = current.resolve()

    while True:
        candidate = current / filename
        if candidate.is_file():
            return candidate
        if is_root_path(current):
            return None
        current = current.parent


__all__ = ["find_project_config", "is_root_path"]
