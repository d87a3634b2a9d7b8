"""Core I/O primitives: read bytes, atomic write bytes, directory management."""
from __future__ import annotations

import fcntl
import os
import tempfile
from pathlib import Path
from typing import List, Optional, Union

PathLike = Union[str, Path]


def ensure_directory(path: Path, create: bool = True) -> Path:
    """Ensure directory exists.

    Args:
        path: Directory path to check/create
        create: If True, create directory if missing; if False, raise if missing

    Returns:
        Path: The directory path

    Raises:
        FileNotFoundError: If create=False and directory doesn't exist
        NotADirectoryError: If path exists but is not a directory
    """
    path = Path(path)

    if path.exists():
        if not path.is_dir():
            raise NotADirectoryError(f"Path exists but is not a directory: {path}")
        return path

    if create:
        path.mkdir(parents=True, exist_ok=True)
        return path
    raise FileNotFoundError(f"Directory does not exist: {path}")


def read_bytes(path: PathLike) -> bytes:
    """Read ``path`` under a shared advisory lock."""
    with open(path, "rb") as f:
        fcntl.flock(f.fileno(), fcntl.LOCK_SH)
        try:
            return f.read()
        finally:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)


def atomic_write_bytes(path: Path, data: bytes, *, mode: int = 0o644) -> None:
    """Write ``data`` to ``path`` atomically using a temp file + fsync + rename.

    - Parent directory is created if missing
    - The temp file lives in the target directory so the rename is atomic
    - ``mode`` is applied before the rename, so readers never observe a
      file without its final permissions
    - Any leftover temp file is cleaned up on failure
    """
    path = Path(path)
    ensure_directory(path.parent)

    tmp_path: Optional[Path] = None
    try:
        with tempfile.NamedTemporaryFile(
            "wb",
            dir=str(path.parent),
            prefix=f".{path.name}.",
            delete=False,
        ) as f:
            tmp_path = Path(f.name)
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        os.chmod(tmp_path, mode)
        os.replace(str(tmp_path), str(path))
        tmp_path = None
    finally:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()


def delete_files_in_dir(directory: Path) -> List[Path]:
    """Delete every regular file directly inside ``directory``.

    Missing directories are treated as empty. Subdirectories are left alone.

    Returns:
        The paths that were removed.
    """
    d = Path(directory)
    if not d.exists():
        return []

    removed: List[Path] = []
    for entry in sorted(d.iterdir()):
        if entry.is_file() or entry.is_symlink():
            entry.unlink()
            removed.append(entry)
    return removed


__all__ = ["ensure_directory", "read_bytes", "atomic_write_bytes", "delete_files_in_dir"]
