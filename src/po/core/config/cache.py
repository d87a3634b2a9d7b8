"""On-disk, content-addressed caches.

Two independent namespaces live under the per-user cache root:

- ``imports/``: bytes of fetched remote imports, keyed by a hash of the URL
- ``scripts/``: generated executable scripts, keyed by a hash of the script text

Entries never expire on their own; they are removed only by ``CacheStore.clear()``.
Writes are atomic and idempotent (the same key always maps to the same
content), so concurrent invocations racing on a write at worst repeat it.
"""
from __future__ import annotations

import hashlib
import logging
from pathlib import Path
from typing import List, Optional

from po.core.utils.io import atomic_write_bytes, delete_files_in_dir, read_bytes
from po.core.utils.paths import get_cache_dir

logger = logging.getLogger(__name__)

IMPORTS_NAMESPACE = "imports"
SCRIPTS_NAMESPACE = "scripts"


def hash_key(value: str) -> str:
    """Stable SHA-256 hex digest of ``value``."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class KeyedFileCache:
    """A directory of files named by the hash of their key."""

    def __init__(self, directory: Path, *, mode: int = 0o644) -> None:
        self.directory = Path(directory)
        self.mode = mode

    def path_for(self, key: str) -> Path:
        return self.directory / hash_key(key)

    def get(self, key: str) -> Optional[bytes]:
        path = self.path_for(key)
        if not path.exists():
            logger.debug("cache miss %s (%s)", path.name, self.directory.name)
            return None
        logger.debug("cache hit %s (%s)", path.name, self.directory.name)
        return read_bytes(path)

    def put(self, key: str, data: bytes) -> Path:
        path = self.path_for(key)
        atomic_write_bytes(path, data, mode=self.mode)
        logger.debug("cache write %s (%s, %d bytes)", path.name, self.directory.name, len(data))
        return path

    def clear(self) -> List[Path]:
        return delete_files_in_dir(self.directory)


class ImportCache(KeyedFileCache):
    """Cached bytes of remote imports, keyed by locator (URL)."""


class ScriptCache(KeyedFileCache):
    """Executable script files, keyed by full script text."""

    def __init__(self, directory: Path) -> None:
        super().__init__(directory, mode=0o755)

    def ensure(self, script_text: str) -> Path:
        """Return the cached executable for ``script_text``, writing it if absent."""
        path = self.path_for(script_text)
        if path.exists():
            logger.debug("script cache hit %s", path.name)
            return path
        return self.put(script_text, script_text.encode("utf-8"))


class CacheStore:
    """Both cache namespaces rooted at one directory."""

    def __init__(self, root: Optional[Path] = None) -> None:
        self.root = Path(root) if root is not None else get_cache_dir()
        self.imports = ImportCache(self.root / IMPORTS_NAMESPACE)
        self.scripts = ScriptCache(self.root / SCRIPTS_NAMESPACE)

    def clear(self) -> List[Path]:
        """Delete every cached import and script; leaves anything else alone."""
        removed = self.imports.clear() + self.scripts.clear()
        logger.debug("cleared %d cache files under %s", len(removed), self.root)
        return removed


__all__ = [
    "IMPORTS_NAMESPACE",
    "SCRIPTS_NAMESPACE",
    "hash_key",
    "KeyedFileCache",
    "ImportCache",
    "ScriptCache",
    "CacheStore",
]
