"""Configuration loading, import resolution and merging.

Sources (highest to lowest priority):
1. Project document: nearest ``po.yml`` walking up from the working directory
2. User document: ``<user-config-dir>/po.yml``

Each source is resolved on its own before the two are merged:

- ``imports`` are expanded depth-first in declared order
- Sibling imports merge left to right, so the last declared wins
- The importing document is merged last, so it always wins over its imports
- A ``file`` import resolves relative to the importing document's directory
- A ``url`` import is served from the import cache, fetched (and cached) on miss
- An import already present in the chain of documents currently being expanded
  is a cycle; a ``file`` import below a ``url`` import is rejected

Any read, parse, validation or resolution failure aborts the whole load.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen

import yaml

from po import __version__
from po.core.config.cache import CacheStore
from po.core.config.models import Document, ImportRef
from po.core.exceptions import (
    CyclicImportError,
    DocumentParseError,
    DocumentReadError,
    ImportFetchError,
    UrlFileImportError,
)
from po.core.schemas import validate_document
from po.core.utils.io import parse_yaml_bytes, read_bytes
from po.core.utils.merge import deep_merge
from po.core.utils.paths import find_project_config, get_user_config_path

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], bytes]

POHOME_ENV = "POHOME"
POPATH_ENV = "POPATH"

_MAP_KEYS = ("aliases", "environment", "commands")
_COMMAND_MAP_KEYS = ("flags", "environment", "commands")


def fetch_url(url: str) -> bytes:
    """Fetch ``url`` synchronously. No timeout: a hang blocks the invocation."""
    req = Request(url, headers={"User-Agent": f"po/{__version__}"})
    try:
        with urlopen(req) as resp:
            return resp.read()
    except HTTPError as exc:
        raise ImportFetchError(
            f"failed to fetch import {url}: HTTP {exc.code}", context={"url": url}
        ) from exc
    except (URLError, OSError, ValueError) as exc:
        raise ImportFetchError(
            f"failed to fetch import {url}: {exc}", context={"url": url}
        ) from exc


def _normalize_command(raw: Any) -> Dict[str, Any]:
    """Replace null maps with empty ones and drop null scalars."""
    if raw is None:
        return {}
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        if key in _COMMAND_MAP_KEYS:
            value = dict(value or {})
            if key == "commands":
                value = {name: _normalize_command(child) for name, child in value.items()}
            elif key == "flags":
                value = {name: dict(flag or {}) for name, flag in value.items()}
            out[key] = value
        elif value is not None:
            out[key] = value
    return out


def normalize_document(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Return a copy of ``raw`` where merge-relevant nulls are made explicit.

    A null map (``commands:`` with nothing under it) becomes ``{}`` so that it
    merges as "nothing to add" instead of erasing the base document's map.
    """
    out: Dict[str, Any] = {}
    for key, value in raw.items():
        if key == "imports":
            out[key] = list(value or [])
        elif key in _MAP_KEYS:
            value = dict(value or {})
            if key == "commands":
                value = {name: _normalize_command(cmd) for name, cmd in value.items()}
            out[key] = value
        elif value is not None:
            out[key] = value
    return out


class ConfigLoader:
    """Discover, read, import-resolve and merge ``po.yml`` documents."""

    def __init__(
        self,
        *,
        cwd: Optional[Path] = None,
        user_config_path: Optional[Path] = None,
        cache: Optional[CacheStore] = None,
        fetcher: Optional[Fetcher] = None,
    ) -> None:
        self.cwd = Path(cwd) if cwd is not None else Path.cwd()
        self.user_config_path = (
            Path(user_config_path) if user_config_path is not None else get_user_config_path()
        )
        self.cache = cache or CacheStore()
        self.fetcher: Fetcher = fetcher or fetch_url
        self.project_config_path: Optional[Path] = None

    # ========== Public API ==========

    def load_all(self) -> Optional[Document]:
        """Load the merged document, or None when neither source exists."""
        raw = self.load_all_raw()
        if raw is None:
            return None
        return Document.from_mapping(raw)

    def load_all_raw(self) -> Optional[Dict[str, Any]]:
        """Load and merge the import-resolved user and project mappings."""
        user_cfg = self.load_root(self.user_config_path)

        self.project_config_path = find_project_config(self.cwd)
        project_cfg = None
        if self.project_config_path is not None:
            project_cfg = self.load_root(self.project_config_path)

        if user_cfg is None and project_cfg is None:
            logger.debug("no po.yml found (user: %s, cwd: %s)", self.user_config_path, self.cwd)
            return None
        if user_cfg is None:
            return project_cfg
        if project_cfg is None:
            return user_cfg
        return deep_merge(user_cfg, project_cfg)

    def load_root(self, path: Path) -> Optional[Dict[str, Any]]:
        """Load one root document with all of its imports resolved.

        A missing file is not an error and yields None.
        """
        path = Path(path)
        if not path.is_file():
            return None
        root = ImportRef(file=str(path.resolve()))
        raw = self.read_document(root)
        return self._resolve_imports(raw, (root,))

    def context_environment(self) -> Dict[str, str]:
        """Variables describing where the documents were found (POHOME/POPATH)."""
        env = {POHOME_ENV: str(self.user_config_path.parent)}
        if self.project_config_path is not None:
            env[POPATH_ENV] = str(self.project_config_path.parent)
        return env

    # ========== Reading ==========

    def read_document(self, ref: ImportRef) -> Dict[str, Any]:
        """Read, parse and validate the document behind an already-resolved ref."""
        data = self._read_url(ref.url) if ref.is_url else self._read_file(Path(ref.file))

        try:
            raw = parse_yaml_bytes(data)
        except (yaml.YAMLError, UnicodeDecodeError) as exc:
            raise DocumentParseError(
                f"cannot parse {ref.locator}: {exc}", context={"source": ref.locator}
            ) from exc

        if raw is None:
            raw = {}
        if not isinstance(raw, dict):
            raise DocumentParseError(
                f"cannot parse {ref.locator}: document must be a mapping, got {type(raw).__name__}",
                context={"source": ref.locator},
            )

        validate_document(raw, source=ref.locator)
        normalized = normalize_document(raw)
        # Per-document validation of names, arity bounds and import refs.
        Document.from_mapping(normalized)
        return normalized

    def _read_file(self, path: Path) -> bytes:
        logger.debug("reading %s", path)
        try:
            return read_bytes(path)
        except OSError as exc:
            raise DocumentReadError(
                f"cannot read {path}: {exc.strerror or exc}", context={"path": str(path)}
            ) from exc

    def _read_url(self, url: str) -> bytes:
        try:
            cached = self.cache.imports.get(url)
        except OSError as exc:
            raise DocumentReadError(
                f"cannot read cached import {url}: {exc.strerror or exc}",
                context={"url": url, "path": str(self.cache.imports.path_for(url))},
            ) from exc
        if cached is not None:
            return cached

        logger.debug("fetching %s", url)
        data = self.fetcher(url)
        try:
            self.cache.imports.put(url, data)
        except OSError as exc:
            raise DocumentReadError(
                f"cannot cache import {url}: {exc}", context={"url": url}
            ) from exc
        return data

    # ========== Import resolution ==========

    def _resolve_ref(self, ref: ImportRef, parent: ImportRef) -> ImportRef:
        if ref.is_url:
            return ref
        path = Path(ref.file).expanduser()
        if not path.is_absolute():
            path = Path(parent.file).parent / path
        return ImportRef(file=str(path.resolve()))

    def _resolve_imports(
        self, raw: Mapping[str, Any], chain: Tuple[ImportRef, ...]
    ) -> Dict[str, Any]:
        parent = chain[-1]
        merged: Dict[str, Any] = {}

        for entry in raw.get("imports") or []:
            ref = ImportRef.from_mapping(entry or {})
            ref.validate()

            if ref.file and parent.is_url:
                raise UrlFileImportError(
                    f"cannot load a file import referenced from a URL: {ref.file} (in {parent.url})",
                    context={"file": ref.file, "parent": parent.url},
                )

            resolved = self._resolve_ref(ref, parent)
            if resolved in chain:
                cycle = " -> ".join(r.locator for r in (*chain, resolved))
                raise CyclicImportError(
                    f"cyclic dependency in imports: {cycle}",
                    context={"chain": [r.locator for r in chain], "import": resolved.locator},
                )

            logger.debug("importing %s into %s", resolved.locator, parent.locator)
            child = self.read_document(resolved)
            child = self._resolve_imports(child, (*chain, resolved))
            merged = deep_merge(merged, child)

        own = {k: v for k, v in raw.items() if k != "imports"}
        return deep_merge(merged, own)


__all__ = [
    "ConfigLoader",
    "Fetcher",
    "fetch_url",
    "normalize_document",
    "POHOME_ENV",
    "POPATH_ENV",
]
