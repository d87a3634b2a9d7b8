"""I/O utilities for po.

Re-exports the primitives used by the loader and the caches.
"""
from __future__ import annotations

from .core import atomic_write_bytes, delete_files_in_dir, ensure_directory, read_bytes
from .yaml import parse_yaml_bytes

__all__ = [
    "atomic_write_bytes",
    "delete_files_in_dir",
    "ensure_directory",
    "parse_yaml_bytes",
    "read_bytes",
]
