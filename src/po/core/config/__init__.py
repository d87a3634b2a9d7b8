"""
po configuration: document model, caches and the loader.
"""
from __future__ import annotations

from .cache import CacheStore, ImportCache, ScriptCache, hash_key
from .loader import ConfigLoader, fetch_url
from .models import ArgumentDef, CommandDef, Document, FlagDef, ImportRef

__all__ = [
    "ArgumentDef",
    "CacheStore",
    "CommandDef",
    "ConfigLoader",
    "Document",
    "FlagDef",
    "ImportCache",
    "ImportRef",
    "ScriptCache",
    "fetch_url",
    "hash_key",
]
