"""Canonical deep merge for configuration documents.

Merge semantics:
- Mappings are combined key-by-key, recursively
- Lists are replaced wholesale by the override (never concatenated)
- Scalars in the override win
"""
from __future__ import annotations

import copy
from typing import Any, Dict, Mapping


def deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge mappings without mutating (or aliasing) inputs.

    Args:
        base: Base mapping (lower priority)
        override: Override mapping (higher priority)

    Returns:
        New merged dictionary

    Example:
        >>> base = {"a": 1, "b": {"c": 2}, "l": [1, 2]}
        >>> override = {"b": {"d": 3}, "l": [9]}
        >>> deep_merge(base, override)
        {'a': 1, 'b': {'c': 2, 'd': 3}, 'l': [9]}
    """
    result: Dict[str, Any] = {k: copy.deepcopy(v) for k, v in (base or {}).items()}
    for key, value in (override or {}).items():
        current = result.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            result[key] = deep_merge(current, value)
        else:
            result[key] = copy.deepcopy(value)
    return result


__all__ = ["deep_merge"]
