"""YAML parsing helpers."""
from __future__ import annotations

from typing import Any

import yaml


def parse_yaml_bytes(data: bytes) -> Any:
    """Parse YAML from raw bytes.

    Parse errors always propagate; a broken document aborts the load.

    Args:
        data: Raw document bytes (UTF-8)

    Returns:
        Parsed data (``None`` for an empty document)

    Raises:
        yaml.YAMLError: If the document is not valid YAML
        UnicodeDecodeError: If the bytes are not UTF-8
    """
    return yaml.safe_load(data.decode("utf-8"))


__all__ = ["parse_yaml_bytes"]
