"""Structural validation of po documents.

Documents are validated using JSON Schema. The schema is stored as YAML
(human-readable) in the bundled ``po.data/schemas`` directory and loaded once
per process.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

import jsonschema
import yaml
from jsonschema import Draft202012Validator

from po.core.exceptions import SchemaValidationError
from po.data import get_data_path

CONFIG_SCHEMA = "config.schema.yaml"


@lru_cache(maxsize=8)
def load_schema(schema_name: str = CONFIG_SCHEMA) -> Dict[str, Any]:
    """Load a schema dict from the bundled schema directory.

    Raises:
        FileNotFoundError: If schema file doesn't exist.
        ValueError: If schema is not a YAML mapping.
    """
    schema_path = get_data_path("schemas", schema_name)
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_path}")

    schema = yaml.safe_load(schema_path.read_text(encoding="utf-8"))
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def _format_error(error: jsonschema.ValidationError) -> str:
    if error.path:
        path_str = ".".join(str(p) for p in error.path)
        return f"{path_str}: {error.message}"
    return error.message


def validate_document_safe(payload: Any, schema_name: str = CONFIG_SCHEMA) -> List[str]:
    """Validate a document and return error messages (empty if valid)."""
    validator = Draft202012Validator(load_schema(schema_name))
    return [
        _format_error(error)
        for error in sorted(validator.iter_errors(payload), key=lambda e: str(list(e.path)))
    ]


def validate_document(payload: Any, *, source: str = "", schema_name: str = CONFIG_SCHEMA) -> None:
    """Validate a document, raising on the first batch of errors.

    Raises:
        SchemaValidationError: If validation fails.
    """
    errors = validate_document_safe(payload, schema_name)
    if errors:
        where = f" in {source}" if source else ""
        raise SchemaValidationError(
            f"invalid document{where}: " + "; ".join(errors),
            context={"source": source, "errors": errors},
        )


__all__ = ["load_schema", "validate_document", "validate_document_safe", "CONFIG_SCHEMA"]
