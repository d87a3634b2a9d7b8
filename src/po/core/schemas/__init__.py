"""Schema validation for po documents."""
from __future__ import annotations

from .validation import load_schema, validate_document, validate_document_safe

__all__ = ["load_schema", "validate_document", "validate_document_safe"]
