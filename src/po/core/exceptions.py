from __future__ import annotations

from typing import Any, Dict, Mapping


class PoError(Exception):
    """Base exception for po."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


# ---------------------------------------------------------------------------
# Validation (detected at load/materialize time)
# ---------------------------------------------------------------------------


class ValidationError(PoError, ValueError):
    """Raised when a document declares something structurally invalid."""


class CommandNameError(ValidationError):
    """Raised for command or alias names that do not match the name pattern."""


class InvalidArityError(ValidationError):
    """Raised when an argument declares impossible min/max bounds."""


class SchemaValidationError(ValidationError):
    """Raised when a document does not conform to the bundled schema."""


class UnknownFlagTypeError(ValidationError):
    """Raised when a flag declares a type other than string, int or bool."""


# ---------------------------------------------------------------------------
# Resolution (abort the whole config load)
# ---------------------------------------------------------------------------


class ResolutionError(PoError):
    """Raised when the configuration sources cannot be resolved."""


class DocumentReadError(ResolutionError):
    """Raised when a document file exists but cannot be read."""


class DocumentParseError(ResolutionError):
    """Raised when a document is not valid YAML or not a mapping."""


class ImportReferenceError(ResolutionError, ValidationError):
    """Raised for an import with both or neither of ``file``/``url`` set."""


class CyclicImportError(ResolutionError):
    """Raised when an import already appears in the chain being expanded."""


class UrlFileImportError(ResolutionError):
    """Raised when a ``file`` import is reached through a ``url`` import."""


class ImportFetchError(ResolutionError):
    """Raised when a remote import cannot be fetched."""


# ---------------------------------------------------------------------------
# Invocation
# ---------------------------------------------------------------------------


class ArityMismatchError(PoError):
    """Raised when a command is invoked with the wrong number of arguments.

    ``kind`` is one of ``none``, ``exact``, ``range``, ``at_most``, ``at_least``.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: str,
        expected_min: int,
        expected_max: int | None,
        actual: int,
    ) -> None:
        super().__init__(
            message,
            context={
                "kind": kind,
                "expected_min": expected_min,
                "expected_max": expected_max,
                "actual": actual,
            },
        )
        self.kind = kind


class ExecutionError(PoError, RuntimeError):
    """Raised when a command script cannot be materialized or executed."""


class UsageError(PoError):
    """Raised for command lines the front-end cannot parse (unknown flag, bad value)."""


class LogSetupError(PoError):
    """Raised when the configured log destination cannot be opened."""


__all__ = [
    "PoError",
    "ValidationError",
    "CommandNameError",
    "InvalidArityError",
    "SchemaValidationError",
    "UnknownFlagTypeError",
    "ResolutionError",
    "DocumentReadError",
    "DocumentParseError",
    "ImportReferenceError",
    "CyclicImportError",
    "UrlFileImportError",
    "ImportFetchError",
    "ArityMismatchError",
    "ExecutionError",
    "UsageError",
    "LogSetupError",
]
