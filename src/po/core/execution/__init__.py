"""Script execution bridge."""
from __future__ import annotations

from .bridge import (
    ARGS_ENV,
    DEFAULT_INTERPRETER,
    FLAGS_ENV,
    ScriptSpec,
    build_environment,
    build_script,
    effective_flag_values,
    run,
)

__all__ = [
    "ARGS_ENV",
    "DEFAULT_INTERPRETER",
    "FLAGS_ENV",
    "ScriptSpec",
    "build_environment",
    "build_script",
    "effective_flag_values",
    "run",
]
