"""Command graph materialization."""
from __future__ import annotations

from .graph import (
    SEPARATOR,
    CommandGraph,
    FlagBinding,
    MaterializedCommand,
    materialize,
)

__all__ = ["SEPARATOR", "CommandGraph", "FlagBinding", "MaterializedCommand", "materialize"]
