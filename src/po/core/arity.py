"""Argument arity: bounds, call-site count checks, slot filling, usage placeholders.

Every argument definition carries ``min_count`` (>= 0) and ``max_count``
(``None`` means unbounded). A command's positional arguments are matched
against the whole list of definitions:

- ``min_total`` is the sum of all minimums
- ``max_total`` is the sum of all maximums, or ``None`` if any is unbounded

Slot filling is greedy and left-biased: each definition takes as many items as
its own maximum allows while leaving enough items for the minimums of the
definitions after it. When several variadic definitions coexist, only the last
one that still has room can vary in length.
"""
from __future__ import annotations

from typing import List, Optional, Protocol, Sequence

from po.core.exceptions import ArityMismatchError, InvalidArityError


class ArityDefinition(Protocol):
    name: str
    min_count: int
    max_count: Optional[int]


def validate_bounds(min_count: int, max_count: Optional[int], *, name: str = "") -> None:
    """Raise InvalidArityError for negative or inverted bounds."""
    label = f" for argument '{name}'" if name else ""
    ctx = {"argument": name, "min_count": min_count, "max_count": max_count}
    if min_count < 0:
        raise InvalidArityError(f"at_least cannot be less than zero{label}", context=ctx)
    if max_count is not None:
        if max_count < 0:
            raise InvalidArityError(f"at_most cannot be less than zero{label}", context=ctx)
        if max_count < min_count:
            raise InvalidArityError(f"at_most cannot be less than at_least{label}", context=ctx)


def min_total(defs: Sequence[ArityDefinition]) -> int:
    return sum(d.min_count for d in defs)


def max_total(defs: Sequence[ArityDefinition]) -> Optional[int]:
    """Sum of maximums, or None when any definition is unbounded."""
    total = 0
    for d in defs:
        if d.max_count is None:
            return None
        total += d.max_count
    return total


def check_count(defs: Sequence[ArityDefinition], count: int) -> None:
    """Validate a call-site positional count against ``defs``.

    The checks are ordered; the first that applies determines the message.

    Raises:
        ArityMismatchError: With ``kind`` one of none/exact/range/at_most/at_least.
    """
    lo = min_total(defs)
    hi = max_total(defs)
    bounded = hi is not None and hi > 0

    def _fail(kind: str, message: str) -> None:
        raise ArityMismatchError(
            message, kind=kind, expected_min=lo, expected_max=hi, actual=count
        )

    if lo == 0 and hi == 0 and count > 0:
        _fail("none", "should have no arguments")
    if bounded and lo == hi and count != hi:
        _fail("exact", f"requires exactly {hi} arguments")
    if bounded and lo > 0 and (count < lo or count > hi):  # type: ignore[operator]
        _fail("range", f"requires between {lo} and {hi} arguments")
    if bounded and count > hi:  # type: ignore[operator]
        _fail("at_most", f"requires at most {hi} arguments")
    if count < lo:
        _fail("at_least", f"requires at least {lo} arguments")


def fill_slots(defs: Sequence[ArityDefinition], args: Sequence[str]) -> List[List[str]]:
    """Split ``args`` into one slice per definition, left to right.

    The upper bound for definition *i* is
    ``min(max_count_i, available - remaining_min_after_i)``; an unbounded
    definition takes everything not reserved for later definitions.
    Slices are never negative; with insufficient input trailing slices
    come back short or empty (callers run ``check_count`` first).
    """
    slices: List[List[str]] = []
    remaining_min = min_total(defs)
    start = 0
    for d in defs:
        remaining_min -= d.min_count
        limit = max(start, len(args) - remaining_min)
        if d.max_count is None:
            end = limit
        else:
            end = min(start + d.max_count, limit)
        slices.append(list(args[start:end]))
        start = end
    return slices


def format_placeholder(d: ArityDefinition) -> str:
    """Render one definition for a usage line.

    ``NAME`` for exactly one, ``NAME...`` when more than one may be taken,
    wrapped in brackets when zero are required.
    """
    text = d.name.upper()
    if d.min_count > 1 or d.max_count != 1:
        text = f"{text}..."
    if d.min_count < 1:
        text = f"[{text}]"
    return text


def format_usage(name: str, defs: Sequence[ArityDefinition]) -> str:
    """Return ``name`` followed by one placeholder per definition."""
    return " ".join([name, *(format_placeholder(d) for d in defs)])


__all__ = [
    "ArityDefinition",
    "validate_bounds",
    "min_total",
    "max_total",
    "check_count",
    "fill_slots",
    "format_placeholder",
    "format_usage",
]
