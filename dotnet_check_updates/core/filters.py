"""
Package name filters.

A filter is either a case-insensitive substring test or, when the pattern
contains ``*``, an anchored case-insensitive glob.

Include filters are combined with AND, exclude filters with OR, so
``--include "Serilog,Polly"`` selects no package.
"""

from __future__ import annotations

import re
from typing import Iterable, List, Optional, Pattern, Sequence

_SPLIT_RE = re.compile(r"[\s,]+")


class Filter:
    """Match package names against a user-supplied pattern.

    Example:
        >>> Filter("Microsoft.*").is_match("microsoft.extensions.logging")
        True
        >>> Filter("Logging").is_match("Serilog")
        False
    """

    __slots__ = ("pattern", "_regex")

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self._regex: Optional[Pattern[str]] = None

        if "*" in pattern:
            self._regex = re.compile(
                "^" + re.escape(pattern).replace(r"\*", ".*") + "$",
                re.IGNORECASE | re.DOTALL,
            )

    def is_match(self, value: str) -> bool:
        if self._regex is not None:
            return self._regex.match(value) is not None
        return self.pattern.lower() in value.lower()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Filter):
            return NotImplemented
        return self.pattern == other.pattern

    def __hash__(self) -> int:
        return hash(self.pattern)

    def __repr__(self) -> str:
        regex = self._regex.pattern if self._regex is not None else "(null)"
        return f"Filter({self.pattern}, {regex})"


def split_filters(values: Optional[Iterable[str]]) -> List[Filter]:
    """Split raw option values into sorted, de-duplicated filters.

    Each value may hold several patterns separated by spaces or commas.

    Args:
        values: Raw ``--include`` / ``--exclude`` values.

    Returns:
        One :class:`Filter` per distinct pattern, ordered case-insensitively.
    """
    if not values:
        return []

    patterns = set()
    for value in values:
        patterns.update(part for part in _SPLIT_RE.split(value) if part)

    return [Filter(p) for p in sorted(patterns, key=lambda p: (p.upper(), p))]


def is_included(
    name: str,
    include: Sequence[Filter],
    exclude: Sequence[Filter],
) -> bool:
    """Return ``True`` when ``name`` passes both filter lists.

    A name must match every include filter and no exclude filter. Empty
    lists impose no restriction. Values split by :func:`split_filters`
    stay AND-ed: ``Serilog,Polly`` matches neither package.
    """
    if include and not all(f.is_match(name) for f in include):
        return False
    if exclude and any(f.is_match(name) for f in exclude):
        return False
    return True
