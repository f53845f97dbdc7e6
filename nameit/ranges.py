"""Inclusive index range expressions used to prune stored history."""

from __future__ import annotations

import re
from typing import Sequence, TypeVar

from nameit.errors import InvalidRangeInput

T = TypeVar("T")

_PART = re.compile(r"^(?P<start>\d*)(?P<dash>-?)(?P<end>\d*)$")


def parse_range_expression(text: str, *, total: int) -> set[int] | None:
    """Return the 1-based indices an expression keeps, or ``None`` for "no change".

    Grammar, per comma-separated part: ``a-b`` keeps ``[a, b]``, ``-b`` keeps
    ``[1, b]``, ``a-`` keeps ``[a, total]`` and a bare ``n`` keeps ``n``.
    Ends beyond ``total`` are capped.
    """
    cleaned = text.strip()
    if not cleaned:
        return None

    keep: set[int] = set()
    for raw_part in cleaned.split(","):
        part = raw_part.strip()
        match = _PART.match(part)
        if match is None or not (match["start"] or match["end"]):
            raise _range_error(text, f"'{part}' is not a number or a start-end range")
        if not match["dash"]:
            start = end = int(match["start"])
        else:
            start = int(match["start"]) if match["start"] else 1
            end = int(match["end"]) if match["end"] else total
        if start < 1:
            raise _range_error(text, "indices start at 1")
        if match["dash"] and match["end"] and start > end:
            raise _range_error(text, f"range start {start} is after its end {end}")
        keep.update(range(start, min(end, total) + 1))
    return keep


def filter_by_range(items: Sequence[T], keep: set[int] | None) -> list[T]:
    """Keep the items whose 1-based position is in ``keep``; ``None`` keeps all."""
    if keep is None:
        return list(items)
    return [item for position, item in enumerate(items, start=1) if position in keep]


def _range_error(text: str, why: str) -> InvalidRangeInput:
    return InvalidRangeInput(
        what=f"invalid range '{text.strip()}'.",
        why=why,
        remediation="use forms like 2-4, -5, 3- or 1,4-6; leave empty to keep everything",
    )
