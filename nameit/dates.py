"""Date/time formatting collaborator used by ``%`` template segments."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Callable, Protocol

from nameit.errors import InvalidDateFormat

_DIRECTIVE = re.compile(r"%(?P<flag>-?)(?P<directive>:z|\.[369]f|.?)")

# Directives Python's strftime handles identically on every platform.
_NATIVE_DIRECTIVES = set("aAbBcdfGHIjmMpSuUVwWxXyYzZ")

# C-library extensions rendered here so patterns behave the same everywhere.
_EXTENDED_DIRECTIVES: dict[str, Callable[[datetime], str]] = {
    "%": lambda moment: "%",
    "n": lambda moment: "\n",
    "t": lambda moment: "\t",
    "F": lambda moment: moment.strftime("%Y-%m-%d"),
    "T": lambda moment: moment.strftime("%H:%M:%S"),
    "D": lambda moment: moment.strftime("%m/%d/%y"),
    "R": lambda moment: moment.strftime("%H:%M"),
    "h": lambda moment: moment.strftime("%b"),
    "e": lambda moment: f"{moment.day:>2d}",
    "k": lambda moment: f"{moment.hour:>2d}",
    "l": lambda moment: f"{(moment.hour % 12) or 12:>2d}",
    "P": lambda moment: moment.strftime("%p").lower(),
    "C": lambda moment: f"{moment.year // 100:02d}",
    "s": lambda moment: str(int(moment.timestamp())),
    ":z": lambda moment: _colon_offset(moment.strftime("%z")),
    ".3f": lambda moment: f".{moment.microsecond:06d}"[:4],
    ".6f": lambda moment: f".{moment.microsecond:06d}",
    ".9f": lambda moment: f".{moment.microsecond:06d}000",
}


class DateFormatter(Protocol):
    """Abstraction for rendering a timestamp with a pattern string."""

    def format(self, pattern: str, timestamp: datetime) -> str:
        """Return ``timestamp`` rendered with ``pattern`` or raise InvalidDateFormat."""


class StrftimeFormatter:
    """strftime-style formatter with a fixed, validated directive set."""

    def format(self, pattern: str, timestamp: datetime) -> str:
        """Render every ``%`` directive in ``pattern``; other text is kept as-is.

        A ``-`` between ``%`` and the directive drops padding, as in ``%-d``.
        """

        def _render(match: re.Match[str]) -> str:
            directive = match["directive"]
            if directive in _EXTENDED_DIRECTIVES:
                rendered = _EXTENDED_DIRECTIVES[directive](timestamp)
            elif directive and directive in _NATIVE_DIRECTIVES:
                rendered = timestamp.strftime(f"%{directive}")
            else:
                raise InvalidDateFormat(
                    what=f"invalid date format '{pattern}'.",
                    why=f"'{match.group(0)}' is not a supported date/time directive",
                    remediation="use directives such as %Y, %m, %d, %H, %M, %S, %F or %-d",
                )
            if match["flag"]:
                return _strip_padding(rendered)
            return rendered

        return _DIRECTIVE.sub(_render, pattern)


def _strip_padding(value: str) -> str:
    stripped = value.lstrip(" 0")
    if value and not stripped:
        return "0"
    return stripped


def _colon_offset(offset: str) -> str:
    """``+0130`` as ``+01:30``; naive timestamps have no offset."""
    if len(offset) < 5:
        return offset
    return f"{offset[:3]}:{offset[3:5]}"
