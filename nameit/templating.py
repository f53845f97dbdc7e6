"""Filename template grammar: tokens, parser and canonical serialization.

A format string is a sequence of segments separated by ``_``. Text inside
``{...}`` is copied verbatim; every other segment is classified by its sigil:

- ``###``  zero-padded file number
- ``***``  leading underscore parts of the old filename
- ``?``    the whole old filename
- ``%Y``   anything containing ``%`` is a date/time pattern
- other    a named variable answered interactively
"""

from __future__ import annotations

from dataclasses import dataclass

from nameit.errors import ParseError

SEPARATOR = "_"
_ILLEGAL_CHARACTERS = {"/", "\0"}


@dataclass(frozen=True, slots=True)
class Literal:
    """Text emitted verbatim; ``separator`` marks a bare ``_`` between segments."""

    text: str
    separator: bool = False


@dataclass(frozen=True, slots=True)
class Numbering:
    """Current 1-based file index, zero-padded to ``width`` digits."""

    width: int


@dataclass(frozen=True, slots=True)
class DateTime:
    """Date/time pattern formatted against the render timestamp."""

    pattern: str


@dataclass(frozen=True, slots=True)
class OldFilenamePart:
    """First ``count`` underscore-delimited parts of the old filename."""

    count: int


@dataclass(frozen=True, slots=True)
class WholeOldFilename:
    """The old filename without its extension."""


@dataclass(frozen=True, slots=True)
class Variable:
    """Named value picked from history or typed by the user."""

    name: str


Token = Literal | Numbering | DateTime | OldFilenamePart | WholeOldFilename | Variable


@dataclass(frozen=True, slots=True)
class Template:
    """Parsed format string; ``raw`` is its identity in the history store."""

    raw: str
    tokens: tuple[Token, ...]

    @property
    def variables(self) -> list[str]:
        """Variable names in first-appearance order, without duplicates."""
        names: list[str] = []
        for token in self.tokens:
            if isinstance(token, Variable) and token.name not in names:
                names.append(token.name)
        return names

    def to_text(self) -> str:
        """Serialize tokens back into a format string that parses to the same tokens."""
        pieces: list[str] = []
        previous: Token | None = None
        for token in self.tokens:
            # Two segments in a row were split by an empty literal.
            if previous is not None and not isinstance(previous, Literal) and not isinstance(token, Literal):
                pieces.append("{}")
            pieces.append(token_text(token))
            previous = token
        return "".join(pieces)


def token_text(token: Token) -> str:
    """Canonical format-string text for a single token."""
    if isinstance(token, Literal):
        return token.text if token.separator else f"{{{token.text}}}"
    if isinstance(token, Numbering):
        return "#" * token.width
    if isinstance(token, DateTime):
        return token.pattern
    if isinstance(token, OldFilenamePart):
        return "*" * token.count
    if isinstance(token, WholeOldFilename):
        return "?"
    return token.name


def classify_segment(segment: str) -> Token:
    """Map one non-empty underscore-delimited segment to its token kind."""
    if set(segment) == {"#"}:
        return Numbering(width=len(segment))
    if set(segment) == {"*"}:
        return OldFilenamePart(count=len(segment))
    if segment == "?":
        return WholeOldFilename()
    if "%" in segment:
        return DateTime(pattern=segment)
    return Variable(name=segment)


def parse_template(text: str) -> Template:
    """Parse a raw format string into a :class:`Template`.

    Raises:
        ParseError: on an empty format, unbalanced braces, an empty segment
            (leading, trailing or doubled ``_``) or a path separator.
    """
    if not text:
        raise _parse_error(text, "format is empty", "type at least one segment, for example NAME_###")

    tokens: list[Token] = []
    segment: list[str] = []
    literal: list[str] | None = None
    # Set right after a closing '}': a '_' there needs no segment before it.
    after_literal = False

    for position, char in enumerate(text):
        if char in _ILLEGAL_CHARACTERS:
            raise _parse_error(
                text,
                f"illegal character {char!r} at position {position}",
                "remove path separators from the format; use --destination to choose a directory",
            )
        if literal is not None:
            if char == "{":
                raise _parse_error(text, f"unexpected '{{' inside literal at position {position}", "literals cannot nest")
            if char == "}":
                if literal:
                    tokens.append(Literal(text="".join(literal)))
                literal = None
                after_literal = True
            else:
                literal.append(char)
            continue

        if char == "}":
            raise _parse_error(text, f"unexpected '}}' at position {position}", "open the literal with '{' first")
        if char == "{":
            if segment:
                tokens.append(classify_segment("".join(segment)))
                segment = []
            literal = []
        elif char == SEPARATOR:
            if segment:
                tokens.append(classify_segment("".join(segment)))
                segment = []
            elif not after_literal:
                raise _parse_error(text, f"empty segment before '_' at position {position}", "remove the extra '_'")
            tokens.append(Literal(text=SEPARATOR, separator=True))
            after_literal = False
            continue
        else:
            segment.append(char)
        after_literal = False

    if literal is not None:
        raise _parse_error(text, "unclosed '{'", "close the literal with '}'")
    if segment:
        tokens.append(classify_segment("".join(segment)))
    elif text.endswith(SEPARATOR):
        raise _parse_error(text, "empty segment after trailing '_'", "remove the trailing '_'")
    if not tokens:
        raise _parse_error(text, "format renders an empty name", "add a variable, number or literal text")

    return Template(raw=text, tokens=tuple(tokens))


def _parse_error(text: str, why: str, how_to_fix: str) -> ParseError:
    return ParseError(what=f"invalid format '{text}'.", why=why, remediation=how_to_fix)
