"""Render a parsed template into a concrete filename for one file."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from nameit.dates import DateFormatter, StrftimeFormatter
from nameit.prompt import PromptController
from nameit.templating import (
    SEPARATOR,
    DateTime,
    Literal,
    Numbering,
    OldFilenamePart,
    Template,
    Token,
    Variable,
    WholeOldFilename,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RenderContext:
    """Per-file inputs of a render pass."""

    index: int
    old_name: str
    timestamp: datetime


class Resolver:
    """Resolve template tokens, asking the prompt controller for variables."""

    def __init__(self, *, prompt: PromptController, date_formatter: DateFormatter | None = None) -> None:
        self.prompt = prompt
        self.date_formatter = date_formatter or StrftimeFormatter()

    def render(self, template: Template, context: RenderContext) -> str:
        """Return the rendered name; each distinct variable is asked once per call."""
        answers: dict[str, str] = {}
        parts = [self._resolve(token, context, answers) for token in template.tokens]
        rendered = "".join(parts)
        logger.debug("Rendered %r for file #%d (%s) as %r", template.raw, context.index, context.old_name, rendered)
        return rendered

    def _resolve(self, token: Token, context: RenderContext, answers: dict[str, str]) -> str:
        if isinstance(token, Literal):
            return token.text
        if isinstance(token, Numbering):
            return f"{context.index:0{token.width}d}"
        if isinstance(token, DateTime):
            return self.date_formatter.format(token.pattern, context.timestamp)
        if isinstance(token, OldFilenamePart):
            return old_filename_part(context.old_name, token.count)
        if isinstance(token, WholeOldFilename):
            return context.old_name
        if isinstance(token, Variable):
            if token.name not in answers:
                answers[token.name] = self.prompt.choose_variable(token.name)
            return answers[token.name]
        raise TypeError(f"unsupported token: {token!r}")


def old_filename_part(old_name: str, count: int) -> str:
    """First ``count`` underscore-separated parts of ``old_name``, capped at what exists."""
    return SEPARATOR.join(old_name.split(SEPARATOR)[:count])
