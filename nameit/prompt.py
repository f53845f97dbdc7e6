"""Interactive terminal prompts backed by the history store."""

from __future__ import annotations

import logging
import sys
from typing import Callable, Sequence

from nameit.errors import InvalidChoiceInput, InvalidRangeInput, PromptCancelled
from nameit.history import HistoryStore
from nameit.ranges import parse_range_expression
from nameit.templating import Template, parse_template

NEW_ENTRY_SHORTCUT = "/"

logger = logging.getLogger(__name__)


class PromptController:
    """Numbered-choice prompts with a "new entry" path and history recording.

    Each ``select`` call moves through prompting, validating and committed
    states: invalid answers are reported and asked again, only a valid answer
    leaves the loop.
    """

    def __init__(
        self,
        *,
        store: HistoryStore,
        max_choices: int = 20,
        repeat_last: bool = False,
        input_fn: Callable[[str], str] = input,
    ) -> None:
        self.store = store
        self.max_choices = max_choices
        self.repeat_last = repeat_last
        self._input = input_fn

    def choose_variable(self, name: str) -> str:
        """Pick or type a value for ``name``; typed values are added to its history."""
        value, is_new = self.select(name, self.store.choices_for(name), last=self.store.last_choice(name))
        if is_new:
            self.store.record_choice(name, value)
        self.store.mark_choice_used(name, value)
        return value

    def choose_format(self) -> Template:
        """Pick or type a format, parse it and record it as used."""
        value, _ = self.select("format", self.store.formats, last=self.store.last_format)
        template = parse_template(value)
        self.store.record_format(template)
        self.store.mark_format_used(template.raw)
        return template

    def select(self, label: str, options: Sequence[str], *, last: str | None = None) -> tuple[str, bool]:
        """Return ``(value, is_new)`` for one answered prompt.

        ``last`` is the value used most recently; it is the default answer
        and what ``repeat_last`` reuses. Without it the newest entry is used.
        """
        if not options:
            return self._read_new_entry(label), True
        default = _default_position(options, last)
        if self.repeat_last:
            logger.info("Reusing last %s: %r", label, options[default - 1])
            return options[default - 1], False

        self._show_choices(label, options)
        while True:
            answer = self._read(f"Select <{default}>: ").strip()
            try:
                choice = _interpret_choice(answer or str(default), options)
            except InvalidChoiceInput as exc:
                print(str(exc), file=sys.stderr)
                continue
            if choice is None:
                return self._read_new_entry(label), True
            return choice

    def confirm(self, question: str) -> bool:
        """Yes/no question defaulting to no."""
        answer = self._read(f"{question} <y/N>? ").strip().lower()
        return answer in {"y", "yes"}

    def read_range(self, label: str, options: Sequence[str]) -> set[int] | None:
        """List ``options`` and ask which indices to keep; ``None`` means keep all."""
        print(f"Entries for {label}:")
        for position, value in enumerate(options, start=1):
            print(f"  [{position}] {value}")
        while True:
            answer = self._read(f"Keep <1-{len(options)}>: ")
            try:
                return parse_range_expression(answer, total=len(options))
            except InvalidRangeInput as exc:
                print(str(exc), file=sys.stderr)

    def _show_choices(self, label: str, options: Sequence[str]) -> None:
        first_shown = max(0, len(options) - self.max_choices)
        print(f"Choices for {label}:")
        print("  [0] <new entry>")
        if first_shown:
            print(f"  ... {first_shown} older entries hidden")
        for position in range(first_shown, len(options)):
            print(f"  [{position + 1}] {options[position]}")

    def _read_new_entry(self, label: str) -> str:
        while True:
            try:
                return _validate_new_value(label, self._read(f"Input {label}: "))
            except InvalidChoiceInput as exc:
                print(str(exc), file=sys.stderr)

    def _read(self, prompt: str) -> str:
        try:
            return self._input(prompt)
        except (EOFError, KeyboardInterrupt) as exc:
            raise PromptCancelled(
                what="prompt cancelled.",
                why="input ended before an answer was given",
                remediation="run nameit again and answer the prompts",
            ) from exc


def _default_position(options: Sequence[str], last: str | None) -> int:
    """1-based position of the latest occurrence of ``last``, else of the newest entry."""
    for position in range(len(options), 0, -1):
        if options[position - 1] == last:
            return position
    return len(options)


def _validate_new_value(label: str, raw: str) -> str:
    value = raw.strip()
    if not value:
        raise InvalidChoiceInput(
            what=f"empty value for {label}.",
            why="a new entry needs some text",
            remediation="type the value to use",
        )
    if any(char in value for char in ("/", "\0")):
        raise InvalidChoiceInput(
            what=f"invalid value '{value}' for {label}.",
            why="values become part of a filename and cannot contain '/'",
            remediation="use '-' or another character instead of '/'",
        )
    return value


def _interpret_choice(answer: str, options: Sequence[str]) -> tuple[str, bool] | None:
    """Validate one answer; ``None`` asks for a new entry."""
    if answer.startswith(NEW_ENTRY_SHORTCUT):
        if not answer[len(NEW_ENTRY_SHORTCUT):].strip():
            raise InvalidChoiceInput(
                what="empty value after '/'.",
                why="'/' must be followed by the new value",
                remediation="type /<value> or 0 to enter a new value",
            )
        return _validate_new_value("new entry", answer[len(NEW_ENTRY_SHORTCUT):]), True
    if not (answer.isascii() and answer.isdigit()):
        raise InvalidChoiceInput(
            what=f"invalid choice '{answer}'.",
            why="answer is not a number",
            remediation=f"enter a number from 0 to {len(options)} or /<new value>",
        )
    index = int(answer)
    if index == 0:
        return None
    if index > len(options):
        raise InvalidChoiceInput(
            what=f"invalid choice '{answer}'.",
            why=f"only {len(options)} choices are listed",
            remediation=f"enter a number from 0 to {len(options)}",
        )
    return options[index - 1], False
