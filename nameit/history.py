"""Persistent history of used formats and per-variable choices."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Iterable, Mapping

import yaml

from nameit.errors import ParseError, PersistenceError
from nameit.ranges import filter_by_range
from nameit.templating import Template, parse_template

SCHEMA_VERSION = 1

logger = logging.getLogger(__name__)


def default_history_path() -> Path:
    """Per-user store location, overridable with ``NAMEIT_HISTORY``."""
    override = os.environ.get("NAMEIT_HISTORY")
    if override:
        return Path(override).expanduser()
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "nameit" / "history.yaml"



class HistoryStore:
    """In-memory copy of the history file with a single commit point.

    ``formats`` lists template strings in first-use order; the variables of
    each one always come from parsing it, never from the file. ``choices``
    maps each variable name to the values typed for it, oldest first. Display
    indices are 1-based positions in those lists. The format and values used
    most recently are tracked apart from the lists, which stay append-only.
    """

    def __init__(
        self,
        *,
        path: str | Path,
        formats: Iterable[str] | None = None,
        choices: Mapping[str, list[str]] | None = None,
        last_format: str | None = None,
        last_choices: Mapping[str, str] | None = None,
    ) -> None:
        self.path = Path(path)
        self._formats: dict[str, list[str]] = {text: parse_template(text).variables for text in (formats or ())}
        self._choices: dict[str, list[str]] = {key: list(value) for key, value in (choices or {}).items()}
        self._last_format = last_format
        self._last_choices: dict[str, str] = dict(last_choices or {})
        self.dirty = False

    @classmethod
    def load(cls, path: str | Path) -> HistoryStore:
        """Read the store; a missing file yields an empty store."""
        store_path = Path(path)
        if not store_path.exists():
            logger.warning("History file %s not found; starting with empty history", store_path)
            return cls(path=store_path)

        try:
            content = yaml.safe_load(store_path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise PersistenceError(
                what=f"cannot read history file: {store_path}",
                why=str(exc),
                remediation="check the file permissions or point --history to another file",
            ) from exc
        except yaml.YAMLError as exc:
            raise _corrupt(store_path, f"file is not valid YAML ({exc})") from exc

        if content is None:
            return cls(path=store_path)
        formats, choices, last = _validate_document(store_path, content)
        logger.debug("Loaded %d formats and %d variables from %s", len(formats), len(choices), store_path)
        try:
            return cls(
                path=store_path,
                formats=formats,
                choices=choices,
                last_format=last.get("format"),
                last_choices=last.get("choices"),
            )
        except ParseError as exc:
            raise _corrupt(store_path, f"stored format is invalid ({exc.why})") from exc

    @property
    def formats(self) -> list[str]:
        return list(self._formats)

    @property
    def variables(self) -> list[str]:
        return list(self._choices)

    @property
    def last_format(self) -> str | None:
        """Format used most recently, if it is still stored."""
        return self._last_format if self._last_format in self._formats else None

    def variables_for(self, format_text: str) -> list[str]:
        return list(self._formats.get(format_text, []))

    def choices_for(self, name: str) -> list[str]:
        return list(self._choices.get(name, []))

    def last_choice(self, name: str) -> str | None:
        """Value of ``name`` used most recently, if it is still stored."""
        value = self._last_choices.get(name)
        return value if value in self._choices.get(name, []) else None

    def record_format(self, template: Template) -> None:
        """Append a template on first use; known templates keep their index."""
        if template.raw in self._formats:
            return
        self._formats[template.raw] = template.variables
        self.dirty = True
        logger.info("Recorded new format %r", template.raw)

    def record_choice(self, name: str, value: str) -> bool:
        """Append ``value`` unless it already is the latest choice; return whether it was added."""
        values = self._choices.setdefault(name, [])
        if values and values[-1] == value:
            return False
        values.append(value)
        self.dirty = True
        logger.info("Recorded choice %r for %s", value, name)
        return True

    def mark_format_used(self, format_text: str) -> None:
        if self._last_format != format_text:
            self._last_format = format_text
            self.dirty = True

    def mark_choice_used(self, name: str, value: str) -> None:
        if self._last_choices.get(name) != value:
            self._last_choices[name] = value
            self.dirty = True

    def retain_formats(self, keep: set[int] | None) -> list[str]:
        """Keep only formats at the given display indices; return the removed ones."""
        if keep is None:
            return []
        kept = filter_by_range(self.formats, keep)
        removed = [text for text in self._formats if text not in kept]
        for text in removed:
            del self._formats[text]
        if removed:
            self.dirty = True
        return removed

    def prune_unreferenced_variables(self) -> list[str]:
        """Drop choice lists for variables no remaining format uses."""
        referenced = {name for text in self._formats for name in self.variables_for(text)}
        removed = [name for name in self._choices if name not in referenced]
        for name in removed:
            del self._choices[name]
        if removed:
            self.dirty = True
        return removed

    def retain_choices(self, name: str, keep: set[int] | None) -> list[str]:
        """Keep only the variable's choices at the given indices; an emptied variable is removed."""
        if keep is None or name not in self._choices:
            return self.choices_for(name)
        kept = filter_by_range(self._choices[name], keep)
        if kept != self._choices[name]:
            self.dirty = True
        if kept:
            self._choices[name] = kept
        else:
            del self._choices[name]
        return list(kept)

    def to_document(self) -> dict[str, Any]:
        document: dict[str, Any] = {
            "version": SCHEMA_VERSION,
            "formats": {key: list(value) for key, value in self._formats.items()},
            "choices": {key: list(value) for key, value in self._choices.items()},
        }
        last_choices = {name: value for name in self._choices if (value := self.last_choice(name)) is not None}
        if self.last_format is not None or last_choices:
            document["last"] = {"format": self.last_format, "choices": last_choices}
        return document

    def commit(self) -> bool:
        """Write the store atomically when it changed; return whether a write happened."""
        if not self.dirty:
            return False

        rendered = yaml.safe_dump(self.to_document(), sort_keys=False, allow_unicode=True, default_flow_style=False)
        temp_path: Path | None = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="w",
                encoding="utf-8",
                dir=self.path.parent,
                prefix=f".{self.path.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                temp_path = Path(handle.name)
                handle.write(rendered)
            os.replace(temp_path, self.path)
        except OSError as exc:
            if temp_path is not None:
                temp_path.unlink(missing_ok=True)
            raise PersistenceError(
                what=f"cannot write history file: {self.path}",
                why=str(exc),
                remediation="check that the directory is writable or point --history elsewhere",
            ) from exc

        self.dirty = False
        logger.debug("History written to %s", self.path)
        return True



def _validate_document(path: Path, content: Any) -> tuple[list[str], dict[str, list[str]], dict[str, Any]]:
    """Check the loaded YAML against the versioned layout.

    The variable lists stored under ``formats`` are informational; only the
    format strings are kept.
    """
    if not isinstance(content, dict):
        raise _corrupt(path, "top level must be a mapping")

    version = content.get("version")
    if version != SCHEMA_VERSION:
        raise _corrupt(path, f"unsupported history version {version!r}, expected {SCHEMA_VERSION}")

    unknown = [key for key in content if key not in {"version", "formats", "choices", "last"}]
    if unknown:
        raise _corrupt(path, f"unknown top-level key '{unknown[0]}'")

    formats = _string_list_mapping(path, content.get("formats"), section="formats")
    choices = _string_list_mapping(path, content.get("choices"), section="choices")
    return list(formats), choices, _validate_last(path, content.get("last"))


def _validate_last(path: Path, raw: Any) -> dict[str, Any]:
    if raw is None:
        return {}
    if not isinstance(raw, dict) or any(key not in {"format", "choices"} for key in raw):
        raise _corrupt(path, "'last' must be a mapping with 'format' and 'choices'")

    last_format = raw.get("format")
    if last_format is not None and not isinstance(last_format, str):
        raise _corrupt(path, "'last.format' must be a string")
    last_choices = raw.get("choices") or {}
    if not isinstance(last_choices, dict) or not all(
        isinstance(key, str) and isinstance(value, str) for key, value in last_choices.items()
    ):
        raise _corrupt(path, "'last.choices' must map variable names to strings")
    return {"format": last_format, "choices": last_choices}


def _string_list_mapping(path: Path, raw: Any, *, section: str) -> dict[str, list[str]]:
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise _corrupt(path, f"'{section}' must be a mapping of names to lists")

    mapping: dict[str, list[str]] = {}
    for key, values in raw.items():
        if values is None:
            values = []
        if not isinstance(key, str) or not isinstance(values, list):
            raise _corrupt(path, f"'{section}' entry {key!r} must map a string to a list")
        if not all(isinstance(value, str) for value in values):
            raise _corrupt(path, f"'{section}' entry {key!r} contains a non-string value")
        mapping[key] = list(values)
    return mapping


def _corrupt(path: Path, why: str) -> PersistenceError:
    return PersistenceError(
        what=f"history file is corrupt: {path}",
        why=why,
        remediation="fix the file by hand or move it aside to start with an empty history",
    )
