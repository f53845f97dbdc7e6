"""Typed configuration model and merge/validation helpers for nameit."""

from __future__ import annotations

import copy
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Mapping

import yaml

from nameit.errors import ConfigError, format_user_error
from nameit.fileops import FileMode

_ALLOWED_SECTIONS = {"history", "prompt", "files"}
_ALLOWED_FILE_MODES = {mode.value for mode in FileMode}


@dataclass(slots=True)
class HistoryConfig:
    """Location of the persisted history store."""

    path: str | None = None


@dataclass(slots=True)
class PromptConfig:
    """Interactive prompt behavior."""

    max_choices: int = 20
    repeat_last: bool = False


@dataclass(slots=True)
class FilesConfig:
    """How files reach their new names."""

    mode: str | None = None
    replace: bool = False
    destination: str | None = None


@dataclass(slots=True)
class AppConfig:
    """Top-level typed config."""

    history: HistoryConfig
    prompt: PromptConfig
    files: FilesConfig


def default_config() -> AppConfig:
    """Build the default typed configuration."""
    return AppConfig(history=HistoryConfig(), prompt=PromptConfig(), files=FilesConfig())


def default_config_path() -> Path:
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "nameit" / "config.yaml"


def load_config_file(path: str | Path | None) -> dict[str, Any]:
    """Read YAML configuration; an absent default file means no overrides."""
    if path is None:
        config_path = default_config_path()
        if not config_path.exists():
            return {}
    else:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigError(
                what=f"config file not found: {config_path}",
                why="--config must point to a readable YAML file",
                remediation="create the config file and provide its path to --config",
            )

    try:
        content = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(
            what=f"config file is not valid YAML: {config_path}",
            why=str(exc),
            remediation="fix the YAML syntax or remove the file",
        ) from exc
    if content is None:
        content = {}
    if not isinstance(content, dict):
        raise ConfigError(
            what="config content must be a mapping.",
            why="nameit requires named options under top-level sections",
            remediation="use YAML object format, for example: prompt: {max_choices: 10}",
        )
    return content


def merge_typed_config(*, defaults: AppConfig, yaml_config: Mapping[str, Any], cli_args: Mapping[str, Any]) -> AppConfig:
    """Merge layered typed configuration with precedence defaults < YAML < CLI."""
    _validate_top_level_sections(yaml_config=yaml_config)
    _validate_top_level_sections(yaml_config=cli_args)

    merged_dict = _deep_merge(asdict(defaults), yaml_config)
    merged_dict = _deep_merge(merged_dict, _drop_none_values(cli_args))

    merged = _dict_to_typed_config(merged_dict)
    validate_config_values(merged)
    return merged


def validate_config_values(config: AppConfig) -> None:
    """Validate enum-like and numeric constraints."""
    if config.files.mode is not None and config.files.mode not in _ALLOWED_FILE_MODES:
        options = ", ".join(sorted(_ALLOWED_FILE_MODES))
        raise ValueError(
            format_user_error(
                what=f"files.mode must be one of: {options}.",
                why="unsupported file operation mode was provided",
                how_to_fix=f"choose one of {options} in YAML or use --copy, --move or --rename",
            )
        )

    max_choices = config.prompt.max_choices
    if isinstance(max_choices, bool) or not isinstance(max_choices, int) or max_choices < 1:
        raise ValueError(
            format_user_error(
                what="prompt.max_choices must be a positive integer.",
                why=f"got {max_choices!r}",
                how_to_fix="set prompt.max_choices to 1 or more in YAML or pass --choices",
            )
        )


def _deep_merge(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively merge mapping values where `override` wins."""
    merged: dict[str, Any] = copy.deepcopy(dict(base))
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def _drop_none_values(values: Mapping[str, Any]) -> dict[str, Any]:
    """Recursively remove explicit None values from override maps."""
    cleaned: dict[str, Any] = {}
    for key, value in values.items():
        if value is None:
            continue
        if isinstance(value, Mapping):
            nested = _drop_none_values(value)
            if nested:
                cleaned[key] = nested
            continue
        cleaned[key] = value
    return cleaned


def _validate_top_level_sections(*, yaml_config: Mapping[str, Any]) -> None:
    """Ensure config contains only known top-level sections."""
    unknown_sections = [key for key in yaml_config if key not in _ALLOWED_SECTIONS]
    if unknown_sections:
        section = unknown_sections[0]
        raise ValueError(
            format_user_error(
                what=f"unknown config section '{section}'.",
                why="configuration must map to supported sections",
                how_to_fix="use only: files, history, prompt",
            )
        )


def _dict_to_typed_config(raw: Mapping[str, Any]) -> AppConfig:
    """Map validated dictionary data into the typed config dataclasses."""
    try:
        return AppConfig(
            history=HistoryConfig(**dict(raw.get("history") or {})),
            prompt=PromptConfig(**dict(raw.get("prompt") or {})),
            files=FilesConfig(**dict(raw.get("files") or {})),
        )
    except TypeError as exc:
        raise ValueError(
            format_user_error(
                what="config contains an unknown option.",
                why=str(exc),
                how_to_fix="see the documented keys: history.path, prompt.max_choices, "
                "prompt.repeat_last, files.mode, files.replace, files.destination",
            )
        ) from exc
