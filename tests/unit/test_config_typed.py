"""Unit tests for typed config loading, merge and validation."""

from __future__ import annotations

import pytest

from nameit.config import default_config, load_config_file, merge_typed_config
from nameit.errors import ConfigError


@pytest.mark.unit
@pytest.mark.parametrize(
    ("yaml_config", "cli_args", "expected_max_choices", "expected_mode"),
    [
        ({}, {}, 20, None),
        ({"prompt": {"max_choices": 5}, "files": {"mode": "move"}}, {}, 5, "move"),
        (
            {"prompt": {"max_choices": 5}, "files": {"mode": "move"}},
            {"prompt": {"max_choices": 8}, "files": {"mode": "copy"}},
            8,
            "copy",
        ),
        ({"prompt": {"max_choices": 5}}, {"prompt": {"max_choices": None}}, 5, None),
    ],
)
def test_precedence_matrix_defaults_yaml_cli(
    yaml_config: dict,
    cli_args: dict,
    expected_max_choices: int,
    expected_mode: str | None,
) -> None:
    merged = merge_typed_config(defaults=default_config(), yaml_config=yaml_config, cli_args=cli_args)

    assert merged.prompt.max_choices == expected_max_choices
    assert merged.files.mode == expected_mode


@pytest.mark.unit
def test_invalid_file_mode_has_remediation_hint() -> None:
    with pytest.raises(ValueError, match="what: files.mode must be one of: copy, move, rename.*how-to-fix"):
        merge_typed_config(defaults=default_config(), yaml_config={"files": {"mode": "link"}}, cli_args={})


@pytest.mark.unit
@pytest.mark.parametrize("value", [0, -3, "ten", True])
def test_invalid_max_choices_has_remediation_hint(value) -> None:
    with pytest.raises(ValueError, match="what: prompt.max_choices must be a positive integer.*how-to-fix"):
        merge_typed_config(defaults=default_config(), yaml_config={"prompt": {"max_choices": value}}, cli_args={})


@pytest.mark.unit
def test_unknown_section_and_option_are_rejected() -> None:
    with pytest.raises(ValueError, match="what: unknown config section 'provider'"):
        merge_typed_config(defaults=default_config(), yaml_config={"provider": {}}, cli_args={})
    with pytest.raises(ValueError, match="what: config contains an unknown option"):
        merge_typed_config(defaults=default_config(), yaml_config={"files": {"colour": "red"}}, cli_args={})


@pytest.mark.unit
def test_load_config_file_reads_yaml_mapping(tmp_path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("prompt:\n  max_choices: 3\n", encoding="utf-8")

    assert load_config_file(config) == {"prompt": {"max_choices": 3}}


@pytest.mark.unit
def test_missing_explicit_config_is_an_error(tmp_path) -> None:
    with pytest.raises(ConfigError, match="what: config file not found"):
        load_config_file(tmp_path / "missing.yaml")


@pytest.mark.unit
def test_missing_default_config_means_no_overrides(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path))

    assert load_config_file(None) == {}


@pytest.mark.unit
def test_non_mapping_config_is_rejected(tmp_path) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="what: config content must be a mapping"):
        load_config_file(config)
