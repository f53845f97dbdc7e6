"""Unit tests covering CLI orchestration."""

from __future__ import annotations

import io

import pytest
import yaml

from nameit.cli import main


@pytest.fixture(autouse=True)
def _isolated_config_home(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's own config and history out of CLI tests."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config-home"))
    monkeypatch.delenv("NAMEIT_HISTORY", raising=False)


def _answer(monkeypatch: pytest.MonkeyPatch, *lines: str) -> None:
    monkeypatch.setattr("sys.stdin", io.StringIO("".join(f"{line}\n" for line in lines)))


def _files(tmp_path, *names: str) -> list[str]:
    workdir = tmp_path / "work"
    workdir.mkdir(exist_ok=True)
    paths = []
    for name in names:
        path = workdir / name
        path.write_text(name, encoding="utf-8")
        paths.append(str(path))
    return paths


@pytest.mark.unit
def test_batch_rename_numbers_files_and_saves_history(tmp_path, monkeypatch) -> None:
    history = tmp_path / "history.yaml"
    paths = _files(tmp_path, "a.txt", "b.txt")
    _answer(monkeypatch, "Report", "draft", "", "")

    rc = main(["-f", "NAME_###_VER", "--history", str(history), *paths])

    workdir = tmp_path / "work"
    assert rc == 0
    assert sorted(entry.name for entry in workdir.iterdir()) == ["Report_001_draft.txt", "Report_002_draft.txt"]
    assert (workdir / "Report_002_draft.txt").read_text(encoding="utf-8") == "b.txt"
    stored = yaml.safe_load(history.read_text(encoding="utf-8"))
    assert stored == {
        "version": 1,
        "formats": {"NAME_###_VER": ["NAME", "VER"]},
        "choices": {"NAME": ["Report"], "VER": ["draft"]},
        "last": {"format": "NAME_###_VER", "choices": {"NAME": "Report", "VER": "draft"}},
    }


@pytest.mark.unit
def test_typed_value_cannot_move_file_out_of_its_directory(tmp_path, monkeypatch, capsys) -> None:
    history = tmp_path / "history.yaml"
    paths = _files(tmp_path, "a.txt")
    _answer(monkeypatch, "../escaped", "ok")

    rc = main(["-f", "NAME", "--history", str(history), *paths])

    assert rc == 0
    assert "cannot contain '/'" in capsys.readouterr().err
    assert sorted(entry.name for entry in (tmp_path / "work").iterdir()) == ["ok.txt"]
    assert not (tmp_path / "escaped.txt").exists()
    assert yaml.safe_load(history.read_text(encoding="utf-8"))["choices"] == {"NAME": ["ok"]}


@pytest.mark.unit
def test_destination_defaults_to_copy(tmp_path, monkeypatch) -> None:
    destination = tmp_path / "out"
    destination.mkdir()
    paths = _files(tmp_path, "photo_2023_beach.jpg")
    _answer(monkeypatch)

    rc = main(["-f", "**_?", "-d", str(destination), "--history", str(tmp_path / "h.yaml"), *paths])

    assert rc == 0
    assert (destination / "photo_2023_photo_2023_beach.jpg").exists()
    assert (tmp_path / "work" / "photo_2023_beach.jpg").exists()


@pytest.mark.unit
def test_test_mode_prints_names_and_touches_nothing(tmp_path, monkeypatch, capsys) -> None:
    paths = _files(tmp_path, "a.txt")
    _answer(monkeypatch)

    rc = main(["-t", "-f", "{scan}_##", "--history", str(tmp_path / "h.yaml"), *paths])

    out = capsys.readouterr().out
    assert rc == 0
    assert "Template: {scan}_##" in out
    assert "scan_01.txt" in out
    assert (tmp_path / "work" / "a.txt").exists()


@pytest.mark.unit
def test_format_is_chosen_from_history_with_last(tmp_path, monkeypatch) -> None:
    history = tmp_path / "history.yaml"
    history.write_text(
        "version: 1\nformats:\n  NAME_##: [NAME]\nchoices:\n  NAME: [old, Invoice]\n",
        encoding="utf-8",
    )
    paths = _files(tmp_path, "a.pdf")
    _answer(monkeypatch)

    rc = main(["-l", "--history", str(history), *paths])

    assert rc == 0
    assert (tmp_path / "work" / "Invoice_01.pdf").exists()


@pytest.mark.unit
def test_parse_error_is_fatal_before_files_are_touched(tmp_path, capsys) -> None:
    paths = _files(tmp_path, "a.txt")

    rc = main(["-f", "NAME__VER", "--history", str(tmp_path / "h.yaml"), *paths])

    assert rc == 3
    assert "what: invalid format 'NAME__VER'" in capsys.readouterr().err
    assert (tmp_path / "work" / "a.txt").exists()
    assert not (tmp_path / "h.yaml").exists()


@pytest.mark.unit
def test_invalid_date_format_is_fatal(tmp_path, capsys) -> None:
    paths = _files(tmp_path, "a.txt")

    rc = main(["-f", "%Q", "--history", str(tmp_path / "h.yaml"), *paths])

    assert rc == 3
    assert "what: invalid date format '%Q'" in capsys.readouterr().err
    assert (tmp_path / "work" / "a.txt").exists()


@pytest.mark.unit
def test_missing_file_is_reported_and_batch_continues(tmp_path, monkeypatch, capsys) -> None:
    paths = _files(tmp_path, "b.txt")
    _answer(monkeypatch)

    rc = main(["-f", "{x}_#", "--history", str(tmp_path / "h.yaml"), str(tmp_path / "missing.txt"), *paths])

    assert rc == 4
    assert "what: file not found" in capsys.readouterr().err
    assert (tmp_path / "work" / "x_2.txt").exists()


@pytest.mark.unit
def test_collision_asks_before_replacing(tmp_path, monkeypatch, capsys) -> None:
    paths = _files(tmp_path, "a.txt", "taken.txt")
    _answer(monkeypatch, "n")

    rc = main(["-f", "{taken}", "--history", str(tmp_path / "h.yaml"), paths[0]])

    assert rc == 0
    assert "already exists, replace" in capsys.readouterr().out
    assert (tmp_path / "work" / "a.txt").exists()
    assert (tmp_path / "work" / "taken.txt").read_text(encoding="utf-8") == "taken.txt"


@pytest.mark.unit
def test_replace_flag_overwrites_without_asking(tmp_path, monkeypatch) -> None:
    paths = _files(tmp_path, "a.txt", "taken.txt")
    _answer(monkeypatch)

    rc = main(["-R", "-f", "{taken}", "--history", str(tmp_path / "h.yaml"), paths[0]])

    assert rc == 0
    assert (tmp_path / "work" / "taken.txt").read_text(encoding="utf-8") == "a.txt"
    assert not (tmp_path / "work" / "a.txt").exists()


@pytest.mark.unit
def test_end_of_input_stops_batch_and_keeps_earlier_answers(tmp_path, monkeypatch, capsys) -> None:
    history = tmp_path / "history.yaml"
    paths = _files(tmp_path, "a.txt")
    _answer(monkeypatch, "Report")

    rc = main(["-f", "NAME_VER", "--history", str(history), *paths])

    assert rc == 130
    assert "what: prompt cancelled" in capsys.readouterr().err
    assert (tmp_path / "work" / "a.txt").exists()
    assert yaml.safe_load(history.read_text(encoding="utf-8"))["choices"] == {"NAME": ["Report"]}


@pytest.mark.unit
def test_corrupt_history_aborts_run(tmp_path, capsys) -> None:
    history = tmp_path / "history.yaml"
    history.write_text("version: 7\n", encoding="utf-8")

    rc = main(["-f", "NAME", "--history", str(history), *_files(tmp_path, "a.txt")])

    assert rc == 5
    assert "what: history file is corrupt" in capsys.readouterr().err


@pytest.mark.unit
def test_edit_session_prunes_and_commits(tmp_path, monkeypatch) -> None:
    history = tmp_path / "history.yaml"
    history.write_text(
        "version: 1\n"
        "formats:\n  NAME_VER: [NAME, VER]\n  NAME_###: [NAME]\n"
        "choices:\n  NAME: [a, b]\n  VER: [draft]\n",
        encoding="utf-8",
    )
    _answer(monkeypatch, "2", "-1")

    rc = main(["-e", "--history", str(history)])

    assert rc == 0
    assert yaml.safe_load(history.read_text(encoding="utf-8")) == {
        "version": 1,
        "formats": {"NAME_###": ["NAME"]},
        "choices": {"NAME": ["a"]},
    }


@pytest.mark.unit
def test_config_file_sets_default_mode(tmp_path, monkeypatch) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("files:\n  mode: copy\n", encoding="utf-8")
    paths = _files(tmp_path, "a.txt")
    _answer(monkeypatch)

    rc = main(["--config", str(config), "-f", "{b}", "--history", str(tmp_path / "h.yaml"), *paths])

    assert rc == 0
    assert (tmp_path / "work" / "a.txt").exists()
    assert (tmp_path / "work" / "b.txt").exists()


@pytest.mark.unit
def test_invalid_config_value_maps_to_validation_exit(tmp_path, capsys) -> None:
    rc = main(["--choices", "0", "--history", str(tmp_path / "h.yaml"), "-f", "A", "x.txt"])

    assert rc == 3
    assert "what: prompt.max_choices must be a positive integer" in capsys.readouterr().err


@pytest.mark.unit
def test_cli_main_version_flag_exits_immediately(capsys) -> None:
    rc = main(["--version"])

    out = capsys.readouterr().out
    assert rc == 0
    assert out.strip() == "nameit 0.1.0"


@pytest.mark.unit
def test_no_paths_is_a_no_op(tmp_path) -> None:
    assert main(["--history", str(tmp_path / "h.yaml")]) == 0
    assert not (tmp_path / "h.yaml").exists()
