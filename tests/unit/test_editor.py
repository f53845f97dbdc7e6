"""Unit tests for the interactive history editor."""

from __future__ import annotations

from typing import Callable

import pytest

from nameit.editor import run_edit_session
from nameit.errors import PromptCancelled
from nameit.history import HistoryStore
from nameit.prompt import PromptController


def _scripted(*answers: str) -> Callable[[str], str]:
    pending = list(answers)

    def _input(prompt: str) -> str:
        _ = prompt
        if not pending:
            raise EOFError
        return pending.pop(0)

    return _input


def _store(tmp_path) -> HistoryStore:
    return HistoryStore(
        path=tmp_path / "history.yaml",
        formats={"NAME_VER": ["NAME", "VER"], "NAME_###": ["NAME"]},
        choices={"NAME": ["a", "b", "c", "d"], "VER": ["draft"]},
    )


@pytest.mark.unit
def test_removing_format_cascades_to_unreferenced_variables(tmp_path, capsys) -> None:
    store = _store(tmp_path)
    prompt = PromptController(store=store, input_fn=_scripted("2", ""))

    summary = run_edit_session(store, prompt)

    assert summary.removed_formats == ["NAME_VER"]
    assert summary.removed_variables == ["VER"]
    assert store.formats == ["NAME_###"]
    assert store.variables == ["NAME"]
    assert store.choices_for("NAME") == ["a", "b", "c", "d"]
    assert "VER: variable doesn't appear in any format" in capsys.readouterr().out


@pytest.mark.unit
def test_choice_lists_are_pruned_by_range(tmp_path) -> None:
    store = _store(tmp_path)
    prompt = PromptController(store=store, input_fn=_scripted("", "2-3", ""))

    summary = run_edit_session(store, prompt)

    assert summary.removed_formats == []
    assert store.choices_for("NAME") == ["b", "c"]
    assert store.choices_for("VER") == ["draft"]
    assert summary.pruned_choices == {"NAME": 2}


@pytest.mark.unit
def test_empty_answers_change_nothing(tmp_path) -> None:
    store = _store(tmp_path)
    prompt = PromptController(store=store, input_fn=_scripted("", "", ""))

    run_edit_session(store, prompt)

    assert store.dirty is False
    assert store.formats == ["NAME_VER", "NAME_###"]


@pytest.mark.unit
def test_malformed_range_is_reprompted(tmp_path, capsys) -> None:
    store = _store(tmp_path)
    prompt = PromptController(store=store, input_fn=_scripted("9-1", "-1", "4", ""))

    run_edit_session(store, prompt)

    assert store.formats == ["NAME_VER"]
    assert store.choices_for("NAME") == ["d"]
    assert "what: invalid range '9-1'" in capsys.readouterr().err


@pytest.mark.unit
def test_cancelled_session_does_not_write(tmp_path) -> None:
    store = _store(tmp_path)
    prompt = PromptController(store=store, input_fn=_scripted("1"))

    with pytest.raises(PromptCancelled):
        run_edit_session(store, prompt)
    assert not store.path.exists()


@pytest.mark.unit
def test_variables_missing_from_stored_lists_survive_empty_session(tmp_path) -> None:
    store = HistoryStore(
        path=tmp_path / "history.yaml",
        formats={"NAME_VER": None},
        choices={"NAME": ["a"], "VER": ["draft"]},
    )
    prompt = PromptController(store=store, input_fn=_scripted("", "", ""))

    summary = run_edit_session(store, prompt)

    assert summary.removed_variables == []
    assert store.choices_for("NAME") == ["a"]
    assert store.choices_for("VER") == ["draft"]
    assert store.dirty is False
