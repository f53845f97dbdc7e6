"""Interactive pruning of stored formats and variable choices."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from nameit.history import HistoryStore
from nameit.prompt import PromptController

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class EditSummary:
    """What an edit session removed."""

    removed_formats: list[str] = field(default_factory=list)
    removed_variables: list[str] = field(default_factory=list)
    pruned_choices: dict[str, int] = field(default_factory=dict)


def run_edit_session(store: HistoryStore, prompt: PromptController) -> EditSummary:
    """Ask which formats and choices to keep and apply it to ``store`` in memory.

    Removing formats also removes the variables that no surviving format uses.
    The caller commits the store once the session finishes.
    """
    summary = EditSummary()

    formats = store.formats
    if formats:
        keep = prompt.read_range("formats", formats)
        summary.removed_formats = store.retain_formats(keep)
    summary.removed_variables = store.prune_unreferenced_variables()
    for name in summary.removed_variables:
        print(f"{name}: variable doesn't appear in any format, removed")

    for name in store.variables:
        before = store.choices_for(name)
        keep = prompt.read_range(name, before)
        after = store.retain_choices(name, keep)
        if len(after) != len(before):
            summary.pruned_choices[name] = len(before) - len(after)

    logger.info(
        "Edit session removed %d formats, %d variables and pruned %d choice lists",
        len(summary.removed_formats),
        len(summary.removed_variables),
        len(summary.pruned_choices),
    )
    return summary
