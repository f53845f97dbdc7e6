"""Filesystem operations applied to each renamed file."""

from __future__ import annotations

import errno
import logging
import os
import shutil
from enum import Enum
from pathlib import Path

from nameit.errors import FileOperationError

PATH_BREAKING_CHARACTERS = {"/", "\0", os.sep} | ({os.altsep} if os.altsep else set())

logger = logging.getLogger(__name__)


class FileMode(str, Enum):
    """How a file reaches its new name."""

    COPY = "copy"
    RENAME = "rename"
    MOVE = "move"

    @property
    def label(self) -> str:
        return self.value.capitalize()


def resolve_mode(*, requested: str | None, destination: str | Path | None) -> FileMode:
    """Explicit mode wins; otherwise copy into a destination, rename in place."""
    if requested:
        return FileMode(requested)
    return FileMode.COPY if destination else FileMode.RENAME


def validate_source_path(path: str | Path) -> Path:
    """Ensure the source exists and is a regular file."""
    source = Path(path)
    if not source.exists():
        raise FileOperationError(
            what=f"file not found: {source}",
            why="the provided path does not exist",
            remediation="check the path and run again",
        )
    if not source.is_file():
        raise FileOperationError(
            what=f"not a file: {source}",
            why="only regular files can be renamed",
            remediation="pass files, not directories",
        )
    return source


def validate_destination(path: str | Path) -> Path:
    destination = Path(path)
    if not destination.is_dir():
        raise FileOperationError(
            what=f"destination is not a directory: {destination}",
            why="files are placed inside the destination directory",
            remediation="create the directory first or fix --destination",
        )
    return destination


def build_target_path(*, source: Path, rendered_name: str, destination: Path | None = None) -> Path:
    """New path for ``source``: rendered name plus the last suffix, spaces as dashes.

    Raises:
        FileOperationError: when the rendered name would not be a single
            filename inside the target directory.
    """
    unsafe = [char for char in PATH_BREAKING_CHARACTERS if char in rendered_name]
    if unsafe or rendered_name.strip() in {"", ".", ".."}:
        raise FileOperationError(
            what=f"rendered name '{rendered_name}' is not a plain filename.",
            why="the name contains a path separator or is '.' or '..'",
            remediation="choose values without '/' so files stay in their directory",
        )
    filename = f"{rendered_name.replace(' ', '-')}{source.suffix}"
    parent = destination if destination is not None else source.parent
    return parent / filename


def perform_file_operation(*, source: Path, target: Path, mode: FileMode) -> None:
    """Copy, rename or move ``source`` to ``target``, overwriting an existing target."""
    try:
        if mode is FileMode.RENAME:
            os.replace(source, target)
        elif mode is FileMode.MOVE:
            shutil.move(str(source), str(target))
        else:
            shutil.copy2(source, target)
    except OSError as exc:
        remediation = "check permissions and free space, then retry this file"
        if mode is FileMode.RENAME and exc.errno == errno.EXDEV:
            remediation = "rename only works within one filesystem; use --move instead"
        raise FileOperationError(
            what=f"{mode.value} failed: {source} -> {target}",
            why=str(exc),
            remediation=remediation,
        ) from exc
    logger.info("%s %s -> %s", mode.label, source, target)
