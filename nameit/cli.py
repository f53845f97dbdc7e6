"""nameit command line entrypoint."""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

from nameit.config import AppConfig, default_config, load_config_file, merge_typed_config
from nameit.editor import run_edit_session
from nameit.errors import (
    ExitCode,
    FileOperationError,
    NameItError,
    ValidationError,
    format_user_error,
    parse_user_error_message,
)
from nameit.fileops import (
    FileMode,
    build_target_path,
    perform_file_operation,
    resolve_mode,
    validate_destination,
    validate_source_path,
)
from nameit.history import HistoryStore, default_history_path
from nameit.prompt import PromptController
from nameit.resolver import RenderContext, Resolver
from nameit.templating import Template, parse_template

_VERSION = "0.1.0"


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for the rename and edit commands."""
    parser = argparse.ArgumentParser(
        prog="nameit",
        description="Rename, move or copy files using reusable name templates with remembered values.",
    )
    parser.add_argument("paths", nargs="*", help="Files to rename; '#' segments number them from 1")
    parser.add_argument("-f", "--format", help="Format to use instead of choosing one from history")
    parser.add_argument("-d", "--destination", help="Directory to place renamed files in")
    parser.add_argument("-l", "--last", action="store_true", default=None, help="Reuse the last choice for every prompt")
    parser.add_argument(
        "-R", "--replace", action="store_true", default=None, help="Replace existing files without asking"
    )
    action = parser.add_mutually_exclusive_group()
    action.add_argument("-r", "--rename", dest="mode", action="store_const", const="rename", help="Rename in place")
    action.add_argument("-m", "--move", dest="mode", action="store_const", const="move", help="Move across filesystems")
    action.add_argument("-C", "--copy", dest="mode", action="store_const", const="copy", help="Copy, keeping the source")
    parser.add_argument("-e", "--edit", action="store_true", help="Prune saved formats and choices interactively")
    parser.add_argument("-t", "--test", action="store_true", help="Print the new filenames and do nothing")
    parser.add_argument("-c", "--choices", type=int, help="Number of history entries listed per prompt")
    parser.add_argument("--config", help="Path to YAML config file")
    parser.add_argument("--history", help="Path to the history file")
    parser.add_argument("--verbose", action="store_true", help="Enable INFO logging")
    parser.add_argument("--debug", action="store_true", help="Enable DEBUG logging")
    parser.add_argument("--version", action="store_true", help="Print nameit version and exit")
    return parser


def _configure_logging(*, debug: bool, verbose: bool) -> None:
    """Configure global logging level based on CLI flags."""
    level = logging.WARNING
    if verbose:
        level = logging.INFO
    if debug:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


def _build_config(args: argparse.Namespace) -> AppConfig:
    """Merge defaults, the YAML config file and CLI flags."""
    cli_overrides = {
        "history": {"path": args.history},
        "prompt": {"max_choices": args.choices, "repeat_last": args.last},
        "files": {"mode": args.mode, "replace": args.replace, "destination": args.destination},
    }
    return merge_typed_config(
        defaults=default_config(),
        yaml_config=load_config_file(args.config),
        cli_args=cli_overrides,
    )


def _select_template(*, args: argparse.Namespace, store: HistoryStore, prompt: PromptController) -> Template:
    """Parse the --format value or ask for one from history."""
    if args.format is None:
        return prompt.choose_format()
    template = parse_template(args.format)
    store.record_format(template)
    store.mark_format_used(template.raw)
    return template


def _process_file(
    *,
    index: int,
    path: str,
    template: Template,
    resolver: Resolver,
    prompt: PromptController,
    config: AppConfig,
    mode: FileMode,
    destination: Path | None,
    dry_run: bool,
) -> None:
    """Render one file's new name and apply the file operation."""
    source = validate_source_path(path)
    print(f"File: {source}")
    context = RenderContext(index=index, old_name=source.stem, timestamp=datetime.now())
    rendered = resolver.render(template, context)
    target = build_target_path(source=source, rendered_name=rendered, destination=destination)
    print(f"{mode.label}: {source} -> {target}")

    if dry_run:
        return
    if target.resolve() == source.resolve():
        print(f"skipped: {source} already has that name")
        return
    if target.exists() and not config.files.replace:
        if not prompt.confirm(f"Warning: {target} already exists, replace"):
            print(f"skipped: {source}")
            return
    perform_file_operation(source=source, target=target, mode=mode)


def _run_batch(*, args: argparse.Namespace, config: AppConfig, store: HistoryStore, prompt: PromptController) -> int:
    """Rename every path with one template; per-file failures do not stop the batch."""
    logger = logging.getLogger(__name__)
    template = _select_template(args=args, store=store, prompt=prompt)
    print(f"Template: {template.raw}")

    destination = validate_destination(config.files.destination) if config.files.destination else None
    mode = resolve_mode(requested=config.files.mode, destination=destination)
    resolver = Resolver(prompt=prompt)

    failures = 0
    try:
        for index, path in enumerate(args.paths, start=1):
            try:
                _process_file(
                    index=index,
                    path=path,
                    template=template,
                    resolver=resolver,
                    prompt=prompt,
                    config=config,
                    mode=mode,
                    destination=destination,
                    dry_run=args.test,
                )
            except FileOperationError as exc:
                failures += 1
                print(str(exc), file=sys.stderr)
    finally:
        store.commit()

    logger.info("Processed %d files with %d failures", len(args.paths), failures)
    return int(ExitCode.FILE_OPERATION) if failures else int(ExitCode.OK)


def main(argv: list[str] | None = None) -> int:
    """Run CLI command and return process status code."""
    raw_argv = argv if argv is not None else sys.argv[1:]
    if "--version" in raw_argv:
        print(f"nameit {_VERSION}")
        return int(ExitCode.OK)

    parser = build_parser()
    args = parser.parse_args(raw_argv)
    _configure_logging(debug=args.debug, verbose=args.verbose)

    try:
        config = _build_config(args)
        history_path = config.history.path or default_history_path()
        store = HistoryStore.load(history_path)
        prompt = PromptController(
            store=store,
            max_choices=config.prompt.max_choices,
            repeat_last=config.prompt.repeat_last,
        )

        if args.edit:
            run_edit_session(store, prompt)
            store.commit()
            return int(ExitCode.OK)

        if not args.paths:
            logging.getLogger(__name__).info("No files given; nothing to do")
            return int(ExitCode.OK)

        return _run_batch(args=args, config=config, store=store, prompt=prompt)
    except NameItError as exc:
        print(str(exc), file=sys.stderr)
        return int(exc.exit_code)
    except ValueError as exc:
        parsed = parse_user_error_message(str(exc))
        if parsed is not None:
            what, why, remediation = parsed
            structured = ValidationError(what=what, why=why, remediation=remediation)
            print(str(structured), file=sys.stderr)
            return int(structured.exit_code)
        print(
            str(
                ValidationError(
                    what="invalid runtime input.",
                    why=str(exc),
                    remediation="review your inputs/config and try again",
                )
            ),
            file=sys.stderr,
        )
        return int(ExitCode.VALIDATION)
    except KeyboardInterrupt:
        print("interrupted", file=sys.stderr)
        return int(ExitCode.INTERRUPTED)
    except Exception as exc:  # pragma: no cover - defensive guard
        print(
            format_user_error(
                what="unexpected runtime failure.",
                why=str(exc),
                how_to_fix="re-run with --debug and report the failure",
            ),
            file=sys.stderr,
        )
        return int(ExitCode.INTERNAL)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
