"""CLI entry point for ``markwell convert``."""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import Sequence

from markwell.core import starters
from markwell.core import workspace as workspace_mod
from markwell.core.format_aliases import FormatAliasError
from markwell.core.logging import configure_logger
from markwell.core.starters import StarterFileError
from markwell.core.workspace import WorkspaceError
from markwell.registry_setup import build_registry

from .config import (
    CONFIG_FILENAME,
    CollisionPolicy,
    ConfigOverrides,
    ConvertConfigError,
    LoadResult,
    load_config,
)
from .executor import (
    ConversionOutcome,
    ConversionStatus,
    ExecutionSummary,
    RunOptions,
    run_conversion,
)

_STATUS_TEMPLATES = {
    ConversionStatus.PLANNED: "[DRY RUN] {source} -> {targets}",
    ConversionStatus.SUCCESS: "{source} -> {targets}  [OK]",
    ConversionStatus.SKIPPED: "{source} -> skipped ({reason})",
    ConversionStatus.FAILED: "{source} -> [FAILED] {reason}",
}


def _add_settings_arguments(parser: argparse.ArgumentParser) -> None:
    group = parser.add_argument_group("settings")
    group.add_argument(
        "--config",
        type=Path,
        help=f"Read settings from this file instead of the workspace "
        f"{CONFIG_FILENAME}.",
    )
    group.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root holding config/ and logs/.",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markwell convert",
        description=(
            "Turn documents into Markdown, or Markdown and CSV into Word, "
            "PDF, HTML, slide decks, spreadsheets and subtitles."
        ),
        epilog=(
            "Examples: `markwell convert report.docx`, "
            "`markwell convert notes.md --to docx,pdf`, "
            "`markwell convert config init`."
        ),
    )
    parser.add_argument(
        "paths",
        nargs="+",
        help="Files, directories or glob patterns.",
    )
    parser.add_argument(
        "--to",
        metavar="FORMATS",
        help="Comma-separated targets such as docx, pdf, slides, xlsx or "
        "vtt. Without it every input becomes Markdown.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file, or a directory when it ends with a separator "
        "or already exists.",
    )
    parser.add_argument(
        "--theme",
        help="Built-in theme name or a path to a theme YAML file.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the planned outputs and write nothing.",
    )

    existing = parser.add_argument_group("existing outputs")
    policy = existing.add_mutually_exclusive_group()
    policy.add_argument(
        "--force",
        dest="collision",
        action="store_const",
        const=CollisionPolicy.OVERWRITE,
        help="Replace existing outputs without asking.",
    )
    policy.add_argument(
        "--version-output",
        dest="collision",
        action="store_const",
        const=CollisionPolicy.VERSION,
        help="Keep existing outputs and write name-01.ext, name-02.ext, ...",
    )

    _add_settings_arguments(parser)
    parser.add_argument(
        "--log-level",
        help="Log level for the run log (defaults to INFO).",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log records to stderr and print the log file path.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    if argv and argv[0] == "config":
        return _config_main(argv[1:])

    parser = _build_parser()
    args = parser.parse_args(argv)

    try:
        loaded = load_config(
            config_path=args.config,
            workspace_path=args.workspace,
            overrides=ConfigOverrides(
                collision=args.collision,
                theme=args.theme,
                log_level=args.log_level,
            ),
        )
    except (ConvertConfigError, WorkspaceError) as exc:
        parser.error(str(exc))

    logger, log_path = configure_logger(
        "markwell.convert",
        log_dir=loaded.layout.path_for("logs"),
        level=loaded.config.log_level,
        verbose=args.verbose,
    )
    logger.debug(
        "convert invoked",
        extra={"argv": argv, "config_path": str(loaded.config_path or "")},
    )

    options = RunOptions(
        to=args.to,
        output=args.output,
        dry_run=args.dry_run,
        on_outcome=_print_outcome,
    )
    try:
        summary = run_conversion(
            args.paths,
            registry=build_registry(),
            config=loaded.config,
            logger=logger,
            options=options,
        )
    except FormatAliasError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    # The same theme warning can be raised once per input.
    for message in dict.fromkeys(options.warnings):
        sys.stderr.write(f"Warning: {message}\n")
    _print_summary(summary)
    if args.verbose:
        sys.stdout.write(f"Log file: {log_path}\n")
    return summary.exit_code


def _relative(path: Path) -> str:
    try:
        return os.path.relpath(path)
    except ValueError:
        # Windows paths on another drive have no relative form.
        return str(path)


def _print_outcome(outcome: ConversionOutcome) -> None:
    line = _STATUS_TEMPLATES[outcome.status].format(
        source=_relative(outcome.source),
        targets=", ".join(_relative(path) for path in outcome.outputs),
        reason=outcome.reason,
    )
    sys.stdout.write(line + "\n")


def _print_summary(summary: ExecutionSummary) -> None:
    if not summary.processed:
        quoted = ", ".join(f'"{item}"' for item in summary.requested)
        sys.stderr.write(f"No files found matching {quoted}\n")
        return

    total = len(summary.processed)
    if total == 1 and not summary.failure_count:
        return
    sys.stdout.write(
        f"\n{total} {'file' if total == 1 else 'files'} processed: "
        f"{summary.success_count} succeeded, {summary.failure_count} failed\n"
    )


def _build_config_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markwell convert config",
        description=f"Create or inspect {CONFIG_FILENAME}.",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    init = commands.add_parser(
        "init", help=f"Write a commented starter {CONFIG_FILENAME}."
    )
    init.add_argument(
        "--path",
        type=Path,
        help="Where to write the file (defaults to the workspace config/ "
        "directory).",
    )
    init.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used when --path is not given.",
    )
    init.add_argument(
        "--force",
        action="store_true",
        help="Replace an existing file.",
    )

    show = commands.add_parser(
        "show", help="Print the settings a convert run would use."
    )
    _add_settings_arguments(show)
    return parser


def _config_main(argv: Sequence[str]) -> int:
    args = _build_config_parser().parse_args(argv)
    try:
        if args.command == "show":
            return _show_config(
                load_config(
                    config_path=args.config, workspace_path=args.workspace
                )
            )
        if args.path is not None:
            target = Path.cwd() / args.path.expanduser()
        else:
            layout = workspace_mod.ensure_workspace(path=args.workspace)
            target = layout.path_for("config") / CONFIG_FILENAME
        written = starters.get_starter("convert").write(
            target, overwrite=args.force
        )
    except (ConvertConfigError, StarterFileError, WorkspaceError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    sys.stdout.write(f"Wrote convert config to {written}\n")
    return 0


def _show_config(loaded: LoadResult) -> int:
    config = loaded.config
    rows = [
        ("config file", loaded.config_path or "(none, using defaults)"),
        ("output_dir", config.output_dir or "(next to each input)"),
        ("collision", config.collision.value),
        ("theme", config.theme or "(nearest .markwell.yaml)"),
        ("log_level", config.log_level),
        ("logs", loaded.layout.path_for("logs")),
    ]
    width = max(len(name) for name, _ in rows)
    for name, value in rows:
        sys.stdout.write(f"{name.ljust(width)}  {value}\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
