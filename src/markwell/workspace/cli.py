"""CLI entry point for ``markwell init``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from rich.console import Console
from rich.markup import escape

from markwell.convert.config import CONFIG_FILENAME
from markwell.core import workspace as workspace_mod
from markwell.core.workspace import WorkspaceError, WorkspaceLayout


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markwell init",
        description="Create the directory where markwell keeps "
        f"{CONFIG_FILENAME} and run logs.",
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=f"Workspace root (defaults to ${workspace_mod.WORKSPACE_ENV} "
        "or ~/.markwell).",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Print nothing when the workspace is ready.",
    )
    return parser


def layout_rows(layout: WorkspaceLayout) -> list[tuple[str, Path, str]]:
    entries = [("home", layout.home), *layout.directories.items()]
    rows = [
        (key, directory, "created" if layout.created.get(key) else "exists")
        for key, directory in entries
    ]
    config_file = layout.path_for("config") / CONFIG_FILENAME
    if config_file.is_file():
        rows.append(("settings", config_file, "exists"))
    else:
        rows.append(
            ("settings", config_file, "run `markwell convert config init`")
        )
    return rows


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except WorkspaceError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    if not args.quiet:
        console = Console(highlight=False, soft_wrap=True)
        console.print(f"Workspace ready at {layout.home}", markup=False)
        rows = layout_rows(layout)
        width = max(len(key) for key, _, _ in rows)
        for key, path, status in rows:
            console.print(
                f"  [cyan]{key.ljust(width)}[/cyan]  {escape(str(path))} "
                f"({escape(status)})"
            )
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
