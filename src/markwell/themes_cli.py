"""CLI entry point for ``markwell themes``."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from markwell.core.starters import StarterFileError, get_starter
from markwell.core.theme import (
    THEME_FILENAME,
    ThemeError,
    list_builtin_themes,
    load_builtin_theme,
    resolve_theme,
)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markwell themes",
        description="List, preview and scaffold markwell themes.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("list", help="List the built-in themes.")

    preview_parser = subparsers.add_parser(
        "preview", help="Show the fully resolved values of a theme."
    )
    preview_parser.add_argument(
        "name", help="Built-in theme name or path to a theme YAML file."
    )

    init_parser = subparsers.add_parser(
        "init",
        help=f"Create a starter {THEME_FILENAME} in the current directory.",
    )
    init_parser.add_argument(
        "--force",
        action="store_true",
        help=f"Overwrite an existing {THEME_FILENAME}.",
    )
    return parser


def themes_table() -> Table:
    table = Table(title="Built-in themes", box=box.SIMPLE, expand=False)
    table.add_column("Name", style="cyan")
    table.add_column("Extends")
    table.add_column("Primary")
    table.add_column("Font")
    for name in list_builtin_themes():
        raw = load_builtin_theme(name) or {}
        resolved = resolve_theme(theme_name=name)
        table.add_row(
            name,
            str(raw.get("extends") or "-"),
            str(resolved["colors"].get("primary", "")),
            str(resolved["typography"].get("fontFamily", "")),
        )
    return table


def _handle_list(console: Console) -> int:
    console.print(themes_table())
    return 0


def _handle_preview(console: Console, name: str) -> int:
    warnings: list[str] = []
    try:
        theme = resolve_theme(theme_name=name, on_warning=warnings.append)
    except ThemeError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    for message in warnings:
        sys.stderr.write(f"Warning: {message}\n")
    if any("not found" in message for message in warnings):
        return 1

    console.print(f"Theme: {theme.get('name', name)}")
    console.print(_dump(theme), markup=False)
    return 0


def _dump(theme: Mapping[str, Any]) -> str:
    return yaml.safe_dump(
        dict(theme), sort_keys=False, default_flow_style=False
    ).rstrip()


def _handle_init(force: bool, cwd: Optional[Path] = None) -> int:
    target = (cwd or Path.cwd()) / THEME_FILENAME
    try:
        written = get_starter("theme").write(target, overwrite=force)
    except StarterFileError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    sys.stdout.write(f"Wrote starter theme to {written}\n")
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = Console(highlight=False)

    if args.command == "list":
        return _handle_list(console)
    if args.command == "preview":
        return _handle_preview(console, args.name)
    return _handle_init(args.force)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
