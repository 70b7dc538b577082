"""CLI entry point for ``markwell converters``."""

from __future__ import annotations

import argparse
import sys
from typing import Optional, Sequence

from rich import box
from rich.console import Console
from rich.table import Table

from markwell.core.format_aliases import get_aliases_for_category
from markwell.core.registry import ConverterRegistry
from markwell.core.types import ExportConverter, IngestConverter
from markwell.registry_setup import build_registry


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="markwell converters",
        description="List and inspect the registered converters.",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser(
        "list", help="List all ingest and export converters."
    )
    info_parser = subparsers.add_parser(
        "info", help="Show details about a specific converter."
    )
    info_parser.add_argument("name", help="Converter name, e.g. docx.")
    return parser


def ingest_table(converters: Sequence[IngestConverter]) -> Table:
    table = Table(title="Ingest converters", box=box.SIMPLE, expand=False)
    table.add_column("Name", style="cyan")
    table.add_column("Extensions")
    for converter in converters:
        table.add_row(converter.name, ", ".join(converter.extensions))
    return table


def export_table(converters: Sequence[ExportConverter]) -> Table:
    table = Table(title="Export converters", box=box.SIMPLE, expand=False)
    table.add_column("Name", style="cyan")
    table.add_column("Category")
    table.add_column("Formats")
    table.add_column("Aliases")
    for converter in converters:
        table.add_row(
            converter.name,
            converter.category.value,
            ", ".join(fmt.extension for fmt in converter.formats),
            ", ".join(get_aliases_for_category(converter.category)),
        )
    return table


def _handle_list(registry: ConverterRegistry, console: Console) -> int:
    ingest = registry.list_ingest()
    exports = registry.list_export()
    if ingest:
        console.print(ingest_table(ingest))
    else:
        console.print("No ingest converters registered.")
    if exports:
        console.print(export_table(exports))
    else:
        console.print("No export converters registered.")
    return 0


def _handle_info(
    registry: ConverterRegistry, console: Console, name: str
) -> int:
    converter = registry.find(name)
    if converter is None:
        sys.stderr.write(f'Unknown converter: "{name}"\n')
        return 1

    if isinstance(converter, ExportConverter):
        console.print(f"Converter: {converter.name} (export)")
        console.print(f"Category: {converter.category.value}")
        console.print("Formats:")
        for fmt in converter.formats:
            console.print(f"  {fmt.extension}  {fmt.label} ({fmt.mime_type})")
        aliases = get_aliases_for_category(converter.category)
        if aliases:
            console.print(f"Aliases: {', '.join(aliases)}")
        return 0

    console.print(f"Converter: {converter.name} (ingest)")
    console.print(f"Extensions: {', '.join(converter.extensions)}")
    return 0


def main(
    argv: Optional[Sequence[str]] = None,
    *,
    registry: Optional[ConverterRegistry] = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    registry = registry if registry is not None else build_registry()
    console = Console(highlight=False)

    if args.command == "list":
        return _handle_list(registry, console)
    return _handle_info(registry, console, args.name)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
