"""``markwell`` entry point: routes the first argument to a subcommand."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from importlib import import_module, metadata
from typing import Optional, Sequence

from markwell import __version__


@dataclass(frozen=True)
class Command:
    """A subcommand backed by a module exposing ``main(argv) -> int``."""

    name: str
    module: str
    summary: str

    @property
    def prog(self) -> str:
        return f"markwell {self.name}"

    def run(self, argv: Sequence[str]) -> int:
        # Imported lazily so `markwell list` never loads WeasyPrint et al.
        entry = import_module(self.module).main
        saved = sys.argv
        sys.argv = [self.prog, *argv]
        try:
            return _exit_code(entry(list(argv)))
        except SystemExit as exc:
            return _exit_code(exc.code)
        finally:
            sys.argv = saved


COMMANDS = {
    command.name: command
    for command in (
        Command(
            "init",
            "markwell.workspace.cli",
            "Create the workspace that holds config and run logs.",
        ),
        Command(
            "convert",
            "markwell.convert.cli",
            "Convert files to Markdown, or Markdown to other formats.",
        ),
        Command(
            "converters",
            "markwell.converters_cli",
            "List and inspect the registered converters.",
        ),
        Command(
            "themes",
            "markwell.themes_cli",
            "List, preview and scaffold themes.",
        ),
    )
}


def command_table() -> str:
    width = max(len(name) for name in COMMANDS)
    rows = [
        f"  {command.name.ljust(width)}  {command.summary}"
        for command in COMMANDS.values()
    ]
    return "\n".join(["Available commands:", *rows])


def usage() -> str:
    return (
        "Usage: markwell <command> [args...]\n"
        "Run `markwell list` for commands or `markwell help <name>` for "
        "details.\n\n" + command_table()
    )


def installed_version() -> str:
    try:
        return metadata.version("markwell")
    except metadata.PackageNotFoundError:
        return __version__


def _exit_code(value: object) -> int:
    """Map a return value or ``SystemExit.code`` to a process exit code."""

    if value is None:
        return 0
    if isinstance(value, int):
        return value
    # argparse and friends exit with a message string.
    sys.stderr.write(f"{value}\n")
    return 1


def _unknown(name: str) -> int:
    sys.stderr.write(f"Unknown command '{name}'.\n{command_table()}\n")
    return 2


def _help(topic: Optional[str]) -> int:
    if topic is None:
        sys.stdout.write(usage() + "\n")
        return 0
    if topic not in COMMANDS:
        return _unknown(topic)
    command = COMMANDS[topic]
    sys.stdout.write(
        f"{command.name}: {command.summary}\n"
        f"Run `{command.prog} --help` for its options.\n"
    )
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if not args:
        sys.stdout.write(usage() + "\n")
        return 2

    name, rest = args[0], args[1:]
    if name in ("-h", "--help"):
        return _help(None)
    if name == "help":
        return _help(rest[0] if rest else None)
    if name in ("-V", "--version", "version"):
        sys.stdout.write(installed_version() + "\n")
        return 0
    if name == "list":
        sys.stdout.write(command_table() + "\n")
        return 0
    if name in COMMANDS:
        return COMMANDS[name].run(rest)
    return _unknown(name)


if __name__ == "__main__":  # pragma: no cover - manual invocation guard
    raise SystemExit(main())
