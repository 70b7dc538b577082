"""Config-file plumbing shared by ``markwell`` subcommands.

Command loaders own their schema and precedence rules; this module only
knows how to read a TOML table, check it against a defaults table, pull
prefixed environment variables and drop starter files on disk.
"""

from __future__ import annotations

import copy
import tomllib
from pathlib import Path
from typing import Any, Mapping, Optional

__all__ = [
    "ConfigFileError",
    "apply_table",
    "env_value",
    "first_set",
    "read_toml",
    "write_starter_file",
]


class ConfigFileError(RuntimeError):
    """A config file could not be read, validated or written."""


def read_toml(path: Path) -> dict[str, Any]:
    if not path.is_file():
        raise ConfigFileError(f"Config file not found: {path}")
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise ConfigFileError(f"{path} is not valid TOML: {exc}") from exc


def apply_table(
    defaults: Mapping[str, Any],
    table: Mapping[str, Any],
    _prefix: tuple[str, ...] = (),
) -> dict[str, Any]:
    """Return a copy of ``defaults`` with the values from ``table`` applied.

    ``defaults`` doubles as the schema: keys it does not declare are
    rejected, and a nested table may only be replaced by another table.
    """

    result = copy.deepcopy(dict(defaults))
    for key, value in table.items():
        dotted = ".".join(_prefix + (key,))
        if key not in result:
            raise ConfigFileError(f"Unknown configuration key '{dotted}'.")
        if not isinstance(result[key], Mapping):
            result[key] = value
        elif isinstance(value, Mapping):
            result[key] = apply_table(result[key], value, _prefix + (key,))
        else:
            raise ConfigFileError(
                f"'{dotted}' must be a table, got {type(value).__name__}."
            )
    return result


def env_value(env: Mapping[str, str], name: str) -> Optional[str]:
    """Stripped value of ``env[name]``; blank counts as unset."""

    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def first_set(*candidates: Any) -> Any:
    return next((item for item in candidates if item is not None), None)


def write_starter_file(
    path: Path,
    text: str,
    *,
    overwrite: bool = False,
    mode: Optional[int] = None,
) -> Path:
    """Write ``text`` to ``path``, refusing to clobber unless ``overwrite``."""

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("w" if overwrite else "x", encoding="utf-8") as handle:
            handle.write(text)
    except FileExistsError as exc:
        raise ConfigFileError(
            f"{path} already exists. Use --force to overwrite it."
        ) from exc
    if mode is not None:
        path.chmod(mode)
    return path
