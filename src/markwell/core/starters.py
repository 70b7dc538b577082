"""Starter files shipped with markwell.

``markwell convert config init`` and ``markwell themes init`` both copy a
packaged, commented file to disk. Each starter is parsed before it is
written so a broken resource never reaches the user's project.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from importlib import resources
from pathlib import Path
from typing import Iterable, Optional

import yaml

from .config import ConfigFileError, write_starter_file

__all__ = [
    "StarterFile",
    "StarterFileError",
    "get_starter",
    "iter_starters",
]


class StarterFileError(RuntimeError):
    """A starter file is unknown, unreadable or could not be written."""


@dataclass(frozen=True)
class StarterFile:
    name: str
    package: str
    resource: str
    description: str
    mode: Optional[int] = None

    @property
    def syntax(self) -> str:
        return Path(self.resource).suffix.lstrip(".")

    def read_text(self) -> str:
        entry = resources.files(self.package).joinpath(self.resource)
        if not entry.is_file():
            raise StarterFileError(
                f"Starter '{self.name}' is missing from {self.package}."
            )
        return entry.read_text(encoding="utf-8")

    def parse(self) -> dict:
        text = self.read_text()
        try:
            if self.syntax == "toml":
                return tomllib.loads(text)
            return yaml.safe_load(text) or {}
        except (tomllib.TOMLDecodeError, yaml.YAMLError) as exc:
            raise StarterFileError(
                f"Starter '{self.name}' does not parse: {exc}"
            ) from exc

    def write(self, path: Path, *, overwrite: bool = False) -> Path:
        self.parse()
        try:
            return write_starter_file(
                path, self.read_text(), overwrite=overwrite, mode=self.mode
            )
        except ConfigFileError as exc:
            raise StarterFileError(str(exc)) from exc


_STARTERS = {
    starter.name: starter
    for starter in (
        StarterFile(
            name="convert",
            package="markwell.convert",
            resource="template.toml",
            description="Defaults for `markwell convert` runs.",
            mode=0o600,
        ),
        StarterFile(
            name="theme",
            package="markwell.themes",
            resource="starter.yaml",
            description="Project theme extending the default look.",
        ),
    )
}


def get_starter(name: str) -> StarterFile:
    if name not in _STARTERS:
        known = ", ".join(sorted(_STARTERS))
        raise StarterFileError(
            f"Unknown starter file '{name}'. Known starters: {known}."
        )
    return _STARTERS[name]


def iter_starters() -> Iterable[StarterFile]:
    return tuple(_STARTERS.values())
