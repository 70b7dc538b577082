"""Scratch project directories for conversion tests."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

import yaml

from markwell.core.theme import THEME_FILENAME

Content = Union[str, bytes]


@dataclass
class ProjectDir:
    """A tmp directory standing in for a user's document folder."""

    root: Path

    def write(self, relative: Union[str, Path], content: Content = "") -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_text(content, encoding="utf-8")
        return path

    def create(self, layout: Mapping[str, Any]) -> Path:
        """Lay out files from a nested mapping.

        Strings and bytes become files, mappings become directories and
        ``None`` makes an empty directory.
        """

        pending = [(self.root, layout)]
        while pending:
            parent, entries = pending.pop()
            for name, value in entries.items():
                if isinstance(value, Mapping):
                    pending.append((parent / name, value))
                elif value is None:
                    (parent / name).mkdir(parents=True, exist_ok=True)
                else:
                    self.write((parent / name).relative_to(self.root), value)
        return self.root

    def theme(self, settings: Mapping[str, Any], where: str = ".") -> Path:
        """Drop a project theme file into ``where``."""

        text = yaml.safe_dump(dict(settings), sort_keys=False)
        return self.write(Path(where) / THEME_FILENAME, text)

    def names(self, pattern: str = "**/*") -> list[str]:
        return sorted(
            path.relative_to(self.root).as_posix()
            for path in self.root.glob(pattern)
            if path.is_file()
        )
