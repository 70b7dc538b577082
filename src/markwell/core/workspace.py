"""The markwell workspace: a private directory for config and run logs.

The root is ``--workspace``/``--path`` when given, else ``MARKWELL_HOME``,
else ``~/.markwell``. Only the last one may silently move to the temp
directory when it cannot be created.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Optional

WORKSPACE_ENV = "MARKWELL_HOME"
DEFAULT_WORKSPACE = Path.home() / ".markwell"
SUBDIRECTORIES = ("config", "logs")


class WorkspaceError(RuntimeError):
    """Raised when the workspace directories cannot be used."""


@dataclass(frozen=True)
class WorkspaceLayout:
    home: Path
    directories: Mapping[str, Path]
    # "home" plus one flag per subdirectory; True when this call made it.
    created: Mapping[str, bool]

    def path_for(self, key: str) -> Path:
        if key not in self.directories:
            raise KeyError(f"Unknown workspace directory '{key}'.")
        return self.directories[key]


def workspace_root(
    env: Optional[Mapping[str, str]] = None, path: Optional[Path] = None
) -> tuple[Path, bool]:
    """Return the absolute workspace root and whether it was chosen
    explicitly (argument or environment) rather than defaulted."""

    env = os.environ if env is None else env
    from_env = (env.get(WORKSPACE_ENV) or "").strip()
    if path is not None:
        chosen, explicit = path, True
    elif from_env:
        chosen, explicit = Path(from_env), True
    else:
        chosen, explicit = DEFAULT_WORKSPACE, False
    return chosen.expanduser().resolve(), explicit


def ensure_workspace(
    *,
    env: Optional[Mapping[str, str]] = None,
    path: Optional[Path] = None,
    create: bool = True,
) -> WorkspaceLayout:
    root, explicit = workspace_root(env, path)
    if not create:
        return _layout(root, made=set())

    try:
        return _build(root)
    except PermissionError as exc:
        fallback = Path(tempfile.gettempdir()) / "markwell"
        if explicit or fallback == root:
            raise WorkspaceError(
                f"Unable to prepare workspace at {root}: {exc}"
            ) from exc
    try:
        return _build(fallback)
    except PermissionError as exc:
        raise WorkspaceError(
            f"Unable to prepare workspace at {root} or {fallback}: {exc}"
        ) from exc


def _build(root: Path) -> WorkspaceLayout:
    made = set()
    for key, directory in _entries(root):
        if _make_private_dir(directory):
            made.add(key)
    return _layout(root, made=made)


def _entries(root: Path) -> list[tuple[str, Path]]:
    return [("home", root)] + [(name, root / name) for name in SUBDIRECTORIES]


def _layout(root: Path, *, made: set) -> WorkspaceLayout:
    for key, directory in _entries(root):
        if directory.exists() and not directory.is_dir():
            raise WorkspaceError(
                f"Workspace {key} directory is a file: {directory}"
            )
    return WorkspaceLayout(
        home=root,
        directories=MappingProxyType(
            {name: root / name for name in SUBDIRECTORIES}
        ),
        created=MappingProxyType(
            {key: key in made for key, _ in _entries(root)}
        ),
    )


def _make_private_dir(directory: Path) -> bool:
    """Create ``directory`` as owner-only; False when it already existed."""

    if directory.is_dir():
        return False
    if directory.exists():
        raise WorkspaceError(
            f"Workspace path exists and is not a directory: {directory}"
        )
    directory.mkdir(mode=0o700, parents=True)
    return True
