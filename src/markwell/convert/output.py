"""Output path resolution and collision handling for conversions."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Union

from .config import CollisionPolicy

ConfirmCallback = Callable[[Path], bool]

__all__ = [
    "CollisionResult",
    "ConfirmCallback",
    "files_output_dir",
    "is_directory_flag",
    "prompt_overwrite",
    "resolve_collision",
    "resolve_output_path",
]


def is_directory_flag(output_flag: str) -> bool:
    if output_flag.endswith(("/", os.sep)):
        return True
    return Path(output_flag).expanduser().is_dir()


def resolve_output_path(
    input_path: Union[str, Path],
    extension: str,
    output_flag: Optional[str] = None,
    *,
    fan_out: bool = False,
) -> Path:
    """Return where the converted form of ``input_path`` should be written.

    Without ``output_flag`` the output sits next to the input. A flag ending
    in a path separator or naming an existing directory places the output
    inside it; any other flag is taken as the explicit output file. With
    ``fan_out`` (one input, several targets) an explicit file only supplies
    the name and each target keeps its own extension.
    """

    source = Path(input_path)
    filename = f"{source.stem}{extension}"
    if not output_flag:
        return source.parent / filename
    if is_directory_flag(output_flag):
        return Path(output_flag).expanduser() / filename
    explicit = Path(output_flag).expanduser()
    return explicit.with_suffix(extension) if fan_out else explicit


def files_output_dir(
    input_path: Union[str, Path], output_flag: Optional[str] = None
) -> Path:
    """Directory receiving multi-file ingest output (e.g. one CSV per sheet)."""

    source = Path(input_path)
    if output_flag:
        return Path(output_flag).expanduser()
    return source.parent / source.stem


@dataclass(frozen=True)
class CollisionResult:
    path: Path
    skip_reason: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.skip_reason is not None


def prompt_overwrite(path: Path) -> bool:
    sys.stdout.write(f"{path} already exists. Overwrite? [y/N] ")
    sys.stdout.flush()
    answer = sys.stdin.readline()
    return answer.strip().lower() in ("y", "yes")


def resolve_collision(
    target: Path,
    policy: CollisionPolicy,
    *,
    interactive: Optional[bool] = None,
    confirm: Optional[ConfirmCallback] = None,
) -> CollisionResult:
    """Decide where (and whether) to write ``target`` given ``policy``."""

    if not target.exists():
        return CollisionResult(target)

    if policy is CollisionPolicy.OVERWRITE:
        return CollisionResult(target)

    if policy is CollisionPolicy.SKIP:
        return CollisionResult(
            target,
            skip_reason="Output already exists and collision policy is 'skip'.",
        )

    if policy is CollisionPolicy.VERSION:
        counter = 1
        while True:
            candidate = target.with_name(
                f"{target.stem}-{counter:02d}{target.suffix}"
            )
            if not candidate.exists():
                return CollisionResult(candidate)
            counter += 1

    is_tty = sys.stdin.isatty() if interactive is None else interactive
    if not is_tty:
        return CollisionResult(
            target,
            skip_reason=(
                f"{target} already exists. Use --force to overwrite in "
                "non-interactive mode."
            ),
        )
    if (confirm or prompt_overwrite)(target):
        return CollisionResult(target)
    return CollisionResult(target, skip_reason="Overwrite declined.")
