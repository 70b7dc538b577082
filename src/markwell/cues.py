"""The transcript Markdown format shared by VTT/SRT ingest and export.

Layout::

    ## Transcript

    **[HH:MM:SS.mmm --> HH:MM:SS.mmm]** Speaker Name
    Cue text goes here.

    **[HH:MM:SS.mmm --> HH:MM:SS.mmm]**
    Cue text without a speaker label.

Timestamps always use a period before the milliseconds; SRT's comma form is
normalized on the way in and restored on the way out.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, Optional

HEADING = "## Transcript"

_STAMP = r"\d{2}:\d{2}:\d{2}\.\d{3}"
_CUE_LINE = re.compile(
    rf"\*\*\[({_STAMP})\s*-->\s*({_STAMP})\]\*\*\s*(.*)"
)
_CUE_START = re.compile(rf"\*\*\[{_STAMP}\s*-->")


@dataclass(frozen=True)
class Cue:
    start: str
    end: str
    text: str
    speaker: Optional[str] = None


def cues_to_markdown(cues: Iterable[Cue]) -> str:
    lines = [HEADING, ""]
    for cue in cues:
        stamp = f"**[{cue.start} --> {cue.end}]**"
        lines.append(f"{stamp} {cue.speaker}" if cue.speaker else stamp)
        lines.append(cue.text)
        lines.append("")
    return "\n".join(lines)


def parse_transcript_markdown(content: str) -> list[Cue]:
    """Parse :func:`cues_to_markdown` output back into cues."""

    lines = content.replace("\r\n", "\n").split("\n")
    cues: list[Cue] = []
    index = 0
    while index < len(lines):
        match = _CUE_LINE.search(lines[index])
        index += 1
        if not match:
            continue

        text_lines: list[str] = []
        while index < len(lines) and lines[index].strip():
            if _CUE_START.search(lines[index]):
                break
            text_lines.append(lines[index])
            index += 1

        text = "\n".join(text_lines).strip()
        if text:
            cues.append(
                Cue(
                    start=match.group(1),
                    end=match.group(2),
                    text=text,
                    speaker=match.group(3).strip() or None,
                )
            )
    return cues
