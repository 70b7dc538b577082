"""WebVTT and SubRip subtitle files to transcript Markdown."""

from __future__ import annotations

import re

from markwell.core.types import CanProcessInput, IngestInput, IngestOutput
from markwell.cues import Cue, cues_to_markdown

_VTT_TIMING = re.compile(
    r"(\d{2}:\d{2}:\d{2}\.\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2}\.\d{3})"
)
_SRT_TIMING = re.compile(
    r"(\d{2}:\d{2}:\d{2},\d{3})\s*-->\s*(\d{2}:\d{2}:\d{2},\d{3})"
)
_VOICE = re.compile(r"^<v\s+([^>]+)>(.*?)(?:</v>)?$", re.DOTALL)
_TAG = re.compile(r"<[^>]+>")


def parse_vtt(content: str) -> list[Cue]:
    lines = content.replace("\r\n", "\n").split("\n")
    cues: list[Cue] = []
    index = 0
    while index < len(lines):
        timing = _VTT_TIMING.search(lines[index].strip())
        index += 1
        if not timing:
            continue

        text_lines: list[str] = []
        while index < len(lines) and lines[index].strip():
            candidate = lines[index].strip()
            if _VTT_TIMING.search(candidate):
                break
            text_lines.append(candidate)
            index += 1

        text = "\n".join(text_lines)
        speaker = None
        voice = _VOICE.match(text)
        if voice:
            speaker = voice.group(1).strip()
            text = voice.group(2).strip()
        text = _TAG.sub("", text).strip()

        if text:
            cues.append(
                Cue(
                    start=timing.group(1),
                    end=timing.group(2),
                    text=text,
                    speaker=speaker,
                )
            )
    return cues


def looks_like_srt(head: str) -> bool:
    """An SRT file opens with a cue number followed by a timing line."""

    lines = head.strip().replace("\r\n", "\n").split("\n")
    if len(lines) < 2 or not lines[0].strip().isdigit():
        return False
    return _SRT_TIMING.search(lines[1]) is not None


def parse_srt(content: str) -> list[Cue]:
    cues: list[Cue] = []
    blocks = re.split(r"\n\n+", content.replace("\r\n", "\n").strip())
    for block in blocks:
        lines = block.strip().split("\n")
        if len(lines) < 3:
            continue
        timing = _SRT_TIMING.search(lines[1])
        if not timing:
            continue
        text = "\n".join(lines[2:]).strip()
        if text:
            cues.append(
                Cue(
                    start=timing.group(1).replace(",", "."),
                    end=timing.group(2).replace(",", "."),
                    text=text,
                )
            )
    return cues


class VttIngest:
    name = "vtt"
    extensions = (".vtt",)

    async def can_process(self, input: CanProcessInput) -> bool:
        return input.head.lstrip("\ufeff \t\r\n").startswith("WEBVTT")

    async def ingest(self, input: IngestInput) -> IngestOutput:
        cues = parse_vtt(input.buffer.decode("utf-8-sig", errors="replace"))
        return IngestOutput(
            markdown=cues_to_markdown(cues),
            metadata={"cue_count": len(cues)},
        )


class SrtIngest:
    name = "srt"
    extensions = (".srt",)

    async def can_process(self, input: CanProcessInput) -> bool:
        return looks_like_srt(input.head.lstrip("\ufeff"))

    async def ingest(self, input: IngestInput) -> IngestOutput:
        cues = parse_srt(input.buffer.decode("utf-8-sig", errors="replace"))
        return IngestOutput(
            markdown=cues_to_markdown(cues),
            metadata={"cue_count": len(cues)},
        )
