"""Transcript Markdown back to WebVTT or SubRip subtitles."""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from markwell.core.errors import ExportError
from markwell.core.types import (
    ExportCategory,
    ExportFormat,
    ExportInput,
    ExportOutput,
)
from markwell.cues import Cue, parse_transcript_markdown

from . import _render


def format_vtt(cues: Sequence[Cue], theme: Mapping[str, Any]) -> str:
    section = _render.theme_section(theme, "transcript")
    speakers = section.get("speakerLabels", True)
    lines = ["WEBVTT", ""]
    for number, cue in enumerate(cues, start=1):
        lines.append(str(number))
        lines.append(f"{cue.start} --> {cue.end}")
        if speakers and cue.speaker:
            lines.append(f"<v {cue.speaker}>{cue.text}</v>")
        else:
            lines.append(cue.text)
        lines.append("")
    return "\n".join(lines)


def format_srt(cues: Sequence[Cue]) -> str:
    lines = []
    for number, cue in enumerate(cues, start=1):
        lines.append(str(number))
        start, end = cue.start.replace(".", ","), cue.end.replace(".", ",")
        lines.append(f"{start} --> {end}")
        lines.append(cue.text)
        lines.append("")
    return "\n".join(lines)


class TranscriptExport:
    name = "transcript"
    category = ExportCategory.TRANSCRIPT
    formats = (
        ExportFormat(".vtt", "text/vtt", "WebVTT"),
        ExportFormat(".srt", "application/x-subrip", "SubRip"),
    )

    async def export(self, input: ExportInput) -> ExportOutput:
        cues = parse_transcript_markdown(input.primary_content())
        if input.format == ".vtt":
            text = format_vtt(cues, input.theme)
            return ExportOutput(text.encode("utf-8"), "text/vtt", ".vtt")
        if input.format == ".srt":
            text = format_srt(cues)
            return ExportOutput(
                text.encode("utf-8"), "application/x-subrip", ".srt"
            )
        raise ExportError(f"Unsupported transcript format: {input.format}")
