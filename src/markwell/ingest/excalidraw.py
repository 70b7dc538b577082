"""Excalidraw drawings to a Markdown summary of their text and shapes."""

from __future__ import annotations

import json
import re
from collections import Counter
from typing import Any, Iterable

from markwell.core.errors import IngestError
from markwell.core.types import CanProcessInput, IngestInput, IngestOutput

# A truncated head cannot be parsed, so fall back to spotting the type marker.
_TYPE_MARKER = re.compile(r'^\s*\{\s*"type"\s*:\s*"excalidraw"')


def _is_excalidraw(data: Any) -> bool:
    return isinstance(data, dict) and data.get("type") == "excalidraw"


def extract_text(elements: Iterable[dict[str, Any]]) -> list[str]:
    texts = []
    for element in elements:
        if element.get("type") == "text" and element.get("text"):
            texts.append(element["text"])
            continue
        label = element.get("label")
        if isinstance(label, dict) and label.get("text"):
            texts.append(label["text"])
    return texts


def drawing_to_markdown(data: dict[str, Any]) -> tuple[str, dict[str, int]]:
    elements = [
        item for item in data.get("elements") or [] if isinstance(item, dict)
    ]
    texts = extract_text(elements)

    lines = ["# Excalidraw Drawing", ""]
    if texts:
        lines.extend(["## Text Content", ""])
        lines.extend(f"- {text}" for text in texts)
    else:
        lines.append("*No text content found in drawing.*")
    lines.append("")

    counts = Counter(
        str(element.get("type", "unknown")) for element in elements
    )
    if counts:
        lines.extend(
            ["## Elements Summary", "", "| Type | Count |", "| --- | --- |"]
        )
        lines.extend(f"| {kind} | {count} |" for kind, count in counts.items())
        lines.append("")

    metadata = {"element_count": len(elements), "text_count": len(texts)}
    return "\n".join(lines), metadata


class ExcalidrawIngest:
    name = "excalidraw"
    extensions = (".excalidraw", ".json")

    async def can_process(self, input: CanProcessInput) -> bool:
        try:
            return _is_excalidraw(json.loads(input.head))
        except ValueError:
            return bool(_TYPE_MARKER.match(input.head))

    async def ingest(self, input: IngestInput) -> IngestOutput:
        try:
            data = json.loads(input.buffer.decode("utf-8-sig"))
        except ValueError as exc:
            raise IngestError(f"Invalid Excalidraw file: {exc}") from exc
        if not _is_excalidraw(data):
            raise IngestError(
                "Invalid Excalidraw file: missing type 'excalidraw'"
            )

        markdown, metadata = drawing_to_markdown(data)
        return IngestOutput(markdown=markdown, metadata=metadata)
