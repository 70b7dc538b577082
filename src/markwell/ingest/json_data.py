"""JSON, JSONC and JSON Lines documents to Markdown.

Objects are summarized as a schema outline; arrays of objects and JSONL
records are rendered as a table capped at :data:`MAX_TABLE_ROWS` rows.
"""

from __future__ import annotations

import json
from collections import Counter
from typing import Any, Sequence

from markwell.core.errors import IngestError
from markwell.core.types import (
    HEAD_SIZE,
    CanProcessInput,
    IngestInput,
    IngestOutput,
)

MAX_TABLE_ROWS = 20


def strip_jsonc_comments(text: str) -> str:
    """Remove ``//`` and ``/* */`` comments outside string literals."""

    result: list[str] = []
    index = 0
    length = len(text)
    in_string = False
    while index < length:
        char = text[index]
        if in_string:
            result.append(char)
            if char == "\\" and index + 1 < length:
                result.append(text[index + 1])
                index += 2
                continue
            if char == '"':
                in_string = False
            index += 1
            continue

        if char == '"':
            in_string = True
            result.append(char)
            index += 1
        elif text.startswith("//", index):
            newline = text.find("\n", index)
            index = length if newline == -1 else newline
        elif text.startswith("/*", index):
            close = text.find("*/", index + 2)
            index = length if close == -1 else close + 2
        else:
            result.append(char)
            index += 1
    return "".join(result)


def is_jsonl(content: str) -> bool:
    lines = content.strip().split("\n")
    if len(lines) < 2:
        return False
    try:
        json.loads(lines[0])
        json.loads(lines[1])
    except ValueError:
        return False
    return True


def type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    return "object"


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def schema_outline(data: dict[str, Any], indent: int = 0) -> list[str]:
    prefix = "  " * indent
    lines = []
    for key, value in data.items():
        kind = type_name(value)
        if kind == "object":
            lines.append(f"{prefix}- `{key}`: object")
            lines.extend(schema_outline(value, indent + 1))
        elif kind == "array" and value:
            element = type_name(value[0])
            lines.append(
                f"{prefix}- `{key}`: array of {element} ({len(value)} items)"
            )
        else:
            lines.append(f"{prefix}- `{key}`: {kind}")
    return lines


def records_table(records: Sequence[dict[str, Any]]) -> list[str]:
    if not records:
        return []

    headers: list[str] = []
    for record in records:
        for key in record:
            if key not in headers:
                headers.append(key)

    lines = [
        f"| {' | '.join(headers)} |",
        f"| {' | '.join('---' for _ in headers)} |",
    ]
    for record in records[:MAX_TABLE_ROWS]:
        cells = [_cell(record.get(header)) for header in headers]
        lines.append(f"| {' | '.join(cells)} |")

    if len(records) > MAX_TABLE_ROWS:
        remaining = len(records) - MAX_TABLE_ROWS
        lines.extend(["", f"*... and {remaining} more rows*"])
    return lines


def document_lines(data: Any) -> list[str]:
    if isinstance(data, list):
        lines = [f"Array with {len(data)} items.", ""]
        if data and isinstance(data[0], dict):
            lines.extend(["## Data", ""])
            records = [item for item in data if isinstance(item, dict)]
            lines.extend(records_table(records))
        else:
            element = type_name(data[0]) if data else "unknown"
            lines.extend(["## Schema", "", f"- Array of {element}"])
        return lines
    if isinstance(data, dict):
        return ["## Schema", "", *schema_outline(data)]
    return [f"Value: `{_cell(data)}` ({type_name(data)})"]


def _jsonl_markdown(content: str) -> tuple[list[str], int]:
    records = []
    for line in content.strip().split("\n"):
        if not line.strip():
            continue
        try:
            record = json.loads(line)
        except ValueError:
            continue
        if isinstance(record, dict):
            records.append(record)

    lines = [f"JSONL file with {len(records)} records.", ""]
    if records:
        counts: Counter[str] = Counter()
        for record in records:
            counts.update(record.keys())
        lines.extend(["## Common Keys", ""])
        lines.extend(
            f"- `{key}` ({count}/{len(records)} records)"
            for key, count in counts.items()
        )
        lines.extend(["", "## Data", ""])
        lines.extend(records_table(records))
    return lines, len(records)


class JsonIngest:
    name = "json"
    extensions = (".json", ".jsonl", ".jsonc")

    async def can_process(self, input: CanProcessInput) -> bool:
        content = input.head.strip()
        if is_jsonl(content):
            return True
        try:
            json.loads(strip_jsonc_comments(content))
            return True
        except ValueError:
            pass
        # A head cut from a larger file cannot parse on its own.
        truncated = len(input.buffer) > HEAD_SIZE
        stripped = strip_jsonc_comments(content).lstrip()
        return truncated and stripped[:1] in ("{", "[")

    async def ingest(self, input: IngestInput) -> IngestOutput:
        content = input.buffer.decode("utf-8-sig", errors="replace")
        lines = ["# JSON Document", ""]

        if is_jsonl(content):
            body, count = _jsonl_markdown(content)
            lines.extend(body)
            return IngestOutput(
                markdown="\n".join(lines),
                metadata={"format": "jsonl", "record_count": count},
            )

        stripped = strip_jsonc_comments(content)
        try:
            data = json.loads(stripped)
        except ValueError as exc:
            raise IngestError(
                f"Invalid JSON in {input.file_path.name}: {exc}"
            ) from exc

        lines.extend(document_lines(data))
        lines.append("")
        return IngestOutput(
            markdown="\n".join(lines),
            metadata={"format": "jsonc" if stripped != content else "json"},
        )
