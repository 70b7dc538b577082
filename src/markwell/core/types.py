"""Plugin contract shared by the registry and every converter.

Ingest converters turn a foreign file into Markdown (or CSV files); export
converters turn Markdown/CSV plus a resolved theme into a foreign file. The
registry only relies on the shapes declared here, so plugins are free to be
plain classes as long as they satisfy the protocols.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import (
    Any,
    Awaitable,
    Mapping,
    Protocol,
    Sequence,
    Union,
    runtime_checkable,
)

__all__ = [
    "HEAD_SIZE",
    "ExportCategory",
    "OutputFile",
    "CanProcessInput",
    "IngestInput",
    "IngestOutput",
    "IngestConverter",
    "ExportFormat",
    "ExportInput",
    "ExportOutput",
    "ExportConverter",
    "decode_head",
    "normalize_extension",
]

# Number of leading bytes exposed to ``can_process`` predicates as text.
HEAD_SIZE = 1024


class ExportCategory(str, Enum):
    """Kinds of output an export converter can produce."""

    DOCUMENT = "document"
    SPREADSHEET = "spreadsheet"
    PRESENTATION = "presentation"
    TRANSCRIPT = "transcript"

    @classmethod
    def from_value(cls, value: Union[str, "ExportCategory"]) -> "ExportCategory":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown export category '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class OutputFile:
    """A single text output, e.g. ``Sheet1.csv`` or ``slides.md``."""

    relative_path: str
    content: str


@dataclass(frozen=True)
class CanProcessInput:
    """Input handed to ``can_process`` after extension matching."""

    file_path: Path
    extension: str
    buffer: bytes
    head: str


@dataclass(frozen=True)
class IngestInput:
    file_path: Path
    buffer: bytes
    options: Mapping[str, Any] = field(default_factory=dict)


@dataclass
class IngestOutput:
    """Result of an ingest conversion.

    Well-behaved plugins populate either ``markdown`` or ``files``.
    """

    markdown: str | None = None
    files: Sequence[OutputFile] = ()
    assets: Mapping[str, bytes] = field(default_factory=dict)
    metadata: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExportFormat:
    extension: str
    mime_type: str
    label: str


@dataclass(frozen=True)
class ExportInput:
    files: Sequence[OutputFile]
    format: str
    theme: Mapping[str, Any]
    assets: Mapping[str, bytes] = field(default_factory=dict)
    options: Mapping[str, Any] = field(default_factory=dict)

    def primary_content(self) -> str:
        """Return the first input file's content (empty when no files)."""

        if not self.files:
            return ""
        return self.files[0].content


@dataclass(frozen=True)
class ExportOutput:
    buffer: bytes
    mime_type: str
    extension: str


@runtime_checkable
class IngestConverter(Protocol):
    """Structural contract for ingest plugins."""

    name: str
    extensions: Sequence[str]

    def can_process(
        self, input: CanProcessInput
    ) -> Union[bool, Awaitable[bool]]:
        """Confirm (by content) that this converter handles the file."""
        ...

    def ingest(self, input: IngestInput) -> Awaitable[IngestOutput]:
        ...


@runtime_checkable
class ExportConverter(Protocol):
    """Structural contract for export plugins."""

    name: str
    category: ExportCategory
    formats: Sequence[ExportFormat]

    def export(self, input: ExportInput) -> Awaitable[ExportOutput]:
        ...


def normalize_extension(value: str) -> str:
    """Return ``value`` lowercased and dot-prefixed (``""`` stays empty)."""

    candidate = value.strip().lower()
    if not candidate:
        return ""
    if not candidate.startswith("."):
        candidate = f".{candidate}"
    return candidate


def decode_head(buffer: bytes, size: int = HEAD_SIZE) -> str:
    """Decode the first ``size`` bytes, replacing invalid sequences."""

    return bytes(buffer[:size]).decode("utf-8", errors="replace")
