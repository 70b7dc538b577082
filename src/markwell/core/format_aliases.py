"""Resolve user-facing format names into export targets."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from .types import ExportCategory

__all__ = [
    "FormatAliasError",
    "DeprecatedSyntaxError",
    "UnknownFormatError",
    "EmptyFormatError",
    "ResolvedFormat",
    "ResolveContext",
    "FORMAT_ALIASES",
    "CONTEXTUAL_ALIASES",
    "get_aliases_for_category",
    "is_marp_content",
    "resolve_alias",
    "resolve_to_flag",
]


class FormatAliasError(ValueError):
    """Raised when a requested output format cannot be resolved."""


class DeprecatedSyntaxError(FormatAliasError):
    """Raised for the retired ``category:format`` syntax."""


class UnknownFormatError(FormatAliasError):
    """Raised when a token matches no known alias."""


class EmptyFormatError(FormatAliasError):
    """Raised when a ``--to`` value lists no formats at all."""


@dataclass(frozen=True)
class ResolvedFormat:
    category: ExportCategory
    extension: str


@dataclass(frozen=True)
class ResolveContext:
    """Extra information used by content-dependent aliases."""

    input_content: Optional[str] = None


def _target(category: ExportCategory, extension: str) -> ResolvedFormat:
    return ResolvedFormat(category=category, extension=extension)


_PRESENTATION = _target(ExportCategory.PRESENTATION, ".pptx")
_DOCUMENT = _target(ExportCategory.DOCUMENT, ".docx")
_SPREADSHEET = _target(ExportCategory.SPREADSHEET, ".xlsx")

FORMAT_ALIASES: Mapping[str, ResolvedFormat] = MappingProxyType(
    {
        "presentation": _PRESENTATION,
        "slides": _PRESENTATION,
        "pptx": _PRESENTATION,
        "ppt": _PRESENTATION,
        "powerpoint": _PRESENTATION,
        "document": _DOCUMENT,
        "docx": _DOCUMENT,
        "word": _DOCUMENT,
        "doc": _DOCUMENT,
        "spreadsheet": _SPREADSHEET,
        "excel": _SPREADSHEET,
        "xlsx": _SPREADSHEET,
        "xls": _SPREADSHEET,
        "sheets": _SPREADSHEET,
        "transcription": _target(ExportCategory.TRANSCRIPT, ".vtt"),
        "vtt": _target(ExportCategory.TRANSCRIPT, ".vtt"),
        "srt": _target(ExportCategory.TRANSCRIPT, ".srt"),
    }
)

# Aliases whose category depends on whether the input is a Marp deck.
CONTEXTUAL_ALIASES: frozenset[str] = frozenset({"html", "pdf"})


def is_marp_content(content: str) -> bool:
    """Return ``True`` when the leading frontmatter declares ``marp: true``."""

    lines = content.splitlines(keepends=True)
    # The opening delimiter must be a complete line at offset 0.
    if not lines or lines[0] not in ("---\n", "---\r\n"):
        return False

    found = False
    for line in lines[1:]:
        if line.rstrip("\r\n") == "---":
            return found
        if line.strip() == "marp: true":
            found = True
    return False


def resolve_alias(
    alias: str, context: Optional[ResolveContext] = None
) -> ResolvedFormat:
    """Resolve a single alias token to a category and extension."""

    key = alias.strip().lower()

    if ":" in key:
        suggestion = key.split(":", 1)[1].strip() or key
        raise DeprecatedSyntaxError(
            "The 'category:format' syntax is no longer supported. "
            f"Use '--to {suggestion}' instead."
        )

    static = FORMAT_ALIASES.get(key)
    if static is not None:
        return static

    if key in CONTEXTUAL_ALIASES:
        content = context.input_content if context is not None else None
        is_marp = content is not None and is_marp_content(content)
        category = (
            ExportCategory.PRESENTATION if is_marp else ExportCategory.DOCUMENT
        )
        return ResolvedFormat(category=category, extension=f".{key}")

    available = ", ".join(sorted([*FORMAT_ALIASES, *CONTEXTUAL_ALIASES]))
    raise UnknownFormatError(
        f'Unknown format "{alias}". Available formats: {available}'
    )


def resolve_to_flag(
    value: str, context: Optional[ResolveContext] = None
) -> list[ResolvedFormat]:
    """Resolve a comma-separated ``--to`` value; any bad entry fails all."""

    parts = [part.strip() for part in value.split(",")]
    parts = [part for part in parts if part]
    if not parts:
        raise EmptyFormatError("No format specified in --to flag.")
    return [resolve_alias(part, context) for part in parts]


def get_aliases_for_category(category: ExportCategory | str) -> list[str]:
    """Return alias names that can resolve to ``category`` (help text)."""

    wanted = ExportCategory.from_value(category)
    aliases = [
        alias
        for alias, resolved in FORMAT_ALIASES.items()
        if resolved.category is wanted
    ]
    if wanted in (ExportCategory.PRESENTATION, ExportCategory.DOCUMENT):
        aliases.extend(["html", "pdf"])
    return aliases
