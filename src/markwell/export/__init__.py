"""Export converters: Markdown or CSV to foreign formats."""

from __future__ import annotations

from .document import DocumentExport
from .presentation import PresentationExport
from .spreadsheet import SpreadsheetExport
from .transcript import TranscriptExport

__all__ = [
    "DocumentExport",
    "PresentationExport",
    "SpreadsheetExport",
    "TranscriptExport",
    "default_export_converters",
]


def default_export_converters() -> list:
    return [
        DocumentExport(),
        SpreadsheetExport(),
        PresentationExport(),
        TranscriptExport(),
    ]
