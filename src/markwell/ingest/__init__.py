"""Ingest converters: foreign formats to Markdown or CSV."""

from __future__ import annotations

from .excalidraw import ExcalidrawIngest
from .json_data import JsonIngest
from .markitdown_ingest import DocxIngest, HtmlIngest
from .marp import MarpIngest
from .pptx import PptxIngest
from .rtf import RtfIngest
from .subtitles import SrtIngest, VttIngest
from .xlsx import XlsxIngest

__all__ = [
    "DocxIngest",
    "ExcalidrawIngest",
    "HtmlIngest",
    "JsonIngest",
    "MarpIngest",
    "PptxIngest",
    "RtfIngest",
    "SrtIngest",
    "VttIngest",
    "XlsxIngest",
    "default_ingest_converters",
]


def default_ingest_converters() -> list:
    """Return fresh ingest plugins, most specific detectors first."""

    return [
        DocxIngest(),
        XlsxIngest(),
        PptxIngest(),
        VttIngest(),
        SrtIngest(),
        RtfIngest(),
        HtmlIngest(),
        ExcalidrawIngest(),
        JsonIngest(),
        MarpIngest(),
    ]
