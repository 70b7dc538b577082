from __future__ import annotations

import asyncio
import io
import zipfile
from datetime import datetime
from types import SimpleNamespace

import pytest

from fixtures import build_docx, build_pptx, build_xlsx, ingest_input, probe

from markwell.core.errors import DependencyError
from markwell.ingest import _ooxml
from markwell.ingest.markitdown_ingest import (
    DocxIngest,
    HtmlIngest,
    coerce_markdown_result,
)
from markwell.ingest.pptx import NOTES_PREFIX, PptxIngest
from markwell.ingest.xlsx import XlsxIngest, rows_to_csv, sanitize_sheet_name


def _zip_with(entry: str) -> bytes:
    handle = io.BytesIO()
    with zipfile.ZipFile(handle, "w") as archive:
        archive.writestr(entry, "<xml/>")
    return handle.getvalue()


def test_ooxml_detection_by_zip_entry():
    assert _ooxml.is_docx(_zip_with("word/document.xml"))
    assert _ooxml.is_xlsx(_zip_with("xl/workbook.xml"))
    assert _ooxml.is_pptx(_zip_with("ppt/presentation.xml"))
    assert not _ooxml.is_docx(_zip_with("xl/workbook.xml"))
    assert not _ooxml.is_docx(b"PK\x03\x04 not really a zip")
    assert not _ooxml.is_docx(b"plain text")


def test_sanitize_sheet_name():
    assert sanitize_sheet_name('Q1/Q2: "Sales"') == "Q1_Q2_ _Sales_"
    assert sanitize_sheet_name("  A   B ") == "A B"
    assert sanitize_sheet_name("   ") == "Sheet"


def test_rows_to_csv_formats_cells_and_drops_blanks():
    rows = [
        ("name", "when", "ok", None),
        ("a,b", datetime(2024, 1, 2, 3, 4), True, None),
        (None, None, None, None),
    ]

    assert rows_to_csv(rows) == (
        "name,when,ok\n" '"a,b",2024-01-02T03:04:00,true\n'
    )


def test_xlsx_ingest_writes_one_csv_per_sheet():
    data = build_xlsx(
        {
            "Data": [["name", "qty"], ["apple", 3]],
            "Empty": [],
            "A B": [["x"]],
            "A  B": [["y"]],
        }
    )
    converter = XlsxIngest()

    assert asyncio.run(converter.can_process(probe("book.xlsx", data)))
    result = asyncio.run(converter.ingest(ingest_input("book.xlsx", data)))

    files = {item.relative_path: item.content for item in result.files}
    assert files == {
        "Data.csv": "name,qty\napple,3\n",
        "A B.csv": "x\n",
        "A B_2.csv": "y\n",
    }
    assert result.markdown is None
    assert result.metadata["sheet_count"] == 4
    assert result.metadata["sheet_names"][0] == "Data"


def test_xlsx_can_process_rejects_other_zips():
    converter = XlsxIngest()

    assert not asyncio.run(
        converter.can_process(probe("fake.xlsx", _zip_with("other.xml")))
    )


def test_pptx_ingest_renders_slides_and_notes():
    data = build_pptx(
        [
            ("Intro", ["Point A", "Point B"], "Say hello"),
            ("Second", [], None),
        ]
    )
    converter = PptxIngest()

    assert asyncio.run(converter.can_process(probe("deck.pptx", data)))
    result = asyncio.run(converter.ingest(ingest_input("deck.pptx", data)))

    first, second = result.markdown.split("\n---\n\n")
    assert first.startswith("## Intro\n")
    assert "Point A\nPoint B" in first
    assert f"{NOTES_PREFIX} Say hello" in first
    assert second.strip() == "## Second"
    assert result.metadata == {"slide_count": 2}


class FakeEngine:
    def __init__(self, result):
        self.result = result
        self.calls = []

    def convert_stream(self, stream, file_extension):
        self.calls.append((stream.read(), file_extension))
        return self.result


def test_docx_ingest_uses_engine_once():
    engine = FakeEngine(SimpleNamespace(markdown="# Title\n\nBody\n\n"))
    created = []

    def factory():
        created.append(engine)
        return engine

    converter = DocxIngest(engine_factory=factory)
    data = build_docx(["Body"])

    assert asyncio.run(converter.can_process(probe("report.docx", data)))
    first = asyncio.run(converter.ingest(ingest_input("Report.DOCX", data)))
    asyncio.run(converter.ingest(ingest_input("again.docx", data)))

    assert first.markdown == "# Title\n\nBody\n"
    assert len(created) == 1
    assert engine.calls[0] == (data, ".docx")


def test_docx_can_process_rejects_non_docx():
    converter = DocxIngest(engine_factory=lambda: None)

    assert not asyncio.run(
        converter.can_process(probe("fake.docx", "not a zip"))
    )


def test_html_ingest_accepts_any_html():
    engine = FakeEngine(SimpleNamespace(text_content="Hello"))
    converter = HtmlIngest(engine_factory=lambda: engine)

    assert asyncio.run(converter.can_process(probe("page.htm", "<p>x")))
    result = asyncio.run(
        converter.ingest(ingest_input("page.htm", "<p>Hello</p>"))
    )

    assert result.markdown == "Hello\n"
    assert engine.calls[0][1] == ".htm"


def test_unsupported_engine_result_raises():
    converter = HtmlIngest(engine_factory=lambda: FakeEngine(object()))

    with pytest.raises(DependencyError):
        asyncio.run(converter.ingest(ingest_input("page.html", "<p>")))


@pytest.mark.parametrize(
    ("result", "expected"),
    [
        (SimpleNamespace(markdown="md"), "md"),
        (SimpleNamespace(text_content="tc"), "tc"),
        ({"markdown": "dict"}, "dict"),
        ("plain", "plain"),
        (42, None),
    ],
)
def test_coerce_markdown_result(result, expected):
    assert coerce_markdown_result(result) == expected
