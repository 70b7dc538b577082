"""CSV/TSV files to a themed Excel workbook, one worksheet per file."""

from __future__ import annotations

import csv
import io
import re
from pathlib import PurePosixPath
from typing import Any, Mapping, Union

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from markwell.core.errors import ExportError
from markwell.core.types import (
    ExportCategory,
    ExportFormat,
    ExportInput,
    ExportOutput,
)

from . import _render

XLSX_MIME = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
MAX_SHEET_NAME = 31
MIN_COLUMN_WIDTH = 10
MAX_COLUMN_WIDTH = 50

_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
_LEADING_ZERO = re.compile(r"^0\d")


def detect_delimiter(content: str) -> str:
    first_line = content.split("\n", 1)[0]
    return "\t" if first_line.count("\t") > first_line.count(",") else ","


def parse_rows(content: str, delimiter: str) -> list[list[str]]:
    reader = csv.reader(io.StringIO(content, newline=""), delimiter=delimiter)
    return [row for row in reader if any(cell != "" for cell in row)]


def coerce_cell(value: str) -> Union[str, int, float]:
    """Turn numeric-looking text into numbers, keeping IDs like ``007``."""

    trimmed = value.strip()
    if not trimmed or (len(trimmed) > 1 and _LEADING_ZERO.match(trimmed)):
        return value
    try:
        return int(trimmed)
    except ValueError:
        pass
    try:
        number = float(trimmed)
    except ValueError:
        return value
    # ``float`` also accepts words such as "nan" and "infinity".
    if trimmed.lower().lstrip("+-") in ("nan", "inf", "infinity"):
        return value
    return number


def sheet_name_for(relative_path: str) -> str:
    stem = PurePosixPath(relative_path.replace("\\", "/")).name
    stem = re.sub(r"\.(csv|tsv)$", "", stem, flags=re.IGNORECASE)
    cleaned = _INVALID_SHEET_CHARS.sub("_", stem).strip()
    return cleaned[:MAX_SHEET_NAME] or "Sheet"


def _unique_name(name: str, used: set[str]) -> str:
    candidate = name
    counter = 1
    while candidate in used:
        suffix = f"_{counter}"
        candidate = name[: MAX_SHEET_NAME - len(suffix)] + suffix
        counter += 1
    used.add(candidate)
    return candidate


def build_workbook(files, theme: Mapping[str, Any]) -> bytes:
    section = _render.theme_section(theme, "spreadsheet")
    fill_color = _render.hex_color(section.get("headerBackground")) or "4472C4"
    text_color = _render.hex_color(section.get("headerTextColor")) or "FFFFFF"
    header_font = Font(
        bold=bool(section.get("headerBold", True)), color=f"FF{text_color}"
    )
    header_fill = PatternFill(fill_type="solid", fgColor=f"FF{fill_color}")

    workbook = Workbook()
    workbook.remove(workbook.active)
    used: set[str] = set()

    for output_file in files:
        name = _unique_name(sheet_name_for(output_file.relative_path), used)
        sheet = workbook.create_sheet(name)
        content = output_file.content
        rows = parse_rows(content, detect_delimiter(content))
        if rows:
            sheet.append(rows[0])
            for cell in sheet[1]:
                cell.font = header_font
                cell.fill = header_fill
        for row in rows[1:]:
            sheet.append([coerce_cell(cell) for cell in row])

        for column_cells in sheet.iter_cols():
            longest = max(
                (
                    len(str(cell.value))
                    for cell in column_cells
                    if cell.value is not None
                ),
                default=0,
            )
            letter = get_column_letter(column_cells[0].column)
            sheet.column_dimensions[letter].width = min(
                max(longest, MIN_COLUMN_WIDTH) + 2, MAX_COLUMN_WIDTH
            )

        sheet.freeze_panes = "A2"

    if not workbook.worksheets:
        workbook.create_sheet("Sheet")

    handle = io.BytesIO()
    workbook.save(handle)
    return handle.getvalue()


class SpreadsheetExport:
    name = "spreadsheet"
    category = ExportCategory.SPREADSHEET
    formats = (ExportFormat(".xlsx", XLSX_MIME, "Excel Spreadsheet"),)

    async def export(self, input: ExportInput) -> ExportOutput:
        if input.format != ".xlsx":
            raise ExportError(
                f"Unsupported spreadsheet format: {input.format}"
            )
        buffer = build_workbook(input.files, input.theme)
        return ExportOutput(
            buffer=buffer, mime_type=XLSX_MIME, extension=".xlsx"
        )
