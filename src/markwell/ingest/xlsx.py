"""Excel workbooks to one CSV file per sheet."""

from __future__ import annotations

import csv
import io
import re
from datetime import date, datetime, time
from typing import Any, Iterable, Sequence

from openpyxl import load_workbook

from markwell.core.types import (
    CanProcessInput,
    IngestInput,
    IngestOutput,
    OutputFile,
)

from ._ooxml import is_xlsx

_INVALID_NAME_CHARS = re.compile(r'[/\\:*?"<>|]')
_WHITESPACE = re.compile(r"\s+")


def sanitize_sheet_name(name: str) -> str:
    """Make a worksheet title safe to use as a file name."""

    cleaned = _INVALID_NAME_CHARS.sub("_", name).strip()
    return _WHITESPACE.sub(" ", cleaned) or "Sheet"


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value)


def rows_to_csv(rows: Iterable[Sequence[Any]]) -> str:
    """Serialize worksheet rows, dropping empty rows and trailing blanks."""

    handle = io.StringIO()
    writer = csv.writer(handle, lineterminator="\n")
    for row in rows:
        cells = [_cell_text(value) for value in row]
        while cells and cells[-1] == "":
            cells.pop()
        if cells:
            writer.writerow(cells)
    return handle.getvalue()


class XlsxIngest:
    name = "xlsx"
    extensions = (".xlsx", ".xls", ".xlsm")

    async def can_process(self, input: CanProcessInput) -> bool:
        return is_xlsx(input.buffer)

    async def ingest(self, input: IngestInput) -> IngestOutput:
        workbook = load_workbook(
            io.BytesIO(input.buffer), read_only=True, data_only=True
        )
        try:
            sheet_names = [sheet.title for sheet in workbook.worksheets]
            files: list[OutputFile] = []
            used: set[str] = set()
            for sheet in workbook.worksheets:
                name = sanitize_sheet_name(sheet.title)
                if name in used:
                    suffix = 2
                    while f"{name}_{suffix}" in used:
                        suffix += 1
                    name = f"{name}_{suffix}"
                used.add(name)

                content = rows_to_csv(sheet.iter_rows(values_only=True))
                if not content.strip():
                    continue
                files.append(
                    OutputFile(relative_path=f"{name}.csv", content=content)
                )
        finally:
            workbook.close()

        return IngestOutput(
            files=tuple(files),
            metadata={
                "sheet_count": len(sheet_names),
                "sheet_names": sheet_names,
            },
        )
