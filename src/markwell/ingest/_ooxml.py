"""Cheap content checks for Office Open XML containers."""

from __future__ import annotations

import io
import zipfile

ZIP_SIGNATURE = b"PK\x03\x04"


def is_zip_file(buffer: bytes) -> bool:
    return len(buffer) >= 4 and buffer[:4] == ZIP_SIGNATURE


def has_zip_entry(buffer: bytes, entry: str) -> bool:
    """Return ``True`` when ``buffer`` is a zip archive holding ``entry``."""

    if not is_zip_file(buffer):
        return False
    try:
        with zipfile.ZipFile(io.BytesIO(buffer)) as archive:
            return entry in archive.namelist()
    except (zipfile.BadZipFile, OSError):
        return False


def is_docx(buffer: bytes) -> bool:
    return has_zip_entry(buffer, "word/document.xml")


def is_xlsx(buffer: bytes) -> bool:
    return has_zip_entry(buffer, "xl/workbook.xml")


def is_pptx(buffer: bytes) -> bool:
    return has_zip_entry(buffer, "ppt/presentation.xml")
