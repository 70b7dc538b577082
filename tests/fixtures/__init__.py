"""Shared testing helpers for the markwell test suite."""

from .documents import (  # noqa: F401
    build_docx,
    build_pptx,
    build_xlsx,
    ingest_input,
    probe,
)
from .project import ProjectDir  # noqa: F401

__all__ = [
    "ProjectDir",
    "build_docx",
    "build_pptx",
    "build_xlsx",
    "ingest_input",
    "probe",
]
