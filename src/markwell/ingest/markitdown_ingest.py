"""DOCX and HTML ingest through MarkItDown."""

from __future__ import annotations

import io
from typing import Any, Callable, Optional

from markwell.core.errors import DependencyError, import_backend
from markwell.core.types import CanProcessInput, IngestInput, IngestOutput

from ._ooxml import is_docx

EngineFactory = Callable[[], Any]


def default_engine_factory() -> Any:
    module = import_backend("markitdown", "MarkItDown")
    return module.MarkItDown()


def coerce_markdown_result(result: Any) -> Optional[str]:
    """Extract Markdown text from the various MarkItDown result shapes."""

    for attribute in ("markdown", "text_content"):
        value = getattr(result, attribute, None)
        if isinstance(value, str):
            return value
    if isinstance(result, dict):
        value = result.get("markdown")
        if isinstance(value, str):
            return value
    if isinstance(result, str):
        return result
    return None


class _MarkItDownIngest:
    """Shared plumbing: the engine is created lazily and reused."""

    name = ""
    extensions: tuple[str, ...] = ()

    def __init__(self, engine_factory: EngineFactory | None = None) -> None:
        self._engine_factory = engine_factory or default_engine_factory
        self._engine: Any = None

    def _convert(self, buffer: bytes, extension: str) -> str:
        if self._engine is None:
            self._engine = self._engine_factory()
        result = self._engine.convert_stream(
            io.BytesIO(buffer), file_extension=extension
        )
        markdown = coerce_markdown_result(result)
        if markdown is None:
            raise DependencyError(
                "markitdown returned an unsupported response; expected "
                "Markdown text."
            )
        return markdown

    async def ingest(self, input: IngestInput) -> IngestOutput:
        extension = input.file_path.suffix.lower() or self.extensions[0]
        markdown = self._convert(input.buffer, extension)
        return IngestOutput(markdown=markdown.strip() + "\n")


class DocxIngest(_MarkItDownIngest):
    name = "docx"
    extensions = (".docx", ".doc")

    async def can_process(self, input: CanProcessInput) -> bool:
        return is_docx(input.buffer)


class HtmlIngest(_MarkItDownIngest):
    name = "html"
    extensions = (".html", ".htm")

    async def can_process(self, input: CanProcessInput) -> bool:
        # Any .html/.htm file is handed to MarkItDown.
        return True
