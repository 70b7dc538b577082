"""Ordered registry of ingest and export converters."""

from __future__ import annotations

import inspect
import logging
from pathlib import Path
from typing import Optional, Union

from .types import (
    CanProcessInput,
    ExportCategory,
    ExportConverter,
    IngestConverter,
    decode_head,
    normalize_extension,
)

__all__ = ["ConverterRegistry", "RegistryError"]

logger = logging.getLogger(__name__)


class RegistryError(RuntimeError):
    """Raised when a converter violates the plugin contract at registration."""


class ConverterRegistry:
    """Holds converters in registration order and resolves them on demand.

    Registration order is significant: specific converters must be
    registered before generic fallbacks sharing the same extension. All
    registration is expected to finish before the first resolution call.
    """

    def __init__(self) -> None:
        self._ingest: list[IngestConverter] = []
        self._export: list[ExportConverter] = []

    def register_ingest(self, converter: IngestConverter) -> None:
        if not converter.extensions:
            raise RegistryError(
                f"Ingest converter '{converter.name}' declares no extensions."
            )
        self._ingest.append(converter)

    def register_export(self, converter: ExportConverter) -> None:
        if not converter.formats:
            raise RegistryError(
                f"Export converter '{converter.name}' declares no formats."
            )
        category = ExportCategory.from_value(converter.category)
        for existing in self._export:
            if ExportCategory.from_value(existing.category) is category:
                logger.warning(
                    "Export converter shadowed by earlier registration",
                    extra={
                        "category": category.value,
                        "active": existing.name,
                        "shadowed": converter.name,
                    },
                )
                break
        self._export.append(converter)

    async def resolve_ingest(
        self, file_path: Union[str, Path], buffer: bytes
    ) -> Optional[IngestConverter]:
        """Return the first converter accepting ``file_path``, else ``None``.

        Candidates are filtered by extension and then asked, one at a time,
        whether they can process the content. Exceptions raised by a
        predicate propagate to the caller.
        """

        path = Path(file_path)
        extension = normalize_extension(path.suffix)
        candidates = [
            converter
            for converter in self._ingest
            if extension and extension in converter.extensions
        ]
        if not candidates:
            logger.debug(
                "No ingest candidates for extension",
                extra={"path": str(path), "extension": extension},
            )
            return None

        probe = CanProcessInput(
            file_path=path,
            extension=extension,
            buffer=buffer,
            head=decode_head(buffer),
        )
        for converter in candidates:
            accepted = converter.can_process(probe)
            if inspect.isawaitable(accepted):
                accepted = await accepted
            if accepted:
                logger.debug(
                    "Resolved ingest converter",
                    extra={"path": str(path), "converter": converter.name},
                )
                return converter

        logger.debug(
            "No ingest candidate accepted content",
            extra={
                "path": str(path),
                "candidates": [converter.name for converter in candidates],
            },
        )
        return None

    def resolve_export(
        self,
        category: Union[str, ExportCategory],
        format: Optional[str] = None,
    ) -> Optional[ExportConverter]:
        """Return the export converter for ``category``, else ``None``.

        ``format`` only gates the result: the converter is returned when it
        lists that extension among its formats.
        """

        try:
            wanted = ExportCategory.from_value(category)
        except ValueError:
            return None

        converter = next(
            (
                candidate
                for candidate in self._export
                if ExportCategory.from_value(candidate.category) is wanted
            ),
            None,
        )
        if converter is None:
            return None

        if format:
            normalized = format if format.startswith(".") else f".{format}"
            if not any(
                entry.extension == normalized for entry in converter.formats
            ):
                return None

        return converter

    def list_ingest(self) -> list[IngestConverter]:
        return list(self._ingest)

    def list_export(self) -> list[ExportConverter]:
        return list(self._export)

    def find(
        self, name: str
    ) -> Union[IngestConverter, ExportConverter, None]:
        """Look up a converter by name, ingest converters first."""

        for converter in self._ingest:
            if converter.name == name:
                return converter
        for converter in self._export:
            if converter.name == name:
                return converter
        return None
