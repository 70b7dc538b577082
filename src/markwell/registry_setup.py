"""Build the converter registry used by the command line tools."""

from __future__ import annotations

from markwell.core.registry import ConverterRegistry
from markwell.export import default_export_converters
from markwell.ingest import default_ingest_converters


def build_registry() -> ConverterRegistry:
    """Return a registry holding every built-in converter.

    Ingest converters are registered most specific first so content sniffing
    prefers precise detectors (OOXML, subtitles) over permissive ones (HTML,
    JSON).
    """

    registry = ConverterRegistry()
    for converter in default_ingest_converters():
        registry.register_ingest(converter)
    for converter in default_export_converters():
        registry.register_export(converter)
    return registry
