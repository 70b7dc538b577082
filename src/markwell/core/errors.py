"""Exceptions raised by converter plugins and the lazy-import helper."""

from __future__ import annotations

import importlib
from types import ModuleType

__all__ = [
    "ConversionError",
    "DependencyError",
    "ExportError",
    "IngestError",
    "import_backend",
]


class ConversionError(RuntimeError):
    """Raised when a document fails to convert."""


class IngestError(ConversionError):
    """Raised by ingest plugins for content they cannot parse."""


class ExportError(ConversionError):
    """Raised by export plugins, e.g. for an unsupported output format."""


class DependencyError(ConversionError):
    """Raised when a conversion backend is not installed."""


def import_backend(
    module: str, *names: str, package: str | None = None
) -> ModuleType:
    """Import an optional conversion backend the first time it is needed.

    ``names`` are attributes the caller is about to use; ``package`` is the
    distribution to install when it differs from the top-level module.
    """

    dist = package or module.partition(".")[0]
    try:
        backend = importlib.import_module(module)
    except ImportError as exc:
        raise DependencyError(
            f"This conversion needs {dist}, which is not installed. "
            f"Run `pip install {dist}`."
        ) from exc

    missing = [name for name in names if not hasattr(backend, name)]
    if missing:
        raise DependencyError(
            f"The installed {dist} does not provide "
            f"{', '.join(missing)}. Run `pip install --upgrade {dist}`."
        )
    return backend
