"""Public APIs for the ``markwell convert`` pipeline."""

from __future__ import annotations

from .config import (
    CollisionPolicy,
    ConfigOverrides,
    ConvertConfig,
    ConvertConfigError,
    LoadResult,
    load_config,
)
from .executor import (
    ConversionOutcome,
    ConversionStatus,
    ExecutionSummary,
    RunOptions,
    run_conversion,
    run_conversion_async,
)
from .output import (
    CollisionResult,
    files_output_dir,
    resolve_collision,
    resolve_output_path,
)

__all__ = [
    "CollisionPolicy",
    "ConfigOverrides",
    "ConvertConfig",
    "ConvertConfigError",
    "LoadResult",
    "load_config",
    "ConversionOutcome",
    "ConversionStatus",
    "ExecutionSummary",
    "RunOptions",
    "run_conversion",
    "run_conversion_async",
    "CollisionResult",
    "files_output_dir",
    "resolve_collision",
    "resolve_output_path",
]
