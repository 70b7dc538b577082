"""Converter registry, format aliases, themes and shared helpers."""

from __future__ import annotations

from .config import (
    ConfigFileError,
    apply_table,
    env_value,
    first_set,
    read_toml,
    write_starter_file,
)
from .errors import (
    ConversionError,
    DependencyError,
    ExportError,
    IngestError,
    import_backend,
)
from .format_aliases import (
    DeprecatedSyntaxError,
    EmptyFormatError,
    FormatAliasError,
    ResolveContext,
    ResolvedFormat,
    UnknownFormatError,
    get_aliases_for_category,
    is_marp_content,
    resolve_alias,
    resolve_to_flag,
)
from .logging import JsonLogFormatter, configure_logger
from .registry import ConverterRegistry, RegistryError
from .starters import (
    StarterFile,
    StarterFileError,
    get_starter,
    iter_starters,
)
from .theme import (
    DEFAULT_THEME,
    ThemeError,
    find_theme_file,
    list_builtin_themes,
    resolve_theme,
    validate_theme,
)
from .types import (
    HEAD_SIZE,
    CanProcessInput,
    ExportCategory,
    ExportConverter,
    ExportFormat,
    ExportInput,
    ExportOutput,
    IngestConverter,
    IngestInput,
    IngestOutput,
    OutputFile,
)
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
    workspace_root,
)

__all__ = [
    "HEAD_SIZE",
    "CanProcessInput",
    "ExportCategory",
    "ExportConverter",
    "ExportFormat",
    "ExportInput",
    "ExportOutput",
    "IngestConverter",
    "IngestInput",
    "IngestOutput",
    "OutputFile",
    "ConversionError",
    "DependencyError",
    "ExportError",
    "IngestError",
    "import_backend",
    "ConverterRegistry",
    "RegistryError",
    "DeprecatedSyntaxError",
    "EmptyFormatError",
    "FormatAliasError",
    "ResolveContext",
    "ResolvedFormat",
    "UnknownFormatError",
    "get_aliases_for_category",
    "is_marp_content",
    "resolve_alias",
    "resolve_to_flag",
    "DEFAULT_THEME",
    "ThemeError",
    "find_theme_file",
    "list_builtin_themes",
    "resolve_theme",
    "validate_theme",
    "ConfigFileError",
    "apply_table",
    "env_value",
    "first_set",
    "read_toml",
    "write_starter_file",
    "StarterFile",
    "StarterFileError",
    "get_starter",
    "iter_starters",
    "JsonLogFormatter",
    "configure_logger",
    "WORKSPACE_ENV",
    "WorkspaceError",
    "WorkspaceLayout",
    "ensure_workspace",
    "workspace_root",
]
