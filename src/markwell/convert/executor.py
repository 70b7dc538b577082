"""Sequential executor for ``markwell convert`` runs.

Each input is read, routed to an ingest converter (no ``--to``) or to the
export converters named by ``--to``, and written according to the collision
policy. Files are processed one at a time; a failing file is recorded and the
run moves on.
"""

from __future__ import annotations

import asyncio
import glob
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Sequence, Union

from markwell.core.format_aliases import (
    ResolveContext,
    ResolvedFormat,
    resolve_to_flag,
)
from markwell.core.registry import ConverterRegistry
from markwell.core.theme import resolve_theme
from markwell.core.types import ExportInput, IngestInput, OutputFile

from .config import ConvertConfig
from .output import (
    ConfirmCallback,
    files_output_dir,
    is_directory_flag,
    resolve_collision,
    resolve_output_path,
)

# Files picked up from directories when exporting Markdown/CSV sources.
EXPORT_SOURCE_EXTENSIONS = frozenset({".md", ".markdown", ".csv", ".tsv"})

_GLOB_CHARS = frozenset("*?[")


class ConversionStatus(Enum):
    SUCCESS = "success"
    PLANNED = "planned"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ConversionOutcome:
    """Result of converting (or attempting to convert) one file to one target."""

    source: Path
    status: ConversionStatus
    outputs: tuple[Path, ...] = ()
    converter: Optional[str] = None
    reason: Optional[str] = None
    error: Optional[Exception] = None


@dataclass(frozen=True)
class ExecutionSummary:
    """Aggregated results for a conversion run."""

    requested: tuple[str, ...]
    processed: tuple[Path, ...]
    outcomes: tuple[ConversionOutcome, ...]
    dry_run: bool = False

    @property
    def success_count(self) -> int:
        return sum(
            1
            for outcome in self.outcomes
            if outcome.status
            in (ConversionStatus.SUCCESS, ConversionStatus.PLANNED)
        )

    @property
    def skipped_count(self) -> int:
        return self._count(ConversionStatus.SKIPPED)

    @property
    def failure_count(self) -> int:
        return self._count(ConversionStatus.FAILED)

    @property
    def exit_code(self) -> int:
        if self.failure_count or not self.processed:
            return 1
        return 0

    def _count(self, status: ConversionStatus) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status is status)


@dataclass
class RunOptions:
    """Per-run settings that do not come from the config file."""

    to: Optional[str] = None
    output: Optional[str] = None
    dry_run: bool = False
    interactive: Optional[bool] = None
    confirm: Optional[ConfirmCallback] = None
    on_outcome: Optional[Callable[[ConversionOutcome], None]] = None
    warnings: list[str] = field(default_factory=list)


def run_conversion(
    inputs: Sequence[Union[str, Path]],
    *,
    registry: ConverterRegistry,
    config: ConvertConfig,
    logger: logging.Logger,
    options: Optional[RunOptions] = None,
) -> ExecutionSummary:
    """Convert ``inputs`` sequentially and return an aggregated summary.

    An invalid ``--to`` value raises :class:`FormatAliasError` before any
    file is touched.
    """

    return asyncio.run(
        run_conversion_async(
            inputs,
            registry=registry,
            config=config,
            logger=logger,
            options=options,
        )
    )


async def run_conversion_async(
    inputs: Sequence[Union[str, Path]],
    *,
    registry: ConverterRegistry,
    config: ConvertConfig,
    logger: logging.Logger,
    options: Optional[RunOptions] = None,
) -> ExecutionSummary:
    options = options or RunOptions()
    if options.to is not None:
        # Validates the whole flag up front; contextual aliases are
        # re-resolved per file once the content is known.
        resolve_to_flag(options.to, ResolveContext())

    output_flag = options.output
    if output_flag is None and config.output_dir is not None:
        output_flag = f"{config.output_dir}/"

    requested = tuple(str(item) for item in inputs)
    extensions = _directory_extensions(registry, export=options.to is not None)
    candidates = tuple(_expand_inputs(requested, extensions))
    if (
        output_flag
        and len(candidates) > 1
        and not is_directory_flag(output_flag)
    ):
        # Several inputs cannot share one output file.
        logger.info(
            "Treating --output as a directory for multiple inputs",
            extra={"output": output_flag},
        )
        output_flag = f"{output_flag}/"

    logger.info(
        "Starting conversion run",
        extra={
            "input_count": len(requested),
            "candidate_count": len(candidates),
            "to": options.to,
            "dry_run": options.dry_run,
        },
    )

    outcomes: list[ConversionOutcome] = []
    for source in candidates:
        try:
            results = await _convert_source(
                source,
                registry=registry,
                config=config,
                options=options,
                output_flag=output_flag,
                logger=logger,
            )
        except Exception as exc:
            results = [
                ConversionOutcome(
                    source=source,
                    status=ConversionStatus.FAILED,
                    reason=str(exc) or type(exc).__name__,
                    error=exc,
                )
            ]

        for outcome in results:
            _log_outcome(logger, outcome)
            outcomes.append(outcome)
            if options.on_outcome is not None:
                options.on_outcome(outcome)

    summary = ExecutionSummary(
        requested=requested,
        processed=candidates,
        outcomes=tuple(outcomes),
        dry_run=options.dry_run,
    )
    logger.info(
        "Completed conversion run",
        extra={
            "success_count": summary.success_count,
            "skipped_count": summary.skipped_count,
            "failure_count": summary.failure_count,
        },
    )
    return summary


async def _convert_source(
    source: Path,
    *,
    registry: ConverterRegistry,
    config: ConvertConfig,
    options: RunOptions,
    output_flag: Optional[str],
    logger: logging.Logger,
) -> list[ConversionOutcome]:
    if not source.exists():
        raise FileNotFoundError(f"Source file not found: {source}")
    if not source.is_file():
        raise IsADirectoryError(f"Source path is not a file: {source}")

    buffer = source.read_bytes()
    if options.to is None:
        return [
            await _ingest(
                source,
                buffer,
                registry=registry,
                config=config,
                options=options,
                output_flag=output_flag,
            )
        ]

    text = buffer.decode("utf-8-sig", errors="replace")
    targets = resolve_to_flag(options.to, ResolveContext(input_content=text))
    theme = resolve_theme(
        theme_name=config.theme,
        input_path=source,
        on_warning=lambda message: _theme_warning(logger, options, message),
    )
    unique = _unique_targets(targets)
    outcomes = []
    for target in unique:
        outcomes.append(
            await _export(
                source,
                text,
                target,
                theme=theme,
                registry=registry,
                config=config,
                options=options,
                output_flag=output_flag,
                fan_out=len(unique) > 1,
            )
        )
    return outcomes


async def _export(
    source: Path,
    text: str,
    target: ResolvedFormat,
    *,
    theme,
    registry: ConverterRegistry,
    config: ConvertConfig,
    options: RunOptions,
    output_flag: Optional[str],
    fan_out: bool = False,
) -> ConversionOutcome:
    converter = registry.resolve_export(target.category, target.extension)
    if converter is None:
        category = target.category.value
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.FAILED,
            reason=(
                f'No export converter found for category "{category}" '
                f'with format "{target.extension}"'
            ),
        )

    output_path = resolve_output_path(
        source, target.extension, output_flag, fan_out=fan_out
    )
    if options.dry_run:
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.PLANNED,
            outputs=(output_path,),
            converter=converter.name,
        )

    decision = resolve_collision(
        output_path,
        config.collision,
        interactive=options.interactive,
        confirm=options.confirm,
    )
    if decision.skipped:
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.SKIPPED,
            outputs=(decision.path,),
            converter=converter.name,
            reason=decision.skip_reason,
        )

    result = await converter.export(
        ExportInput(
            files=(OutputFile(relative_path=source.name, content=text),),
            format=target.extension,
            theme=theme,
        )
    )
    decision.path.parent.mkdir(parents=True, exist_ok=True)
    decision.path.write_bytes(result.buffer)
    return ConversionOutcome(
        source=source,
        status=ConversionStatus.SUCCESS,
        outputs=(decision.path,),
        converter=converter.name,
    )


async def _ingest(
    source: Path,
    buffer: bytes,
    *,
    registry: ConverterRegistry,
    config: ConvertConfig,
    options: RunOptions,
    output_flag: Optional[str],
) -> ConversionOutcome:
    converter = await registry.resolve_ingest(source, buffer)
    if converter is None:
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.FAILED,
            reason=f'No ingest converter found for "{source.name}"',
        )

    result = await converter.ingest(
        IngestInput(file_path=source, buffer=buffer)
    )

    if result.markdown is not None:
        output_path = resolve_output_path(source, ".md", output_flag)
        if options.dry_run:
            return ConversionOutcome(
                source=source,
                status=ConversionStatus.PLANNED,
                outputs=(output_path,),
                converter=converter.name,
            )
        decision = resolve_collision(
            output_path,
            config.collision,
            interactive=options.interactive,
            confirm=options.confirm,
        )
        if decision.skipped:
            return ConversionOutcome(
                source=source,
                status=ConversionStatus.SKIPPED,
                outputs=(decision.path,),
                converter=converter.name,
                reason=decision.skip_reason,
            )
        decision.path.parent.mkdir(parents=True, exist_ok=True)
        decision.path.write_text(result.markdown, encoding="utf-8")
        written = [decision.path]
        if result.assets:
            assets_dir = decision.path.parent / "assets"
            for name, data in result.assets.items():
                asset_path = assets_dir / name
                asset_path.parent.mkdir(parents=True, exist_ok=True)
                asset_path.write_bytes(data)
                written.append(asset_path)
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.SUCCESS,
            outputs=tuple(written),
            converter=converter.name,
        )

    if result.files:
        output_dir = files_output_dir(source, output_flag)
        planned = tuple(
            output_dir / item.relative_path for item in result.files
        )
        if options.dry_run:
            return ConversionOutcome(
                source=source,
                status=ConversionStatus.PLANNED,
                outputs=planned,
                converter=converter.name,
            )
        written = []
        for item, path in zip(result.files, planned):
            decision = resolve_collision(
                path,
                config.collision,
                interactive=options.interactive,
                confirm=options.confirm,
            )
            if decision.skipped:
                continue
            decision.path.parent.mkdir(parents=True, exist_ok=True)
            decision.path.write_text(item.content, encoding="utf-8")
            written.append(decision.path)
        if not written:
            return ConversionOutcome(
                source=source,
                status=ConversionStatus.SKIPPED,
                outputs=planned,
                converter=converter.name,
                reason="All outputs already exist.",
            )
        return ConversionOutcome(
            source=source,
            status=ConversionStatus.SUCCESS,
            outputs=tuple(written),
            converter=converter.name,
        )

    return ConversionOutcome(
        source=source,
        status=ConversionStatus.FAILED,
        converter=converter.name,
        reason="Converter returned no output",
    )


def _theme_warning(
    logger: logging.Logger, options: RunOptions, message: str
) -> None:
    logger.warning("Theme warning", extra={"detail": message})
    options.warnings.append(message)


def _unique_targets(targets: Iterable[ResolvedFormat]) -> list[ResolvedFormat]:
    seen: set[ResolvedFormat] = set()
    unique = []
    for target in targets:
        if target not in seen:
            seen.add(target)
            unique.append(target)
    return unique


def _directory_extensions(
    registry: ConverterRegistry, *, export: bool
) -> frozenset[str]:
    if export:
        return EXPORT_SOURCE_EXTENSIONS
    return frozenset(
        extension
        for converter in registry.list_ingest()
        for extension in converter.extensions
    )


def _expand_inputs(
    inputs: Sequence[str], extensions: frozenset[str]
) -> Iterable[Path]:
    seen: set[Path] = set()
    for raw in inputs:
        for path in _expand_one(raw, extensions):
            resolved = path.expanduser().absolute()
            if resolved not in seen:
                seen.add(resolved)
                yield resolved


def _expand_one(raw: str, extensions: frozenset[str]) -> Iterable[Path]:
    if any(char in _GLOB_CHARS for char in raw):
        pattern = str(Path(raw).expanduser())
        matches = sorted(glob.glob(pattern, recursive=True))
        return [Path(match) for match in matches if Path(match).is_file()]

    path = Path(raw).expanduser()
    if path.is_dir():
        return [
            child
            for child in sorted(path.rglob("*"))
            if child.is_file() and child.suffix.lower() in extensions
        ]
    return [path]


def _log_outcome(logger: logging.Logger, outcome: ConversionOutcome) -> None:
    extra = {
        "source": str(outcome.source),
        "status": outcome.status.value,
        "converter": outcome.converter,
        "outputs": [str(path) for path in outcome.outputs],
    }
    if outcome.status is ConversionStatus.FAILED:
        logger.error(
            "Failed to convert file",
            extra={**extra, "reason": outcome.reason},
            exc_info=outcome.error,
        )
    elif outcome.status is ConversionStatus.SKIPPED:
        logger.info("Skipped file", extra={**extra, "reason": outcome.reason})
    else:
        logger.info("Converted file", extra=extra)


__all__ = [
    "ConversionOutcome",
    "ConversionStatus",
    "ExecutionSummary",
    "RunOptions",
    "run_conversion",
    "run_conversion_async",
]
