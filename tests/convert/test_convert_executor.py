from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Optional

import pytest
from docx import Document

from markwell.convert.config import CollisionPolicy, ConvertConfig
from markwell.convert.executor import (
    ConversionStatus,
    RunOptions,
    run_conversion,
)
from markwell.core.format_aliases import (
    DeprecatedSyntaxError,
    UnknownFormatError,
)
from markwell.core.registry import ConverterRegistry
from markwell.core.types import IngestOutput, OutputFile
from markwell.export import default_export_converters
from markwell.ingest.subtitles import VttIngest

VTT = "WEBVTT\n\n00:00:01.000 --> 00:00:02.000\n<v Ann>Hello</v>\n"
MARP = "---\nmarp: true\n---\n\n# Deck\n\n---\n\n# Second\n"


@pytest.fixture(name="logger")
def _logger_fixture() -> logging.Logger:
    logger = logging.getLogger("markwell.tests.convert_executor")
    logger.handlers.clear()
    logger.propagate = False
    logger.addHandler(logging.NullHandler())
    return logger


class FakeIngest:
    def __init__(
        self,
        result: Optional[IngestOutput] = None,
        *,
        name: str = "fake",
        error: Optional[Exception] = None,
    ) -> None:
        self.name = name
        self.extensions = (".fake",)
        self.result = result or IngestOutput(markdown="# Fake\n")
        self.error = error
        self.calls: list[Path] = []

    def can_process(self, input) -> bool:
        return True

    async def ingest(self, input) -> IngestOutput:
        self.calls.append(input.file_path)
        if self.error is not None:
            raise self.error
        return self.result


def _config(
    collision: CollisionPolicy = CollisionPolicy.OVERWRITE,
    *,
    output_dir: Optional[Path] = None,
    theme: Optional[str] = None,
) -> ConvertConfig:
    return ConvertConfig(
        output_dir=output_dir,
        collision=collision,
        theme=theme,
        log_level="INFO",
    )


def _registry(*ingest, exports: bool = True) -> ConverterRegistry:
    registry = ConverterRegistry()
    for converter in ingest:
        registry.register_ingest(converter)
    if exports:
        for converter in default_export_converters():
            registry.register_export(converter)
    return registry


def _run(inputs, registry, config=None, logger=None, **options):
    return run_conversion(
        [str(item) for item in inputs],
        registry=registry,
        config=config or _config(),
        logger=logger,
        options=RunOptions(**options),
    )


def test_ingest_writes_markdown_next_to_input(project_dir, logger):
    source = project_dir.write("talks/intro.vtt", VTT)

    summary = _run([source], _registry(VttIngest()), logger=logger)

    assert summary.exit_code == 0
    [outcome] = summary.outcomes
    assert outcome.status is ConversionStatus.SUCCESS
    assert outcome.converter == "vtt"
    output = source.with_suffix(".md")
    assert outcome.outputs == (output,)
    text = output.read_text(encoding="utf-8")
    assert "## Transcript" in text
    assert "**[00:00:01.000 --> 00:00:02.000]** Ann" in text


def test_ingest_writes_assets_beside_markdown(project_dir, logger):
    source = project_dir.write("doc.fake", "x")
    plugin = FakeIngest(
        IngestOutput(markdown="![img](assets/a.png)", assets={"a.png": b"png"})
    )

    summary = _run([source], _registry(plugin), logger=logger)

    [outcome] = summary.outcomes
    asset = project_dir.root / "assets" / "a.png"
    assert outcome.outputs == (project_dir.root / "doc.md", asset)
    assert asset.read_bytes() == b"png"


def test_ingest_multi_file_output_goes_to_stem_directory(project_dir, logger):
    source = project_dir.write("book.fake", "x")
    plugin = FakeIngest(
        IngestOutput(
            files=(
                OutputFile("Sheet1.csv", "a,b\n"),
                OutputFile("Sheet2.csv", "c\n"),
            )
        )
    )

    summary = _run([source], _registry(plugin), logger=logger)

    [outcome] = summary.outcomes
    assert outcome.status is ConversionStatus.SUCCESS
    target = project_dir.root / "book"
    assert (target / "Sheet1.csv").read_text(encoding="utf-8") == "a,b\n"
    assert (target / "Sheet2.csv").exists()


def test_ingest_reports_missing_converter_and_empty_output(project_dir, logger):
    unknown = project_dir.write("notes.xyz", "x")
    empty = project_dir.write("empty.fake", "x")
    plugin = FakeIngest(IngestOutput())

    summary = _run([unknown, empty], _registry(plugin), logger=logger)

    reasons = [outcome.reason for outcome in summary.outcomes]
    assert reasons == [
        'No ingest converter found for "notes.xyz"',
        "Converter returned no output",
    ]
    assert summary.failure_count == 2
    assert summary.exit_code == 1


def test_converter_errors_are_recorded_and_run_continues(project_dir, logger):
    first = project_dir.write("a.fake", "x")
    second = project_dir.write("b.vtt", VTT)
    broken = FakeIngest(error=ValueError("corrupt archive"))

    summary = _run(
        [first, second], _registry(broken, VttIngest()), logger=logger
    )

    statuses = [outcome.status for outcome in summary.outcomes]
    assert statuses == [ConversionStatus.FAILED, ConversionStatus.SUCCESS]
    assert summary.outcomes[0].reason == "corrupt archive"
    assert isinstance(summary.outcomes[0].error, ValueError)
    assert summary.exit_code == 1


def test_failed_conversion_logs_the_traceback(project_dir, logger, caplog):
    source = project_dir.write("a.fake", "x")
    broken = FakeIngest(error=ValueError("corrupt archive"))
    logger.addHandler(caplog.handler)

    summary = _run([source], _registry(broken), logger=logger)

    [record] = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert record.reason == "corrupt archive"
    assert record.exc_info[1] is summary.outcomes[0].error


def test_missing_source_is_a_failure(tmp_path, logger):
    summary = _run(
        [tmp_path / "ghost.fake"], _registry(FakeIngest()), logger=logger
    )

    [outcome] = summary.outcomes
    assert outcome.status is ConversionStatus.FAILED
    assert "Source file not found" in outcome.reason


def test_no_matching_files_exits_with_error(tmp_path, logger):
    summary = _run(
        [tmp_path / "*.fake"], _registry(FakeIngest()), logger=logger
    )

    assert summary.processed == ()
    assert summary.outcomes == ()
    assert summary.exit_code == 1


def test_directory_inputs_use_registered_extensions(project_dir, logger):
    project_dir.create(
        {
            "inbox": {
                "a.fake": "x",
                "skip.txt": "x",
                "nested": {"b.fake": "x"},
            }
        }
    )
    plugin = FakeIngest()

    summary = _run(
        [project_dir.root / "inbox"], _registry(plugin), logger=logger
    )

    names = [path.name for path in summary.processed]
    assert names == ["a.fake", "b.fake"]
    assert summary.success_count == 2


def test_duplicate_inputs_are_processed_once(project_dir, logger):
    source = project_dir.write("a.fake", "x")
    plugin = FakeIngest()

    summary = _run(
        [source, project_dir.root / "*.fake"], _registry(plugin), logger=logger
    )

    assert summary.processed == (source.absolute(),)
    assert len(plugin.calls) == 1


def test_dry_run_plans_without_writing(project_dir, logger):
    source = project_dir.write("report.md", "# Report\n")
    seen = []

    summary = _run(
        [source],
        _registry(),
        logger=logger,
        to="docx,pdf",
        dry_run=True,
        on_outcome=seen.append,
    )

    assert [outcome.status for outcome in summary.outcomes] == [
        ConversionStatus.PLANNED,
        ConversionStatus.PLANNED,
    ]
    assert [outcome.outputs[0].name for outcome in seen] == [
        "report.docx",
        "report.pdf",
    ]
    assert not (project_dir.root / "report.docx").exists()
    assert summary.exit_code == 0


def test_export_markdown_to_docx_and_html(project_dir, logger):
    source = project_dir.write("report.md", "# Report\n\nBody text\n")

    summary = _run([source], _registry(), logger=logger, to="word,html")

    assert summary.success_count == 2
    docx_path = project_dir.root / "report.docx"
    document = Document(io.BytesIO(docx_path.read_bytes()))
    assert "Report" in [paragraph.text for paragraph in document.paragraphs]
    html = (project_dir.root / "report.html").read_text(encoding="utf-8")
    assert "<title>Report</title>" in html
    assert [outcome.converter for outcome in summary.outcomes] == [
        "document",
        "document",
    ]


def test_explicit_output_file_keeps_each_target(project_dir, logger):
    source = project_dir.write("notes.md", "# Report\n\nBody text\n")
    explicit = project_dir.root / "report.docx"

    summary = _run(
        [source],
        _registry(),
        logger=logger,
        to="docx,html",
        output=str(explicit),
    )

    assert summary.success_count == 2
    assert [outcome.outputs for outcome in summary.outcomes] == [
        (explicit,),
        (project_dir.root / "report.html",),
    ]
    assert explicit.read_bytes()[:2] == b"PK"
    html = (project_dir.root / "report.html").read_text(encoding="utf-8")
    assert "<title>Report</title>" in html


def test_explicit_output_file_with_many_inputs_is_a_directory(
    project_dir, logger
):
    first = project_dir.write("a.vtt", VTT)
    second = project_dir.write("b.vtt", VTT)
    target = project_dir.root / "transcripts"

    summary = _run(
        [first, second],
        _registry(VttIngest()),
        logger=logger,
        output=str(target),
    )

    assert summary.success_count == 2
    assert sorted(path.name for path in target.iterdir()) == ["a.md", "b.md"]


def test_marp_input_routes_html_to_presentation(project_dir, logger):
    deck = project_dir.write("deck.md", MARP)

    summary = _run([deck], _registry(), logger=logger, to="html")

    [outcome] = summary.outcomes
    assert outcome.converter == "presentation"
    html = (project_dir.root / "deck.html").read_text(encoding="utf-8")
    assert html.count('<section class="slide"') == 2


def test_export_csv_to_xlsx_into_output_dir(project_dir, logger):
    project_dir.create({"data": {"sales.csv": "a,b\n1,2\n", "readme.txt": "x"}})
    out_dir = project_dir.root / "out"

    summary = _run(
        [project_dir.root / "data"],
        _registry(),
        config=_config(output_dir=out_dir),
        logger=logger,
        to="excel",
    )

    assert [path.name for path in summary.processed] == ["sales.csv"]
    assert (out_dir / "sales.xlsx").read_bytes()[:2] == b"PK"


def test_export_respects_collision_policies(project_dir, logger):
    source = project_dir.write("notes.md", "# Notes\n")
    existing = project_dir.write("notes.vtt", "old")

    skipped = _run(
        [source],
        _registry(),
        config=_config(CollisionPolicy.SKIP),
        logger=logger,
        to="vtt",
    )
    versioned = _run(
        [source],
        _registry(),
        config=_config(CollisionPolicy.VERSION),
        logger=logger,
        to="vtt",
    )

    assert skipped.outcomes[0].status is ConversionStatus.SKIPPED
    assert existing.read_text(encoding="utf-8") == "old"
    assert versioned.outcomes[0].outputs == (project_dir.root / "notes-01.vtt",)
    assert (project_dir.root / "notes-01.vtt").read_text(
        encoding="utf-8"
    ).startswith("WEBVTT")


def test_export_without_converter_fails(project_dir, logger):
    source = project_dir.write("notes.md", "# Notes\n")

    summary = _run([source], _registry(exports=False), logger=logger, to="srt")

    assert summary.outcomes[0].reason == (
        'No export converter found for category "transcript" '
        'with format ".srt"'
    )


@pytest.mark.parametrize(
    ("flag", "error"),
    [
        ("docx,bogus", UnknownFormatError),
        ("document:pdf", DeprecatedSyntaxError),
    ],
)
def test_invalid_to_flag_fails_before_processing(
    project_dir, logger, flag, error
):
    source = project_dir.write("notes.md", "# Notes\n")

    with pytest.raises(error):
        _run([source], _registry(), logger=logger, to=flag)

    assert not (project_dir.root / "notes.docx").exists()


def test_unknown_theme_is_reported_as_warning(project_dir, logger):
    source = project_dir.write("notes.md", "# Notes\n")
    options = RunOptions(to="html")

    run_conversion(
        [str(source)],
        registry=_registry(),
        config=_config(theme="does-not-exist"),
        logger=logger,
        options=options,
    )

    assert options.warnings == [
        'Theme "does-not-exist" not found, using default.'
    ]
    assert (project_dir.root / "notes.html").exists()


def test_project_theme_next_to_input_styles_html(project_dir, logger):
    project_dir.theme({"extends": "minimal", "colors": {"primary": "AA3300"}})
    source = project_dir.write("docs/notes.md", "# Notes\n\nBody\n")
    options = RunOptions(to="html")

    run_conversion(
        [str(source)],
        registry=_registry(),
        config=_config(),
        logger=logger,
        options=options,
    )

    html = source.with_suffix(".html").read_text(encoding="utf-8")
    assert options.warnings == []
    assert "AA3300" in html.upper()
    assert project_dir.names("docs/*") == ["docs/notes.html", "docs/notes.md"]
