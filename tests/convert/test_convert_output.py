from __future__ import annotations

from pathlib import Path

from markwell.convert.config import CollisionPolicy
from markwell.convert.output import (
    files_output_dir,
    resolve_collision,
    resolve_output_path,
)


def test_resolve_output_path_defaults_next_to_input(tmp_path):
    source = tmp_path / "docs" / "report.docx"

    assert resolve_output_path(source, ".md") == tmp_path / "docs/report.md"


def test_resolve_output_path_with_directory_flag(tmp_path):
    existing = tmp_path / "out"
    existing.mkdir()

    assert resolve_output_path("a/report.md", ".pdf", f"{tmp_path}/new/") == (
        tmp_path / "new" / "report.pdf"
    )
    assert resolve_output_path("report.md", ".pdf", str(existing)) == (
        existing / "report.pdf"
    )


def test_resolve_output_path_with_file_flag(tmp_path):
    target = tmp_path / "final.docx"

    assert resolve_output_path("report.md", ".docx", str(target)) == target
    assert resolve_output_path(
        "report.md", ".html", str(target), fan_out=True
    ) == (tmp_path / "final.html")


def test_files_output_dir_uses_stem_or_flag(tmp_path):
    source = tmp_path / "book.xlsx"

    assert files_output_dir(source) == tmp_path / "book"
    assert files_output_dir(source, str(tmp_path / "csv")) == tmp_path / "csv"


def test_resolve_collision_free_path(tmp_path):
    target = tmp_path / "new.md"

    result = resolve_collision(target, CollisionPolicy.SKIP)

    assert result.path == target
    assert not result.skipped


def test_resolve_collision_skip_and_overwrite(tmp_path):
    target = tmp_path / "exists.md"
    target.write_text("old", encoding="utf-8")

    skipped = resolve_collision(target, CollisionPolicy.SKIP)
    overwritten = resolve_collision(target, CollisionPolicy.OVERWRITE)

    assert skipped.skipped
    assert "skip" in skipped.skip_reason
    assert overwritten.path == target
    assert not overwritten.skipped


def test_resolve_collision_version_finds_next_free_suffix(tmp_path):
    target = tmp_path / "notes.md"
    target.write_text("v0", encoding="utf-8")
    (tmp_path / "notes-01.md").write_text("v1", encoding="utf-8")

    result = resolve_collision(target, CollisionPolicy.VERSION)

    assert result.path == tmp_path / "notes-02.md"


def test_resolve_collision_prompt_non_interactive_skips(tmp_path):
    target = tmp_path / "exists.md"
    target.write_text("old", encoding="utf-8")

    result = resolve_collision(
        target, CollisionPolicy.PROMPT, interactive=False
    )

    assert result.skipped
    assert "--force" in result.skip_reason


def test_resolve_collision_prompt_uses_confirm_callback(tmp_path):
    target = tmp_path / "exists.md"
    target.write_text("old", encoding="utf-8")
    asked: list[Path] = []

    def decline(path: Path) -> bool:
        asked.append(path)
        return False

    accepted = resolve_collision(
        target, CollisionPolicy.PROMPT, interactive=True, confirm=lambda _: True
    )
    declined = resolve_collision(
        target, CollisionPolicy.PROMPT, interactive=True, confirm=decline
    )

    assert not accepted.skipped
    assert declined.skip_reason == "Overwrite declined."
    assert asked == [target]
