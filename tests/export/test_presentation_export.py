from __future__ import annotations

import asyncio
import io

import pytest
from pptx import Presentation

from markwell.core.errors import ExportError
from markwell.core.theme import resolve_theme
from markwell.core.types import ExportInput, OutputFile
from markwell.export import _render
from markwell.export.presentation import (
    PPTX_MIME,
    PRINT_CSS,
    PresentationExport,
    build_marp_markdown,
    parse_deck,
    render_deck_html,
    render_pptx,
    slide_outline,
    split_notes,
    theme_directives,
)

DECK = """---
marp: true
theme: gaia
paginate: false
---

# Welcome

- Agenda
  - Details

> **Speaker Notes:** Greet everyone
> and introduce the agenda

---

## Closing

Thanks for listening
"""


def test_theme_directives_collect_presentation_keys():
    theme = resolve_theme()
    theme["presentation"]["footer"] = "ACME"
    theme["presentation"]["header"] = ""

    directives = theme_directives(theme)

    assert directives == {"marp": True, "paginate": True, "footer": "ACME"}


def test_build_marp_markdown_adds_frontmatter_when_missing():
    result = build_marp_markdown("# Slide", resolve_theme())

    assert result == "---\nmarp: true\npaginate: true\n---\n\n# Slide"


def test_build_marp_markdown_lets_theme_override_frontmatter():
    result = build_marp_markdown(DECK, resolve_theme())

    frontmatter = result.split("---\n")[1]
    assert frontmatter.splitlines() == [
        "marp: true",
        "paginate: true",
        "theme: gaia",
    ]
    assert "# Welcome" in result


def test_split_notes_extracts_speaker_notes():
    slide = split_notes(
        "# Title\n\n> **Speaker Notes:** First\n> second\n\nAfter"
    )

    assert slide.notes == "First\nsecond"
    assert "Speaker Notes" not in slide.markdown
    assert slide.markdown.startswith("# Title")
    assert slide.markdown.endswith("After")


def test_parse_deck_reads_directives_and_slides():
    directives, slides = parse_deck(DECK)

    assert directives["theme"] == "gaia"
    assert directives["paginate"] is False
    assert len(slides) == 2
    assert slides[0].notes == "Greet everyone\nand introduce the agenda"
    assert slides[1].markdown.startswith("## Closing")


def test_parse_deck_rejects_broken_frontmatter():
    with pytest.raises(ExportError):
        parse_deck("---\nkey: [unclosed\n---\n\n# Slide\n")


def test_slide_outline_uses_first_heading_as_title():
    title, bullets = slide_outline("# Title\n\n- a\n  - b\n\nPara")

    assert title == "Title"
    assert bullets == [(0, "a"), (1, "b"), (0, "Para")]


def test_render_deck_html_renders_each_slide():
    theme = resolve_theme()
    theme["presentation"]["footer"] = "ACME"

    html = render_deck_html(DECK, theme)

    assert html.count('<section class="slide"') == 2
    assert "<title>Welcome</title>" in html
    assert '<aside class="notes">Greet everyone' in html
    assert "<footer>ACME</footer>" in html
    assert '<span class="page-number">2</span>' in html


def test_render_pptx_builds_native_slides():
    buffer = render_pptx(DECK, resolve_theme())

    deck = Presentation(io.BytesIO(buffer))
    slides = list(deck.slides)
    assert len(slides) == 2
    first = slides[0]
    assert first.shapes.title.text == "Welcome"
    body = first.placeholders[1].text_frame
    assert [p.text for p in body.paragraphs] == ["Agenda", "Details"]
    assert [p.level for p in body.paragraphs] == [0, 1]
    notes = first.notes_slide.notes_text_frame.text
    assert notes == "Greet everyone\nand introduce the agenda"
    assert slides[1].shapes.title.text == "Closing"


def test_export_all_formats(monkeypatch):
    captured = {}

    def fake_pdf(html, stylesheets=()):
        captured["stylesheets"] = list(stylesheets)
        return b"%PDF-deck"

    monkeypatch.setattr(_render, "render_pdf", fake_pdf)
    converter = PresentationExport()

    def run(fmt):
        payload = ExportInput(
            files=(OutputFile("deck.md", DECK),),
            format=fmt,
            theme=resolve_theme(),
        )
        return asyncio.run(converter.export(payload))

    html = run(".html")
    pptx = run(".pptx")
    pdf = run(".pdf")

    assert html.mime_type == "text/html"
    assert pptx.mime_type == PPTX_MIME
    assert pptx.buffer[:2] == b"PK"
    assert pdf.buffer == b"%PDF-deck"
    assert captured["stylesheets"] == [PRINT_CSS]
    with pytest.raises(ExportError):
        run(".key")
