"""Markdown slide decks to HTML, PowerPoint and PDF.

Slides are separated by ``---`` lines. The deck's Marp frontmatter is merged
with the theme's presentation directives (theme wins), then each slide is
rendered with markdown-it-py into a 16:9 HTML deck, printed to PDF through
WeasyPrint, or rebuilt as native slides with python-pptx.
"""

from __future__ import annotations

import io
import json
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import yaml
from pptx import Presentation
from pptx.dml.color import RGBColor
from pptx.util import Inches

from markwell.core.errors import ExportError
from markwell.core.types import (
    ExportCategory,
    ExportFormat,
    ExportInput,
    ExportOutput,
)
from markwell.ingest.pptx import NOTES_PREFIX

from . import _render

PPTX_MIME = (
    "application/vnd.openxmlformats-officedocument.presentationml.presentation"
)

# python-pptx default template layouts.
TITLE_AND_CONTENT_LAYOUT = 1
TITLE_ONLY_LAYOUT = 5

PRINT_CSS = """
@page { size: 1280px 720px; margin: 0; }
html, body { background: none; }
section.slide { margin: 0; page-break-after: always; }
"""

DECK_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
{% if title %}<title>{{ title | e }}</title>{% endif %}
<style>
html, body { margin: 0; padding: 0; background: #1e1e1e; }
section.slide {
  box-sizing: border-box;
  width: 1280px;
  height: 720px;
  margin: 20px auto;
  padding: 60px 80px;
  position: relative;
  overflow: hidden;
  background: {{ background }};
  color: {{ text_color }};
  font-family: '{{ font }}', sans-serif;
  font-size: 28px;
}
section.slide h1, section.slide h2, section.slide h3 { color: {{ primary }}; }
section.slide header, section.slide footer {
  position: absolute;
  left: 80px;
  right: 80px;
  font-size: 18px;
  color: {{ muted }};
}
section.slide header { top: 20px; }
section.slide footer { bottom: 20px; }
section.slide .page-number {
  position: absolute;
  right: 30px;
  bottom: 20px;
  font-size: 18px;
  color: {{ muted }};
}
section.slide aside.notes { display: none; }
{{ highlight_css }}
{{ custom_style }}
</style>
</head>
<body>
{% for slide in slides %}
<section class="slide" id="slide-{{ loop.index }}">
{% if header %}<header>{{ header | e }}</header>{% endif %}
{{ slide.html }}
{% if slide.notes %}
<aside class="notes">{{ slide.notes | e }}</aside>
{% endif %}
{% if footer %}<footer>{{ footer | e }}</footer>{% endif %}
{% if paginate %}<span class="page-number">{{ loop.index }}</span>{% endif %}
</section>
{% endfor %}
</body>
</html>
"""


@dataclass(frozen=True)
class Slide:
    markdown: str
    notes: str = ""


def _yaml_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(str(value), ensure_ascii=False)


def theme_directives(theme: Mapping[str, Any]) -> dict[str, Any]:
    presentation = _render.theme_section(theme, "presentation")
    directives: dict[str, Any] = {"marp": True}
    for key in ("theme", "paginate", "backgroundColor", "header", "footer"):
        value = presentation.get(key)
        if value is not None and value != "":
            directives[key] = value
    return directives


def build_marp_markdown(content: str, theme: Mapping[str, Any]) -> str:
    """Return ``content`` with its frontmatter merged with theme directives."""

    directives = theme_directives(theme)
    lines = [
        f"{key}: {_yaml_scalar(value)}" for key, value in directives.items()
    ]

    frontmatter, body = _render.split_frontmatter(content)
    if frontmatter is None:
        return "---\n" + "\n".join(lines) + "\n---\n\n" + content

    for line in frontmatter.splitlines():
        key = line.split(":", 1)[0].strip()
        if line.strip() and key not in directives:
            lines.append(line)
    return "---\n" + "\n".join(lines) + "\n---\n\n" + body


def parse_deck(content: str) -> tuple[dict[str, Any], list[Slide]]:
    frontmatter, body = _render.split_frontmatter(content)
    directives: dict[str, Any] = {}
    if frontmatter is not None:
        try:
            loaded = yaml.safe_load(frontmatter)
        except yaml.YAMLError as exc:
            raise ExportError(
                f"Invalid slide deck frontmatter: {exc}"
            ) from exc
        if isinstance(loaded, dict):
            directives = loaded
    slides = [split_notes(chunk) for chunk in _render.split_slides(body)]
    return directives, slides


def split_notes(markdown: str) -> Slide:
    """Pull ``> **Speaker Notes:**`` blockquotes out of a slide."""

    body: list[str] = []
    notes: list[str] = []
    in_notes = False
    for line in markdown.split("\n"):
        stripped = line.strip()
        if stripped.startswith(NOTES_PREFIX):
            in_notes = True
            notes.append(stripped[len(NOTES_PREFIX):].strip())
        elif in_notes and stripped.startswith(">"):
            notes.append(stripped[1:].strip())
        else:
            in_notes = False
            body.append(line)
    return Slide(
        markdown="\n".join(body).strip(),
        notes="\n".join(note for note in notes if note),
    )


def _deck_title(slides: list[Slide]) -> str:
    for slide in slides:
        title, _ = slide_outline(slide.markdown)
        if title:
            return title
    return ""


def _directive_text(directives: Mapping[str, Any], key: str) -> str:
    value = directives.get(key)
    return _render.expand_template(str(value)) if value else ""


def render_deck_html(content: str, theme: Mapping[str, Any]) -> str:
    directives, slides = parse_deck(build_marp_markdown(content, theme))
    colors = _render.theme_section(theme, "colors")
    typography = _render.theme_section(theme, "typography")
    presentation = _render.theme_section(theme, "presentation")
    md = _render.build_markdown_it()

    background = directives.get("backgroundColor") or colors.get("background")
    return _render.render_template(
        DECK_TEMPLATE,
        title=_deck_title(slides),
        slides=[
            {
                "html": _render.render_markdown(slide.markdown, md),
                "notes": slide.notes,
            }
            for slide in slides
        ],
        background=_render.css_color(background, "#ffffff"),
        text_color=_render.css_color(colors.get("text"), "#333333"),
        primary=_render.css_color(colors.get("primary"), "#2B579A"),
        muted=_render.css_color(colors.get("muted"), "#888888"),
        font=typography.get("fontFamily") or "Calibri",
        header=_directive_text(directives, "header"),
        footer=_directive_text(directives, "footer"),
        paginate=bool(directives.get("paginate")),
        highlight_css=_render.highlight_css(),
        custom_style=presentation.get("style") or "",
    )


def _inline_text(inline) -> str:
    parts = []
    for child in inline.children or []:
        if child.type in ("text", "code_inline"):
            parts.append(child.content)
        elif child.type in ("softbreak", "hardbreak"):
            parts.append(" ")
    return "".join(parts).strip()


def slide_outline(markdown: str) -> tuple[str, list[tuple[int, str]]]:
    """Return the slide title and ``(level, text)`` bullets for its body.

    The first heading becomes the title; every other heading, paragraph and
    list item becomes a bullet, indented by list nesting depth.
    """

    tokens = _render.build_markdown_it().parse(markdown)
    title = ""
    bullets: list[tuple[int, str]] = []
    depth = 0
    heading = False
    for token in tokens:
        if token.type in ("bullet_list_open", "ordered_list_open"):
            depth += 1
        elif token.type in ("bullet_list_close", "ordered_list_close"):
            depth -= 1
        elif token.type == "heading_open":
            heading = True
        elif token.type == "heading_close":
            heading = False
        elif token.type in ("fence", "code_block"):
            lines = token.content.rstrip("\n").split("\n")
            bullets.extend((0, line) for line in lines)
        elif token.type == "inline":
            text = _inline_text(token)
            if not text:
                continue
            if heading and not title:
                title = text
            else:
                bullets.append((max(depth - 1, 0), text))
    return title, bullets


def render_pptx(content: str, theme: Mapping[str, Any]) -> bytes:
    _, slides = parse_deck(content)
    colors = _render.theme_section(theme, "colors")
    typography = _render.theme_section(theme, "typography")
    font = typography.get("fontFamily")
    primary = _render.hex_color(colors.get("primary"))

    deck = Presentation()
    deck.slide_width = Inches(13.333)
    deck.slide_height = Inches(7.5)

    for slide in slides:
        title, bullets = slide_outline(slide.markdown)
        layout = deck.slide_layouts[
            TITLE_AND_CONTENT_LAYOUT if bullets else TITLE_ONLY_LAYOUT
        ]
        page = deck.slides.add_slide(layout)

        if page.shapes.title is not None:
            page.shapes.title.text = title
            _style_paragraphs(page.shapes.title.text_frame, font, primary)

        if bullets:
            frame = page.placeholders[1].text_frame
            frame.text = bullets[0][1]
            frame.paragraphs[0].level = min(bullets[0][0], 4)
            for level, text in bullets[1:]:
                paragraph = frame.add_paragraph()
                paragraph.text = text
                paragraph.level = min(level, 4)
            _style_paragraphs(frame, font, None)

        if slide.notes:
            page.notes_slide.notes_text_frame.text = slide.notes

    handle = io.BytesIO()
    deck.save(handle)
    return handle.getvalue()


def _style_paragraphs(
    frame, font: Optional[str], color: Optional[str]
) -> None:
    for paragraph in frame.paragraphs:
        for run in paragraph.runs:
            if font:
                run.font.name = font
            if color:
                run.font.color.rgb = RGBColor.from_string(color)


class PresentationExport:
    name = "presentation"
    category = ExportCategory.PRESENTATION
    formats = (
        ExportFormat(".html", "text/html", "HTML Presentation"),
        ExportFormat(".pptx", PPTX_MIME, "PowerPoint Presentation"),
        ExportFormat(".pdf", "application/pdf", "PDF Presentation"),
    )

    async def export(self, input: ExportInput) -> ExportOutput:
        content = input.primary_content()
        if input.format == ".html":
            html = render_deck_html(content, input.theme)
            return ExportOutput(html.encode("utf-8"), "text/html", ".html")
        if input.format == ".pptx":
            buffer = render_pptx(content, input.theme)
            return ExportOutput(buffer, PPTX_MIME, ".pptx")
        if input.format == ".pdf":
            html = render_deck_html(content, input.theme)
            buffer = _render.render_pdf(html, [PRINT_CSS])
            return ExportOutput(buffer, "application/pdf", ".pdf")
        raise ExportError(f"Unsupported presentation format: {input.format}")
