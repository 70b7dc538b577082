"""Markdown documents to Word, HTML and PDF.

The Markdown is parsed once with markdown-it-py. Word output walks the token
stream and builds paragraphs with python-docx, honouring the theme's
typography (half-point sizes), colors, spacing and margins (twips). HTML
output renders the tokens through a Jinja2 page template, and PDF output
prints that page with WeasyPrint.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.image.exceptions import UnrecognizedImageError
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Inches, Pt, RGBColor, Twips

from markwell.core.errors import ExportError
from markwell.core.types import (
    ExportCategory,
    ExportFormat,
    ExportInput,
    ExportOutput,
)

from . import _render

DOCX_MIME = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
CODE_FONT = "Courier New"
QUOTE_INDENT = 720

HTML_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1">
{% if title %}<title>{{ title | e }}</title>{% endif %}
<style>
body {
  font-family: {{ font }}, sans-serif;
  color: {{ text_color }};
  background: {{ background }};
  max-width: 800px;
  margin: 0 auto;
  padding: 2rem;
  line-height: 1.6;
}
h1, h2, h3, h4, h5, h6 { color: {{ primary }}; }
a { color: {{ primary }}; }
code {
  font-family: "{{ code_font }}", monospace;
  background: #f5f5f5;
  padding: 0.2em 0.4em;
  border-radius: 3px;
}
pre {
  background: #f5f5f5;
  padding: 1em;
  border-radius: 6px;
  overflow-x: auto;
}
pre code { background: none; padding: 0; }
blockquote {
  border-left: 4px solid {{ primary }};
  margin-left: 0;
  padding-left: 1em;
  color: #666;
}
table { border-collapse: collapse; width: 100%; }
th, td { border: 1px solid #ddd; padding: 8px; text-align: left; }
th { background: {{ primary }}; color: #fff; }
img { max-width: 100%; height: auto; }
{{ highlight_css }}
</style>
</head>
<body>
{% if header %}
<header class="page-header">{{ header | e }}</header>
{% endif %}
{{ body }}
{% if footer %}
<footer class="page-footer">{{ footer | e }}</footer>
{% endif %}
</body>
</html>
"""


@dataclass(frozen=True)
class RunStyle:
    bold: bool = False
    italic: bool = False
    strike: bool = False
    code: bool = False
    link: bool = False
    font: Optional[str] = None
    size: Optional[int] = None
    color: Optional[str] = None


@dataclass
class DocxTheme:
    """Theme values resolved for the Word builder."""

    font: str
    body_size: int
    code_font: str
    heading_sizes: Mapping[Any, Any]
    text_color: Optional[str]
    primary: Optional[str]
    accent: Optional[str]
    paragraph_after: int
    heading_before: int
    heading_after: int
    margins: Mapping[str, Any] = field(default_factory=dict)
    header: Optional[str] = None
    footer: Optional[str] = None

    @classmethod
    def from_theme(cls, theme: Mapping[str, Any]) -> "DocxTheme":
        typography = _render.theme_section(theme, "typography")
        colors = _render.theme_section(theme, "colors")
        spacing = _render.theme_section(theme, "spacing")
        document = _render.theme_section(theme, "document")
        return cls(
            font=str(typography.get("fontFamily") or "Calibri"),
            body_size=int(typography.get("bodySize") or 22),
            code_font=str(typography.get("codeFont") or CODE_FONT),
            heading_sizes=typography.get("headingSizes") or {},
            text_color=_render.hex_color(colors.get("text")),
            primary=_render.hex_color(colors.get("primary")),
            accent=_render.hex_color(colors.get("accent")),
            paragraph_after=int(spacing.get("paragraphAfter", 120)),
            heading_before=int(spacing.get("headingBefore", 240)),
            heading_after=int(spacing.get("headingAfter", 120)),
            margins=document.get("margins") or {},
            header=document.get("header"),
            footer=document.get("footer"),
        )

    def heading_size(self, level: int) -> int:
        sizes = self.heading_sizes
        size = sizes.get(level, sizes.get(str(level)))
        return int(size) if size else self.body_size

    def margin(self, side: str) -> int:
        return int(self.margins.get(side, 1440))


class DocxBuilder:
    """Translate markdown-it block tokens into a python-docx document."""

    def __init__(self, theme: DocxTheme, assets: Mapping[str, bytes]):
        self.theme = theme
        self.assets = assets
        self.document = Document()
        self._lists: list[str] = []
        self._quote_depth = 0

    def build(self, markdown: str) -> bytes:
        self._setup_section()
        tokens = _render.build_markdown_it().parse(markdown)
        index = 0
        while index < len(tokens):
            index = self._block(tokens, index)

        handle = io.BytesIO()
        self.document.save(handle)
        return handle.getvalue()

    def _setup_section(self) -> None:
        section = self.document.sections[0]
        section.top_margin = Twips(self.theme.margin("top"))
        section.bottom_margin = Twips(self.theme.margin("bottom"))
        section.left_margin = Twips(self.theme.margin("left"))
        section.right_margin = Twips(self.theme.margin("right"))

        muted = RunStyle(font=self.theme.font, size=18, color="888888")
        if self.theme.header:
            paragraph = section.header.paragraphs[0]
            text = _render.expand_template(self.theme.header)
            self._add_run(paragraph, text, muted)
        if self.theme.footer:
            paragraph = section.footer.paragraphs[0]
            paragraph.alignment = WD_ALIGN_PARAGRAPH.CENTER
            text = _render.expand_template(self.theme.footer)
            self._add_run(paragraph, text, muted)

    def _body_style(self) -> RunStyle:
        return RunStyle(
            font=self.theme.font,
            size=self.theme.body_size,
            color=self.theme.text_color,
        )

    def _block(self, tokens: list, index: int) -> int:
        token = tokens[index]
        kind = token.type

        if kind == "heading_open":
            level = int(token.tag[1:])
            paragraph = self.document.add_paragraph(
                style=f"Heading {min(level, 9)}"
            )
            fmt = paragraph.paragraph_format
            fmt.space_before = Twips(self.theme.heading_before)
            fmt.space_after = Twips(self.theme.heading_after)
            style = RunStyle(
                bold=True,
                font=self.theme.font,
                size=self.theme.heading_size(level),
                color=self.theme.primary,
            )
            self._inline(paragraph, tokens[index + 1], style)
            return index + 3

        if kind == "paragraph_open":
            self._paragraph(tokens[index + 1])
            return index + 3

        if kind in ("bullet_list_open", "ordered_list_open"):
            ordered = kind == "ordered_list_open"
            self._lists.append("List Number" if ordered else "List Bullet")
            return index + 1
        if kind in ("bullet_list_close", "ordered_list_close"):
            self._lists.pop()
            return index + 1

        if kind == "blockquote_open":
            self._quote_depth += 1
            return index + 1
        if kind == "blockquote_close":
            self._quote_depth -= 1
            return index + 1

        if kind in ("fence", "code_block"):
            self._code(token.content)
            return index + 1

        if kind == "table_open":
            return self._table(tokens, index)

        if kind == "hr":
            self.document.add_paragraph()
            return index + 1

        return index + 1

    def _paragraph(self, inline) -> None:
        image = self._standalone_image(inline)
        if image is not None:
            paragraph = self.document.add_paragraph()
            try:
                paragraph.add_run().add_picture(
                    io.BytesIO(image), width=Inches(5)
                )
            except UnrecognizedImageError:
                self._inline(paragraph, inline, self._body_style())
            paragraph.paragraph_format.space_after = Twips(
                self.theme.paragraph_after
            )
            return

        if self._lists:
            depth = len(self._lists)
            base = self._lists[-1]
            style = base if depth == 1 else f"{base} {min(depth, 3)}"
            paragraph = self.document.add_paragraph(style=style)
            paragraph.paragraph_format.space_after = Twips(40)
        else:
            paragraph = self.document.add_paragraph()
            paragraph.paragraph_format.space_after = Twips(
                self.theme.paragraph_after
            )

        if self._quote_depth:
            indent = QUOTE_INDENT * self._quote_depth
            paragraph.paragraph_format.left_indent = Twips(indent)
            quoted = replace(self._body_style(), italic=True)
            self._inline(paragraph, inline, quoted)
        else:
            self._inline(paragraph, inline, self._body_style())

    def _standalone_image(self, inline) -> Optional[bytes]:
        children = [
            child
            for child in inline.children or []
            if child.type != "softbreak"
        ]
        if len(children) != 1 or children[0].type != "image":
            return None
        return self.assets.get(str(children[0].attrGet("src") or ""))

    def _code(self, content: str) -> None:
        style = RunStyle(
            font=self.theme.code_font, size=max(self.theme.body_size - 2, 2)
        )
        for line in content.rstrip("\n").split("\n"):
            paragraph = self.document.add_paragraph()
            paragraph.paragraph_format.space_after = Twips(0)
            paragraph.paragraph_format.left_indent = Twips(QUOTE_INDENT)
            self._add_run(paragraph, line, style)
        self._spacer()

    def _spacer(self) -> None:
        spacer = self.document.add_paragraph()
        spacer.paragraph_format.space_after = Twips(self.theme.paragraph_after)

    def _table(self, tokens: list, index: int) -> int:
        rows: list[list[Any]] = []
        index += 1
        while tokens[index].type != "table_close":
            token = tokens[index]
            if token.type == "tr_open":
                rows.append([])
            elif token.type == "inline" and rows:
                rows[-1].append(token)
            index += 1

        if rows:
            columns = max(len(row) for row in rows)
            table = self.document.add_table(rows=len(rows), cols=columns)
            table.style = "Table Grid"
            header_color = self.theme.accent or "4472C4"
            for row_index, row in enumerate(rows):
                for column, inline in enumerate(row):
                    cell = table.cell(row_index, column)
                    paragraph = cell.paragraphs[0]
                    if row_index == 0:
                        _shade_cell(cell, header_color)
                        style = replace(
                            self._body_style(), bold=True, color="FFFFFF"
                        )
                    else:
                        style = self._body_style()
                    self._inline(paragraph, inline, style)
            self._spacer()
        return index + 1

    def _inline(self, paragraph, inline, base: RunStyle) -> None:
        style = base
        stack: list[RunStyle] = []
        for child in inline.children or []:
            kind = child.type
            if kind == "text":
                self._add_run(paragraph, child.content, style)
            elif kind == "code_inline":
                code = replace(style, code=True)
                self._add_run(paragraph, child.content, code)
            elif kind in ("strong_open", "em_open", "s_open", "link_open"):
                stack.append(style)
                if kind == "strong_open":
                    style = replace(style, bold=True)
                elif kind == "em_open":
                    style = replace(style, italic=True)
                elif kind == "s_open":
                    style = replace(style, strike=True)
                else:
                    style = replace(style, link=True, color=self.theme.primary)
            elif kind in ("strong_close", "em_close", "s_close", "link_close"):
                style = stack.pop() if stack else base
            elif kind == "softbreak":
                self._add_run(paragraph, " ", style)
            elif kind == "hardbreak":
                paragraph.add_run().add_break()
            elif kind == "image":
                alt = replace(style, italic=True)
                self._add_run(paragraph, child.content or "", alt)

    def _add_run(self, paragraph, text: str, style: RunStyle):
        run = paragraph.add_run(text)
        run.bold = style.bold or None
        run.italic = style.italic or None
        if style.strike:
            run.font.strike = True
        if style.link:
            run.underline = True
        font = self.theme.code_font if style.code else style.font
        if font:
            run.font.name = font
        if style.size:
            run.font.size = Pt(style.size / 2)
        if style.color and not style.code:
            run.font.color.rgb = RGBColor.from_string(style.color)
        return run


def _shade_cell(cell, color: str) -> None:
    shading = OxmlElement("w:shd")
    shading.set(qn("w:val"), "clear")
    shading.set(qn("w:color"), "auto")
    shading.set(qn("w:fill"), color)
    cell._tc.get_or_add_tcPr().append(shading)


def render_docx(
    markdown: str, theme: Mapping[str, Any], assets: Mapping[str, bytes]
) -> bytes:
    return DocxBuilder(DocxTheme.from_theme(theme), assets).build(markdown)


def render_html(markdown: str, theme: Mapping[str, Any]) -> str:
    colors = _render.theme_section(theme, "colors")
    typography = _render.theme_section(theme, "typography")
    document = _render.theme_section(theme, "document")
    header = document.get("header")
    footer = document.get("footer")
    return _render.render_template(
        HTML_TEMPLATE,
        title=_first_heading(markdown),
        font=typography.get("fontFamily") or "Calibri",
        code_font=typography.get("codeFont") or CODE_FONT,
        text_color=_render.css_color(colors.get("text"), "#333333"),
        primary=_render.css_color(colors.get("primary"), "#2563eb"),
        background=_render.css_color(colors.get("background"), "#ffffff"),
        highlight_css=_render.highlight_css(),
        header=_expand(header),
        footer=_expand(footer),
        body=_render.render_markdown(markdown),
    )


def _expand(value: Any) -> str:
    return _render.expand_template(value) if isinstance(value, str) else ""


def page_css(theme: Mapping[str, Any]) -> str:
    document = _render.theme_section(theme, "document")
    margins = _render.theme_section(document, "margins")

    def inches(side: str) -> str:
        return f"{int(margins.get(side, 1440)) / 1440:g}in"

    return (
        "@page {\n"
        "  size: Letter portrait;\n"
        f"  margin: {inches('top')} {inches('right')} "
        f"{inches('bottom')} {inches('left')};\n"
        "}\n"
        "body { max-width: none; padding: 0; }\n"
    )


def _first_heading(markdown: str) -> str:
    tokens = _render.build_markdown_it().parse(markdown)
    for index, token in enumerate(tokens[:-1]):
        if token.type == "heading_open":
            return tokens[index + 1].content
    return ""


class DocumentExport:
    name = "document"
    category = ExportCategory.DOCUMENT
    formats = (
        ExportFormat(".docx", DOCX_MIME, "Word Document"),
        ExportFormat(".pdf", "application/pdf", "PDF Document"),
        ExportFormat(".html", "text/html", "HTML Document"),
    )

    async def export(self, input: ExportInput) -> ExportOutput:
        markdown = input.primary_content()
        if input.format == ".docx":
            buffer = render_docx(markdown, input.theme, input.assets)
            return ExportOutput(
                buffer=buffer, mime_type=DOCX_MIME, extension=".docx"
            )
        if input.format == ".html":
            html = render_html(markdown, input.theme)
            return ExportOutput(
                buffer=html.encode("utf-8"),
                mime_type="text/html",
                extension=".html",
            )
        if input.format == ".pdf":
            html = render_html(markdown, input.theme)
            buffer = _render.render_pdf(html, [page_css(input.theme)])
            return ExportOutput(
                buffer=buffer, mime_type="application/pdf", extension=".pdf"
            )
        raise ExportError(f"Unsupported document format: {input.format}")
