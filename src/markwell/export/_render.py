"""Markdown, HTML and PDF helpers shared by the export converters."""

from __future__ import annotations

import re
from datetime import date
from typing import Any, Mapping, Optional, Sequence

from jinja2 import Environment
from markdown_it import MarkdownIt
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexers import get_lexer_by_name
from pygments.util import ClassNotFound

from markwell.core.errors import import_backend

_FRONTMATTER_RE = re.compile(
    r"^---\r?\n(.*?)\r?\n---(?:\r?\n|$)(.*)\Z", re.DOTALL
)
_SLIDE_BREAK_RE = re.compile(r"^---[ \t]*$", re.MULTILINE)
_HEX_RE = re.compile(r"^#?([0-9a-fA-F]{6})$")

# Pygments output is emitted without a wrapper, so scope the rules to the
# ``<pre><code>`` block markdown-it renders around it.
HIGHLIGHT_SCOPE = "pre > code"


def _highlight_code(code: str, lang: str, _attrs: Any) -> str:
    if not lang:
        return ""
    try:
        lexer = get_lexer_by_name(lang)
    except ClassNotFound:
        return ""
    return highlight(code, lexer, HtmlFormatter(nowrap=True))


def build_markdown_it() -> MarkdownIt:
    md = MarkdownIt(
        "commonmark",
        options_update={"html": True, "highlight": _highlight_code},
    )
    md.enable("table")
    md.enable("strikethrough")
    return md


def highlight_css(style_name: str = "default") -> str:
    return HtmlFormatter(style=style_name).get_style_defs(HIGHLIGHT_SCOPE)


def render_markdown(text: str, md: Optional[MarkdownIt] = None) -> str:
    return (md or build_markdown_it()).render(text)


def split_frontmatter(content: str) -> tuple[Optional[str], str]:
    """Return ``(frontmatter, body)``; frontmatter is ``None`` when absent."""

    match = _FRONTMATTER_RE.match(content)
    if match is None:
        return None, content
    return match.group(1), match.group(2)


def split_slides(body: str) -> list[str]:
    """Split a deck body on ``---`` lines, dropping empty slides."""

    slides = [part.strip() for part in _SLIDE_BREAK_RE.split(body)]
    return [slide for slide in slides if slide]


def css_color(value: Any, fallback: str) -> str:
    """Render a theme color (``"2B579A"`` or ``"#2B579A"``) for CSS."""

    if isinstance(value, str):
        match = _HEX_RE.match(value.strip())
        if match:
            return f"#{match.group(1)}"
        if value.strip():
            return value.strip()
    return fallback


def hex_color(value: Any) -> Optional[str]:
    """Return six hex digits for Office color APIs or ``None``."""

    if isinstance(value, str):
        match = _HEX_RE.match(value.strip())
        if match:
            return match.group(1).upper()
    return None


def expand_template(text: str, *, title: str = "") -> str:
    """Fill ``{date}`` and ``{title}`` placeholders in header/footer text."""

    return (
        text.replace("{date}", date.today().isoformat())
        .replace("{title}", title)
        .replace("{page}", "")
        .replace("{pages}", "")
    )


def theme_section(theme: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = theme.get(key)
    return value if isinstance(value, Mapping) else {}


_environment = Environment(
    autoescape=False, trim_blocks=True, lstrip_blocks=True
)


def render_template(source: str, **context: Any) -> str:
    return _environment.from_string(source).render(**context)


def render_pdf(html: str, stylesheets: Sequence[str] = ()) -> bytes:
    """Render an HTML string to PDF bytes with WeasyPrint."""

    weasyprint = import_backend("weasyprint", "HTML", "CSS")
    css = [weasyprint.CSS(string=sheet) for sheet in stylesheets]
    return weasyprint.HTML(string=html).write_pdf(stylesheets=css)
