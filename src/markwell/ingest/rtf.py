"""Rich Text Format documents to Markdown paragraphs with emphasis."""

from __future__ import annotations

import re

from markwell.core.types import CanProcessInput, IngestInput, IngestOutput

# Groups whose contents are metadata rather than document text.
DESTINATIONS = frozenset(
    {
        "fonttbl",
        "colortbl",
        "stylesheet",
        "info",
        "listtable",
        "listoverridetable",
        "generator",
        "pict",
        "header",
        "footer",
        "headerl",
        "headerr",
        "footerl",
        "footerr",
        "footnote",
        "themedata",
        "colorschememapping",
        "datastore",
        "latentstyles",
        "rsidtbl",
        "xmlnstbl",
        "mmathPr",
    }
)

_TOKEN = re.compile(
    r"\\([a-zA-Z]+)(-?\d+)? ?"  # control word
    r"|\\'([0-9a-fA-F]{2})"  # hex byte
    r"|\\(.)"  # control symbol
    r"|([{}])"
    r"|(\r?\n)"
    r"|([^\\{}\r\n]+)",
    re.DOTALL,
)

_SPECIALS = {
    "tab": "\t",
    "emdash": "\u2014",
    "endash": "\u2013",
    "lquote": "\u2018",
    "rquote": "\u2019",
    "ldblquote": "\u201c",
    "rdblquote": "\u201d",
    "bullet": "\u2022",
}


# Markdown emphasis for (bold, italic).
_MARKERS = {
    (False, False): "",
    (True, False): "**",
    (False, True): "*",
    (True, True): "***",
}


def rtf_runs(
    content: str, *, encoding: str = "cp1252"
) -> list[tuple[str, str]]:
    """Split an RTF document into ``(marker, text)`` runs.

    ``marker`` is the Markdown emphasis for the run's ``\\b``/``\\i`` state.
    Paragraph marks become unstyled blank-line runs. ``\\uN`` escapes are
    decoded and their fallback characters skipped per the active ``\\uc``
    count.
    """

    stack: list[tuple[bool, int, bool, bool]] = []
    ignorable = False
    uc_skip = 1
    bold = italic = False
    pending_skip = 0
    runs: list[tuple[str, str]] = []

    def emit(text: str, styled: bool = True) -> None:
        marker = _MARKERS[(bold, italic)] if styled else ""
        if runs and runs[-1][0] == marker:
            runs[-1] = (marker, runs[-1][1] + text)
        else:
            runs.append((marker, text))

    for match in _TOKEN.finditer(content):
        word, arg, hex_byte, symbol, brace, newline, text = match.groups()

        if brace == "{":
            stack.append((ignorable, uc_skip, bold, italic))
            continue
        if brace == "}":
            if stack:
                ignorable, uc_skip, bold, italic = stack.pop()
            pending_skip = 0
            continue
        if newline:
            continue

        if pending_skip and (text is not None or hex_byte is not None):
            if hex_byte is not None:
                pending_skip -= 1
                continue
            consumed = min(pending_skip, len(text))
            text = text[consumed:]
            pending_skip -= consumed
            if not text:
                continue

        if symbol is not None:
            if symbol == "*":
                ignorable = True
            elif not ignorable and symbol in "\\{}":
                emit(symbol)
            elif not ignorable and symbol == "~":
                emit("\u00a0")
            elif not ignorable and symbol in "\n\r":
                emit("\n\n", styled=False)
            continue

        if word is not None:
            if word in DESTINATIONS:
                ignorable = True
            elif ignorable:
                continue
            elif word in ("par", "sect", "page"):
                emit("\n\n", styled=False)
            elif word == "b":
                bold = arg != "0"
            elif word == "i":
                italic = arg != "0"
            elif word == "plain":
                bold = italic = False
            elif word == "uc":
                uc_skip = int(arg or 1)
            elif word == "u":
                code = int(arg or 0)
                if code < 0:
                    code += 0x10000
                emit(chr(code))
                pending_skip = uc_skip
            elif word == "line":
                emit("\n", styled=False)
            elif word in _SPECIALS:
                emit(_SPECIALS[word])
            continue

        if ignorable:
            continue
        if hex_byte is not None:
            raw = bytes([int(hex_byte, 16)])
            emit(raw.decode(encoding, errors="replace"))
        elif text is not None:
            emit(text)

    return runs


def rtf_to_text(content: str, *, encoding: str = "cp1252") -> str:
    """Document text with all formatting dropped."""

    return "".join(text for _, text in rtf_runs(content, encoding=encoding))


def _emphasize(marker: str, text: str) -> str:
    core = text.strip()
    if not marker or not core:
        return text
    # Delimiters must hug the text or Markdown ignores them.
    lead = text[: len(text) - len(text.lstrip())]
    trail = text[len(text.rstrip()) :]
    return f"{lead}{marker}{core}{marker}{trail}"



def rtf_to_markdown(content: str) -> str:
    text = "".join(_emphasize(*run) for run in rtf_runs(content))
    paragraphs = []
    for block in re.split(r"\n\s*\n", text):
        lines = [line.strip() for line in block.split("\n")]
        paragraph = "\n".join(line for line in lines if line)
        if paragraph:
            paragraphs.append(paragraph)
    return "\n\n".join(paragraphs) + ("\n" if paragraphs else "")


class RtfIngest:
    name = "rtf"
    extensions = (".rtf",)

    async def can_process(self, input: CanProcessInput) -> bool:
        return input.head.lstrip().startswith("{\\rtf")

    async def ingest(self, input: IngestInput) -> IngestOutput:
        # RTF is 7-bit with escapes; latin-1 keeps any stray bytes intact.
        content = input.buffer.decode("latin-1")
        return IngestOutput(markdown=rtf_to_markdown(content))
