"""Marp slide decks to plain Markdown with the Marp directives removed."""

from __future__ import annotations

import re
from typing import Optional

from markwell.core.types import CanProcessInput, IngestInput, IngestOutput

MARP_DIRECTIVES = frozenset(
    {
        "marp",
        "theme",
        "paginate",
        "backgroundColor",
        "backgroundImage",
        "header",
        "footer",
        "class",
        "size",
        "style",
        "math",
        "headingDivider",
    }
)

_FRONTMATTER = re.compile(
    r"^---\r?\n(.*?)\r?\n---(?:\r?\n|$)(.*)\Z", re.DOTALL
)


def split_frontmatter(content: str) -> Optional[tuple[str, str]]:
    match = _FRONTMATTER.match(content)
    if match is None:
        return None
    return match.group(1), match.group(2)


def has_marp_directive(frontmatter: str) -> bool:
    return any(
        line.strip() in ("marp: true", "marp: yes")
        for line in frontmatter.splitlines()
    )


def strip_marp_directives(frontmatter: str) -> str:
    kept = []
    for line in frontmatter.splitlines():
        key = line.split(":", 1)[0].strip()
        if key in MARP_DIRECTIVES or not line.strip():
            continue
        kept.append(line)
    return "\n".join(kept)


class MarpIngest:
    name = "marp"
    extensions = (".md", ".markdown")

    async def can_process(self, input: CanProcessInput) -> bool:
        parts = split_frontmatter(input.head)
        return parts is not None and has_marp_directive(parts[0])

    async def ingest(self, input: IngestInput) -> IngestOutput:
        content = input.buffer.decode("utf-8-sig", errors="replace")
        parts = split_frontmatter(content)
        if parts is None:
            return IngestOutput(markdown=content)

        frontmatter, body = parts
        remaining = strip_marp_directives(frontmatter)
        markdown = f"---\n{remaining}\n---\n\n{body}" if remaining else body
        return IngestOutput(
            markdown=markdown.strip(), metadata={"was_marp": True}
        )
