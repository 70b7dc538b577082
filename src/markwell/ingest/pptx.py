"""PowerPoint decks to Markdown, one section per slide."""

from __future__ import annotations

import io
from dataclasses import dataclass

from pptx import Presentation

from markwell.core.types import CanProcessInput, IngestInput, IngestOutput

from ._ooxml import is_pptx

NOTES_PREFIX = "> **Speaker Notes:**"


@dataclass(frozen=True)
class SlideContent:
    number: int
    title: str
    body: str
    notes: str

    def to_markdown(self) -> str:
        section = f"## {self.title or f'Slide {self.number}'}\n"
        if self.body:
            section += f"\n{self.body}\n"
        if self.notes:
            section += f"\n{NOTES_PREFIX} {self.notes}\n"
        return section


def _frame_text(frame) -> str:
    lines = [paragraph.text for paragraph in frame.paragraphs]
    return "\n".join(line for line in lines if line.strip()).strip()


def _slide_content(number: int, slide) -> SlideContent:
    title_shape = slide.shapes.title
    title = ""
    if title_shape is not None and title_shape.has_text_frame:
        title = _frame_text(title_shape.text_frame)

    body: list[str] = []
    for shape in slide.shapes:
        if not shape.has_text_frame:
            continue
        if title_shape is not None and shape.shape_id == title_shape.shape_id:
            continue
        text = _frame_text(shape.text_frame)
        if text and text != title:
            body.append(text)

    notes = ""
    if slide.has_notes_slide:
        frame = slide.notes_slide.notes_text_frame
        if frame is not None:
            notes = _frame_text(frame)
            # Slide-number placeholders show up as bare digits.
            if notes.isdigit():
                notes = ""

    return SlideContent(
        number=number,
        title=title,
        body="\n\n".join(body),
        notes=notes,
    )


class PptxIngest:
    name = "pptx"
    extensions = (".pptx", ".ppt")

    async def can_process(self, input: CanProcessInput) -> bool:
        return is_pptx(input.buffer)

    async def ingest(self, input: IngestInput) -> IngestOutput:
        deck = Presentation(io.BytesIO(input.buffer))
        slides = [
            _slide_content(number, slide)
            for number, slide in enumerate(deck.slides, start=1)
        ]
        markdown = "\n---\n\n".join(slide.to_markdown() for slide in slides)
        return IngestOutput(
            markdown=markdown,
            metadata={"slide_count": len(slides)},
        )
