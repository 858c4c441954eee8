"""
Pydantic models for the pitchbook snapshot consumed by the generation pipeline.

A ``PitchbookSnapshot`` is the in-memory, read-only view of a pitchbook: its
slides (each with the resolved ``Layout``), the scoped prompts attached at
every level, and the previously generated content tree.  The storage layer
builds it from the ORM rows in ``app.models.pitchbook``.
"""

from __future__ import annotations

import datetime
from enum import Enum

from pydantic import BaseModel, Field

from app.schemas.generation import GenerationResult


class PromptScope(str, Enum):
    pitchbook = "pitchbook"
    section = "section"
    slide = "slide"
    placeholder = "placeholder"


class ScopedPrompt(BaseModel):
    scope: PromptScope
    text: str
    applies_to: str


class Placeholder(BaseModel):
    id: str
    name: str = ""
    type: str = "body"  # title, subtitle, body, bullet, heading, picture, chart, table ...
    x: float = 0
    y: float = 0
    width: float = 0
    height: float = 0


class Layout(BaseModel):
    name: str
    type: str = ""
    placeholders: list[Placeholder] = []

    model_config = {"from_attributes": True}


class SlideSnapshot(BaseModel):
    slide_number: int = Field(ge=1)
    layout_name: str
    slide_type: str = "body"  # title, contents, legal, section-divider, body ...
    section_title: str | None = None
    slide_prompt: str | None = None
    layout: Layout | None = None
    placeholder_prompts: dict[str, str] = {}

    @property
    def slide_key(self) -> str:
        return slide_key(self.slide_number)


class PitchbookSnapshot(BaseModel):
    id: str
    title: str
    type: str = "standard"  # standard, investor, executive, sales; free-form in storage
    slides: list[SlideSnapshot] = []
    pitchbook_prompt: str | None = None
    section_prompts: dict[str, str] = {}
    scoped_prompts: dict[str, ScopedPrompt] = {}
    generated_content: dict[str, dict[str, GenerationResult]] = {}
    last_generated: datetime.datetime | None = None

    @property
    def section_count(self) -> int:
        titles = {s.section_title for s in self.slides if s.section_title}
        return len(titles) or len(self.section_prompts)

    def get_slide(self, slide_number: int) -> SlideSnapshot | None:
        for slide in self.slides:
            if slide.slide_number == slide_number:
                return slide
        return None


def slide_key(slide_number: int) -> str:
    """Return the ``slide_<n>`` key used throughout the content tree."""
    return f"slide_{slide_number}"


def slide_number_from_key(key: str) -> int | None:
    prefix, _, number = key.partition("_")
    if prefix != "slide" or not number.isdigit():
        return None
    return int(number)
