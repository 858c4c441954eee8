"""
Pydantic models for prompt enhancement and content generation.

Closed vocabularies (context tags, slide types, placeholder kinds and
requirement flags) are ``str`` enums so they serialise as plain strings in
the stored content tree and in API payloads.
"""

from __future__ import annotations

import datetime
from enum import Enum

import pydantic
from pydantic import BaseModel, Field


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class ContextTag(str, Enum):
    merger_acquisition = "merger-acquisition"
    investor_pitch = "investor-pitch"
    quarterly_results = "quarterly-results"
    product_launch = "product-launch"
    strategic_plan = "strategic-plan"


class SlideType(str, Enum):
    title = "title"
    contents = "contents"
    legal = "legal"
    section_divider = "section-divider"
    body = "body"

    @classmethod
    def parse(cls, value: str | None) -> "SlideType | None":
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return None


class PlaceholderKind(str, Enum):
    text = "text"
    bullet = "bullet"
    heading = "heading"

    @classmethod
    def from_placeholder_type(cls, value: str | None) -> "PlaceholderKind | None":
        """Collapse a free-form placeholder type onto a template kind, if any."""
        normalized = (value or "").strip().lower()
        if normalized in ("bullet", "bullets", "list"):
            return cls.bullet
        if normalized in ("heading", "title", "subtitle", "ctrtitle", "subheading"):
            return cls.heading
        if normalized in ("text", "paragraph"):
            return cls.text
        return None


class RequirementFlag(str, Enum):
    bullet_points = "bullet_points"
    examples = "examples"
    data_driven = "data_driven"
    comparative = "comparative"


class StyleHint(str, Enum):
    formal = "formal"
    informal = "informal"


# ---------------------------------------------------------------------------
# Enhancement
# ---------------------------------------------------------------------------

class PromptAnalysis(BaseModel):
    word_count: int
    word_count_requested: bool = False
    topic: str | None = None
    action: str | None = None
    requirements: list[RequirementFlag] = []
    style_hint: StyleHint | None = None


class PromptMetadata(BaseModel):
    slide_key: str = "slide_1"
    slide_number: int = 1
    placeholder_id: str | None = None
    slide_type: str = "body"
    placeholder_type: str = "body"
    section_title: str = ""
    slide_title: str = ""
    section_count: int = 3
    pitchbook_title: str = ""
    pitchbook_type: str = "standard"
    context: ContextTag | None = None


class EnhancedPrompt(BaseModel):
    original: str
    enhanced: str
    analysis: PromptAnalysis
    context: ContextTag
    metadata: PromptMetadata


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

class GenerationResult(BaseModel):
    success: bool
    original: str
    enhanced: str | None = None
    content: str | None = None
    original_content: str | None = None
    error: str | None = None
    timestamp: datetime.datetime = Field(default_factory=utc_now)


class ProgressEvent(BaseModel):
    current: int
    total: int
    percentage: int


class ExecutiveSummary(BaseModel):
    success: bool
    summary: str | None = None
    content_count: int = 0
    error: str | None = None
    timestamp: datetime.datetime = Field(default_factory=utc_now)


class GenerationRun(BaseModel):
    """Outcome of ``GenerationOrchestrator.generate_batch``."""

    success: bool
    results: dict[str, dict[str, GenerationResult]] = {}
    context: ContextTag
    session_id: str | None = None
    reason: str | None = None
    total: int = 0
    completed: int = 0
    executive_summary: ExecutiveSummary | None = None
    timestamp: datetime.datetime = Field(default_factory=utc_now)


class SlideGenerationResult(BaseModel):
    slide_key: str
    slide_number: int
    results: dict[str, GenerationResult] = {}
    timestamp: datetime.datetime = Field(default_factory=utc_now)


# ---------------------------------------------------------------------------
# Options
# ---------------------------------------------------------------------------

class GenerationOptions(BaseModel):
    regenerate: bool = False
    selected_slides: set[str] | None = None
    batch_size: int = Field(default=3, ge=1)


class RegenerateOverrides(BaseModel):
    temperature: float | None = Field(default=None, ge=0, le=2)
    style: str | None = None
    tone: str | None = None
    word_count: int | None = Field(default=None, ge=1)


class ReviewCriteria(BaseModel):
    check_grammar: bool = True
    check_clarity: bool = True
    check_tone: bool = True
    target_audience: str | None = None


# ---------------------------------------------------------------------------
# API payloads
# ---------------------------------------------------------------------------

class GeneratePitchbookRequest(pydantic.BaseModel):
    regenerate: bool = False
    selected_slides: list[str] | None = None
    batch_size: int | None = Field(default=None, ge=1, le=10)
    auto_review: bool = False
    executive_summary: bool = False
    review: ReviewCriteria = ReviewCriteria()


class GeneratePitchbookResponse(GenerationRun):
    persisted: bool = False
    error: str | None = None


class RegenerateRequest(pydantic.BaseModel):
    prior: GenerationResult
    overrides: RegenerateOverrides = RegenerateOverrides()


class VariationsRequest(pydantic.BaseModel):
    prompt: str
    metadata: PromptMetadata = PromptMetadata()
    count: int = Field(default=3, ge=1, le=10)


class CancelResponse(pydantic.BaseModel):
    cancelled: bool


class SlideGenerationResponse(SlideGenerationResult):
    persisted: bool = False
    error: str | None = None
