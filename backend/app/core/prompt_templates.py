"""
Declarative prompt data for the generation pipeline.

- ``CONTEXT_PROFILES``: audience / tone / style / focus per context tag
- ``CONTEXT_KEYWORDS``: ordered keyword rules used by the context inferrer
- ``SLIDE_TEMPLATES`` / ``PLACEHOLDER_TEMPLATES``: enhancement templates
- Fixed instruction blocks for formatting, quality, review and summaries

Every enhancement template contains exactly one ``{word_count} words`` clause.
"""

from __future__ import annotations

from pydantic import BaseModel

from app.schemas.generation import (
    ContextTag,
    PlaceholderKind,
    RequirementFlag,
    SlideType,
)


class ContextProfile(BaseModel):
    label: str
    audience: str
    tone: str
    style: str
    focus: str

    model_config = {"frozen": True}


class PromptTemplate(BaseModel):
    base: str
    enhanced: str

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Context vocabulary
# ---------------------------------------------------------------------------

CONTEXT_PROFILES: dict[ContextTag, ContextProfile] = {
    ContextTag.merger_acquisition: ContextProfile(
        label="merger and acquisition",
        audience="board members, executives, and key stakeholders",
        tone="professional, strategic, and data-driven",
        style="formal business",
        focus="synergies, value creation, and strategic rationale",
    ),
    ContextTag.investor_pitch: ContextProfile(
        label="investor pitch",
        audience="potential investors and venture capitalists",
        tone="confident, compelling, and growth-focused",
        style="persuasive and engaging",
        focus="market opportunity, competitive advantage, and ROI",
    ),
    ContextTag.quarterly_results: ContextProfile(
        label="quarterly results",
        audience="investors, analysts, and shareholders",
        tone="transparent, analytical, and forward-looking",
        style="formal financial reporting",
        focus="performance metrics, trends, and guidance",
    ),
    ContextTag.product_launch: ContextProfile(
        label="product launch",
        audience="customers, partners, and media",
        tone="exciting, innovative, and customer-centric",
        style="engaging and accessible",
        focus="features, benefits, and market differentiation",
    ),
    ContextTag.strategic_plan: ContextProfile(
        label="strategic plan",
        audience="internal leadership and management teams",
        tone="visionary, actionable, and motivating",
        style="strategic and operational",
        focus="goals, initiatives, and execution roadmap",
    ),
}

# First match wins, so the order matters.
CONTEXT_KEYWORDS: tuple[tuple[ContextTag, tuple[str, ...]], ...] = (
    (ContextTag.merger_acquisition, ("merger", "mergers", "acquisition", "acquisitions", "m&a")),
    (ContextTag.investor_pitch, ("investor", "investors", "funding", "fundraising", "pitch")),
    (ContextTag.quarterly_results, ("quarterly", "earnings", "results")),
    (ContextTag.product_launch, ("product", "launch", "introduction")),
    (ContextTag.strategic_plan, ("strategy", "strategic", "plan", "planning")),
)

# Fallback when no keyword matches, keyed by pitchbook type.
TYPE_FALLBACK_CONTEXT: dict[str, ContextTag] = {
    "investor": ContextTag.investor_pitch,
}
DEFAULT_CONTEXT = ContextTag.strategic_plan


# ---------------------------------------------------------------------------
# Enhancement templates
# ---------------------------------------------------------------------------

SLIDE_TEMPLATES: dict[SlideType, PromptTemplate] = {
    SlideType.title: PromptTemplate(
        base="Create a professional and engaging title for a business presentation.",
        enhanced=(
            "Generate a compelling, professional title for a {context_label} presentation "
            "about {topic}. The title should be concise (no more than {word_count} words), "
            "impactful, and clearly communicate the main theme. Consider the audience: "
            "{audience}. Style: {style}. Key focus: {focus}."
        ),
    ),
    SlideType.contents: PromptTemplate(
        base="Generate a table of contents for this presentation.",
        enhanced=(
            "Create a comprehensive table of contents for a {context_label} presentation "
            "with {section_count} main sections. Include clear, descriptive section titles "
            "that flow logically. Each section should have 2-3 subsections. Keep the outline "
            "within {word_count} words. Format as a numbered list with proper hierarchy. "
            "Target audience: {audience}."
        ),
    ),
    SlideType.legal: PromptTemplate(
        base="Create legal disclaimer text.",
        enhanced=(
            "Generate about {word_count} words of professional legal disclaimer text "
            "appropriate for a {context_label} business presentation. Include standard "
            "confidentiality notices, forward-looking statements disclaimer, and intellectual "
            "property protection. Keep it concise but comprehensive. "
            "Jurisdiction: {jurisdiction}."
        ),
    ),
    SlideType.section_divider: PromptTemplate(
        base="Create a section introduction.",
        enhanced=(
            "Write a compelling introduction of about {word_count} words for the section "
            "titled '{section_title}' in a {context_label} presentation. Include a brief "
            "overview (2-3 sentences) that transitions from the previous content and sets up "
            "what's coming. Tone: {tone}."
        ),
    ),
    SlideType.body: PromptTemplate(
        base="Generate body content for this slide.",
        enhanced=(
            "Create {word_count} words of professional content about {topic} for a "
            "{context_label} presentation slide. Structure the content with clear key points, "
            "supporting details, and relevant examples. Include {bullet_points} main points. "
            "Ensure the content is {tone} and suitable for {audience}. Focus on: {focus}."
        ),
    ),
}

PLACEHOLDER_TEMPLATES: dict[PlaceholderKind, PromptTemplate] = {
    PlaceholderKind.text: PromptTemplate(
        base="Generate text content.",
        enhanced=(
            "Write {word_count} words of {style} text about {topic}. The content should be "
            "{tone}, well-structured, and include {specific_requirements}. "
            "Target audience: {audience}."
        ),
    ),
    PlaceholderKind.bullet: PromptTemplate(
        base="Create bullet points.",
        enhanced=(
            "Generate {bullet_points} clear, concise bullet points about {topic}, about "
            "{word_count} words in total. Each point should be 1-2 lines, action-oriented, "
            "and {style}. Focus on {focus}. Ensure parallel structure."
        ),
    ),
    PlaceholderKind.heading: PromptTemplate(
        base="Create a heading.",
        enhanced=(
            "Write a {style} heading for {topic} that is {tone} and captures attention. "
            "Maximum {word_count} words. Should complement the slide title: '{slide_title}'."
        ),
    ),
}

DEFAULT_TEMPLATE = SLIDE_TEMPLATES[SlideType.body]

# Word count used when the prompt does not ask for one.
DEFAULT_WORD_COUNTS: dict[SlideType, int] = {
    SlideType.title: 10,
    SlideType.body: 150,
}
FALLBACK_WORD_COUNT = 100

JURISDICTION = "United States"
DEFAULT_SECTION_COUNT = 3


# ---------------------------------------------------------------------------
# Fixed instruction blocks
# ---------------------------------------------------------------------------

FORMAT_INSTRUCTIONS: dict[PlaceholderKind, str] = {
    PlaceholderKind.bullet: "Format as bullet points with • symbol.",
    PlaceholderKind.heading: "Format as a single line heading, no punctuation at the end.",
}

QUALITY_CHECKLIST = (
    "Ensure the content is:\n"
    "- Factually accurate and up-to-date\n"
    "- Free of jargon unless necessary\n"
    "- Engaging and easy to understand"
)

# Rendered in this order, after the checklist.
REQUIREMENT_INSTRUCTIONS: dict[RequirementFlag, str] = {
    RequirementFlag.data_driven: "- Include relevant statistics or data points",
    RequirementFlag.examples: "- Include concrete examples or case studies",
    RequirementFlag.comparative: "- Provide clear comparisons with pros/cons",
}

SYSTEM_PROMPT_TEMPLATE = (
    "You are a professional business content writer specializing in {context_label} "
    "presentations.\n"
    "Your audience consists of {audience}.\n"
    "Your writing style should be {style} with a {tone} tone.\n"
    "Focus on {focus}.\n"
    "Provide clear, concise, and impactful content that drives the presentation's "
    "objectives forward."
)

SESSION_PRIMER_TEMPLATE = (
    "System context: {system_prompt}\n\n"
    "Please acknowledge and I'll start providing content requests."
)

VARIATION_INSTRUCTION = (
    "Variation {index}: Provide a different approach or perspective while maintaining "
    "the same requirements."
)

REVIEW_PROMPT_HEADER = "Please review and improve the following content:"
REVIEW_FIXED_CRITERIA = (
    "- Maintain the original meaning and key points",
    "- Keep approximately the same length",
)
REVIEW_PROMPT_FOOTER = "Provide the improved version:"
DEFAULT_REVIEW_AUDIENCE = "business professionals"

EXECUTIVE_SUMMARY_INSTRUCTIONS = (
    "Create a comprehensive executive summary (300-400 words) that captures the key "
    "themes, main points, and strategic recommendations of the presentation content "
    "below.\n\n"
    "The executive summary should:\n"
    "1. Start with a compelling overview statement\n"
    "2. Highlight 3-5 key findings or recommendations\n"
    "3. Include critical data points or metrics\n"
    "4. End with a clear call to action or next steps\n"
    "5. Be suitable for senior executives who need a quick understanding of the "
    "presentation"
)
