"""
Prompt enhancement.

Turns a short user prompt into a fully specified LLM instruction:

1. ``analyze_prompt`` extracts word count, topic, action verb, requirement
   flags and a style hint.
2. ``select_template`` picks a template by slide type, then placeholder kind,
   then falls back to the body template.
3. ``enhance_prompt`` fills the template from the analysis, the context
   profile and the slide metadata, then appends the inherited context,
   formatting instructions, the quality checklist and requirement clauses.

Everything here is a pure function of its arguments.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from app.core.config import settings
from app.core.context_inferrer import context_profile, infer_context
from app.core.prompt_resolver import PromptLeaf
from app.core.prompt_templates import (
    DEFAULT_SECTION_COUNT,
    DEFAULT_TEMPLATE,
    DEFAULT_WORD_COUNTS,
    FALLBACK_WORD_COUNT,
    FORMAT_INSTRUCTIONS,
    JURISDICTION,
    PLACEHOLDER_TEMPLATES,
    QUALITY_CHECKLIST,
    REQUIREMENT_INSTRUCTIONS,
    SLIDE_TEMPLATES,
    SYSTEM_PROMPT_TEMPLATE,
    PromptTemplate,
)
from app.schemas.generation import (
    ContextTag,
    EnhancedPrompt,
    PlaceholderKind,
    PromptAnalysis,
    PromptMetadata,
    RequirementFlag,
    SlideType,
    StyleHint,
)
from app.schemas.pitchbook import PitchbookSnapshot, ScopedPrompt

WORD_COUNT_RE = re.compile(r"(\d+)\s*words?\b", re.IGNORECASE)

# A word-count clause including the preposition and qualifier around it,
# e.g. "in about 50 words".
_WORD_COUNT_PHRASE_RE = re.compile(
    r"(?:\b(?:in|of|with|using|within)\s+)?"
    r"(?:\b(?:about|around|approximately|roughly|under|max|maximum)\s+)?"
    r"\d+\s*words?\b",
    re.IGNORECASE,
)

ACTION_VERBS = ("create", "generate", "write", "develop", "explain", "describe", "analyze", "compare")

_ACTION_RE = re.compile(rf"\b({'|'.join(ACTION_VERBS)})\b", re.IGNORECASE)
_TOPIC_RE = re.compile(r"\b(?:on|about|regarding|for)\s+(.+?)(?:\.(?:\s|$)|$)", re.IGNORECASE | re.DOTALL)
_ACTION_TOPIC_RE = re.compile(
    rf"\b(?:{'|'.join(ACTION_VERBS)})\s+(?:\d+\s*words?\s+)?(?:on\s+)?(.+)",
    re.IGNORECASE | re.DOTALL,
)

_REQUIREMENT_PATTERNS: dict[RequirementFlag, re.Pattern] = {
    RequirementFlag.bullet_points: re.compile(r"\b(?:bullets?|points?|list)\b", re.IGNORECASE),
    RequirementFlag.examples: re.compile(r"\b(?:examples?|case stud(?:y|ies))\b", re.IGNORECASE),
    RequirementFlag.data_driven: re.compile(r"\b(?:data|statistics?|statistical|numbers?)\b", re.IGNORECASE),
    RequirementFlag.comparative: re.compile(
        r"\b(?:comparisons?|compare|comparing|versus|vs)\b", re.IGNORECASE
    ),
}
_FORMAL_RE = re.compile(r"\b(?:formal|professional|executive)\b", re.IGNORECASE)
_INFORMAL_RE = re.compile(r"\b(?:casual|friendly|informal)\b", re.IGNORECASE)


def strip_word_counts(text: str | None) -> str:
    """Remove "N words" phrases so only the template states a length."""
    cleaned = _WORD_COUNT_PHRASE_RE.sub("", text or "")
    cleaned = re.sub(r"\s{2,}", " ", cleaned)
    cleaned = re.sub(r"\s+([,.;:])", r"\1", cleaned)
    return cleaned.strip(" \t\n.,;:")


def default_word_count(slide_type: str | None) -> int:
    parsed = SlideType.parse(slide_type)
    return DEFAULT_WORD_COUNTS.get(parsed, FALLBACK_WORD_COUNT)


def _extract_topic(prompt: str) -> str | None:
    match = _TOPIC_RE.search(prompt) or _ACTION_TOPIC_RE.search(prompt)
    if not match:
        return None
    return strip_word_counts(match.group(1)) or None


def analyze_prompt(
    prompt: str,
    slide_type: str | None = None,
    max_word_count: int | None = None,
) -> PromptAnalysis:
    """Extract structured facts from a user prompt."""
    max_word_count = max_word_count or settings.MAX_PROMPT_WORD_COUNT

    requested = WORD_COUNT_RE.search(prompt)
    if requested:
        word_count = min(max(int(requested.group(1)), 1), max_word_count)
    else:
        word_count = default_word_count(slide_type)

    action = _ACTION_RE.search(prompt)

    style_hint = None
    if _FORMAL_RE.search(prompt):
        style_hint = StyleHint.formal
    elif _INFORMAL_RE.search(prompt):
        style_hint = StyleHint.informal

    return PromptAnalysis(
        word_count=word_count,
        word_count_requested=requested is not None,
        topic=_extract_topic(prompt),
        action=action.group(1).lower() if action else None,
        requirements=[flag for flag, pattern in _REQUIREMENT_PATTERNS.items() if pattern.search(prompt)],
        style_hint=style_hint,
    )


def select_template(slide_type: str | None, placeholder_type: str | None) -> PromptTemplate:
    """Pick a template by slide type, then by placeholder kind, else body."""
    parsed = SlideType.parse(slide_type)
    if parsed is not None:
        return SLIDE_TEMPLATES[parsed]

    kind = PlaceholderKind.from_placeholder_type(placeholder_type)
    return PLACEHOLDER_TEMPLATES.get(kind, DEFAULT_TEMPLATE)


def _context_lines(ancestors: Sequence[ScopedPrompt]) -> list[str]:
    lines = []
    for prompt in ancestors:
        text = strip_word_counts(prompt.text)
        if text:
            lines.append(f"- {strip_word_counts(prompt.applies_to)}: {text}")
    if not lines:
        return []
    return ["\nAdditional context:", *lines]


def enhance_prompt(
    original: str,
    metadata: PromptMetadata,
    ancestors: Sequence[ScopedPrompt] = (),
) -> EnhancedPrompt:
    """Expand *original* into a complete LLM instruction."""
    analysis = analyze_prompt(original, metadata.slide_type)
    context = metadata.context or infer_context(
        metadata.pitchbook_title, original, metadata.pitchbook_type
    )
    profile = context_profile(context)
    kind = PlaceholderKind.from_placeholder_type(metadata.placeholder_type)
    template = select_template(metadata.slide_type, metadata.placeholder_type)

    topic = (
        analysis.topic
        or strip_word_counts(original)
        or strip_word_counts(metadata.slide_title)
        or "the slide topic"
    )
    template_vars = {
        "context_label": profile.label,
        "topic": topic,
        "word_count": analysis.word_count,
        "audience": profile.audience,
        "tone": profile.tone,
        "style": profile.style,
        "focus": profile.focus,
        "section_title": strip_word_counts(metadata.section_title) or topic,
        "slide_title": strip_word_counts(metadata.slide_title),
        "section_count": metadata.section_count or DEFAULT_SECTION_COUNT,
        "bullet_points": 5 if RequirementFlag.bullet_points in analysis.requirements else 3,
        "jurisdiction": JURISDICTION,
        "specific_requirements": (
            ", ".join(flag.value for flag in analysis.requirements) or "clear structure and flow"
        ),
    }

    instructions = [template.enhanced.format_map(template_vars)]
    instructions.extend(_context_lines(ancestors))

    if kind in FORMAT_INSTRUCTIONS:
        instructions.append("\n" + FORMAT_INSTRUCTIONS[kind])

    instructions.append("\n" + QUALITY_CHECKLIST)
    instructions.extend(
        line for flag, line in REQUIREMENT_INSTRUCTIONS.items() if flag in analysis.requirements
    )

    return EnhancedPrompt(
        original=original,
        enhanced="\n".join(instructions),
        analysis=analysis,
        context=context,
        metadata=metadata.model_copy(update={"context": context}),
    )


def leaf_metadata(
    leaf: PromptLeaf,
    pitchbook: PitchbookSnapshot,
    context: ContextTag | None = None,
) -> PromptMetadata:
    slide = leaf.slide
    return PromptMetadata(
        slide_key=slide.slide_key,
        slide_number=slide.slide_number,
        placeholder_id=leaf.placeholder_id,
        slide_type=slide.slide_type,
        placeholder_type=leaf.placeholder_type,
        section_title=slide.section_title or "",
        slide_title=slide.layout_name,
        section_count=pitchbook.section_count or DEFAULT_SECTION_COUNT,
        pitchbook_title=pitchbook.title,
        pitchbook_type=pitchbook.type,
        context=context,
    )


def enhance_leaf(
    leaf: PromptLeaf,
    pitchbook: PitchbookSnapshot,
    context: ContextTag | None = None,
) -> EnhancedPrompt:
    return enhance_prompt(
        leaf.original_prompt,
        leaf_metadata(leaf, pitchbook, context),
        leaf.ancestor_prompts,
    )


def build_system_prompt(context: ContextTag) -> str:
    """Writer persona used to seed a generation session."""
    profile = context_profile(context)
    return SYSTEM_PROMPT_TEMPLATE.format(
        context_label=profile.label,
        audience=profile.audience,
        style=profile.style,
        tone=profile.tone,
        focus=profile.focus,
    )
