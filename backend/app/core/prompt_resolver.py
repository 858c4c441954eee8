"""
Prompt scope resolution.

Walks a ``PitchbookSnapshot`` and yields one ``PromptLeaf`` per
(slide, placeholder) carrying a placeholder-level prompt, together with the
inherited pitchbook → section → slide prompts.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Iterator

from pydantic import BaseModel

from app.schemas.pitchbook import (
    PitchbookSnapshot,
    Placeholder,
    PromptScope,
    ScopedPrompt,
    SlideSnapshot,
)

# Placeholder type assumed for prompts whose id is missing from the layout.
ORPHAN_PLACEHOLDER_TYPE = "body"


class PromptLeaf(BaseModel):
    slide: SlideSnapshot
    placeholder_id: str
    placeholder_type: str
    original_prompt: str
    ancestor_prompts: list[ScopedPrompt] = []

    @property
    def slide_key(self) -> str:
        return self.slide.slide_key


def _has_text(text: str | None) -> bool:
    return bool(text and text.strip())


def _natural_key(value: str) -> list:
    return [int(part) if part.isdigit() else part for part in re.split(r"(\d+)", value)]


def ordered_placeholders(slide: SlideSnapshot) -> list[Placeholder]:
    """Return the slide's placeholders top-to-bottom.

    Layout placeholders come first, sorted by ``y`` (stable).  Prompt keys
    that the layout does not declare follow in natural id order.
    """
    seen: set[str] = set()
    ordered: list[Placeholder] = []
    layout_placeholders = slide.layout.placeholders if slide.layout else []
    for placeholder in sorted(layout_placeholders, key=lambda p: p.y):
        if placeholder.id in seen:
            continue
        seen.add(placeholder.id)
        ordered.append(placeholder)

    orphans = sorted((pid for pid in slide.placeholder_prompts if pid not in seen), key=_natural_key)
    ordered.extend(
        Placeholder(id=pid, name=pid, type=ORPHAN_PLACEHOLDER_TYPE) for pid in orphans
    )
    return ordered


def order_placeholder_ids(slide: SlideSnapshot | None, ids: Iterable[str]) -> list[str]:
    """Sort arbitrary placeholder ids of *slide* using the resolver's ordering."""
    ids = list(ids)
    if slide is None:
        return sorted(ids, key=_natural_key)
    rank = {p.id: i for i, p in enumerate(ordered_placeholders(slide))}
    return sorted(ids, key=lambda pid: (rank.get(pid, len(rank)), _natural_key(pid)))


def ancestor_prompts(pitchbook: PitchbookSnapshot, slide: SlideSnapshot) -> list[ScopedPrompt]:
    """Return the inherited prompts for *slide*, most general first."""
    chain: list[ScopedPrompt] = []
    if _has_text(pitchbook.pitchbook_prompt):
        chain.append(
            ScopedPrompt(
                scope=PromptScope.pitchbook,
                text=pitchbook.pitchbook_prompt.strip(),
                applies_to=f"Entire pitchbook: {pitchbook.title}",
            )
        )

    section_prompt = pitchbook.section_prompts.get(slide.section_title) if slide.section_title else None
    if _has_text(section_prompt):
        chain.append(
            ScopedPrompt(
                scope=PromptScope.section,
                text=section_prompt.strip(),
                applies_to=f"Section: {slide.section_title}",
            )
        )

    if _has_text(slide.slide_prompt):
        chain.append(
            ScopedPrompt(
                scope=PromptScope.slide,
                text=slide.slide_prompt.strip(),
                applies_to=f"Slide {slide.slide_number} ({slide.layout_name})",
            )
        )
    return chain


def resolve_leaves(pitchbook: PitchbookSnapshot) -> Iterator[PromptLeaf]:
    """Lazily yield every prompted placeholder, by slide number then by ``y``."""
    for slide in sorted(pitchbook.slides, key=lambda s: s.slide_number):
        prompted = [
            p for p in ordered_placeholders(slide)
            if _has_text(slide.placeholder_prompts.get(p.id))
        ]
        if not prompted:
            continue

        ancestors = ancestor_prompts(pitchbook, slide)
        for placeholder in prompted:
            yield PromptLeaf(
                slide=slide,
                placeholder_id=placeholder.id,
                placeholder_type=placeholder.type,
                original_prompt=slide.placeholder_prompts[placeholder.id].strip(),
                ancestor_prompts=ancestors,
            )
