"""
Domain context classification for a pitchbook.

Pure keyword rules over ``title + prompt text``; see ``CONTEXT_KEYWORDS``.
"""

from __future__ import annotations

import re
from functools import lru_cache

from app.core.prompt_templates import (
    CONTEXT_KEYWORDS,
    CONTEXT_PROFILES,
    DEFAULT_CONTEXT,
    TYPE_FALLBACK_CONTEXT,
    ContextProfile,
)
from app.schemas.generation import ContextTag


@lru_cache(maxsize=None)
def _keyword_pattern(keyword: str) -> re.Pattern:
    # \b does not work around "&", so match on non-alphanumeric neighbours.
    return re.compile(rf"(?<![a-z0-9]){re.escape(keyword)}(?![a-z0-9])")


def infer_context(title: str | None, prompt_text: str | None, pitchbook_type: str | None) -> ContextTag:
    """Classify a pitchbook into one of the closed context tags."""
    haystack = f"{title or ''}\n{prompt_text or ''}".lower()
    for tag, keywords in CONTEXT_KEYWORDS:
        if any(_keyword_pattern(kw).search(haystack) for kw in keywords):
            return tag

    type_value = getattr(pitchbook_type, "value", pitchbook_type) or ""
    return TYPE_FALLBACK_CONTEXT.get(type_value.lower(), DEFAULT_CONTEXT)


def context_profile(tag: ContextTag | None) -> ContextProfile:
    return CONTEXT_PROFILES.get(tag, CONTEXT_PROFILES[DEFAULT_CONTEXT])
