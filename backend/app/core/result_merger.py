"""
Result merging.

Folds a run's per-placeholder results into the pitchbook's content tree,
optionally reviews successful content and writes an executive summary, then
persists the merged tree through the storage collaborator in a single write.
"""

from __future__ import annotations

import asyncio
import datetime
import logging
from dataclasses import dataclass
from typing import Any, Protocol

from app.core.ai_generators import LLMClient
from app.core.concurrency import BatchPool, Sleep, call_llm
from app.core.config import settings
from app.core.context_inferrer import context_profile
from app.core.prompt_resolver import order_placeholder_ids
from app.core.prompt_templates import (
    DEFAULT_REVIEW_AUDIENCE,
    EXECUTIVE_SUMMARY_INSTRUCTIONS,
    REVIEW_FIXED_CRITERIA,
    REVIEW_PROMPT_FOOTER,
    REVIEW_PROMPT_HEADER,
)
from app.schemas.generation import (
    ContextTag,
    ExecutiveSummary,
    GenerationResult,
    GenerationRun,
    ReviewCriteria,
    utc_now,
)
from app.schemas.pitchbook import Layout, PitchbookSnapshot, slide_number_from_key

logger = logging.getLogger(__name__)

ContentTree = dict[str, dict[str, GenerationResult]]


class PitchbookStore(Protocol):
    async def get_pitchbook(self, pitchbook_id: str) -> PitchbookSnapshot: ...

    async def update_pitchbook(self, pitchbook_id: str, partial: dict[str, Any]) -> PitchbookSnapshot: ...

    async def list_layouts(self) -> list[Layout]: ...


@dataclass
class MergeReport:
    run: GenerationRun
    pitchbook: PitchbookSnapshot
    persisted: bool
    error: str | None = None


# ---------------------------------------------------------------------------
# Pure helpers
# ---------------------------------------------------------------------------

def merge_results(
    pitchbook: PitchbookSnapshot,
    results: ContentTree,
    generated_at: datetime.datetime,
) -> PitchbookSnapshot:
    """Return a copy of *pitchbook* with every successful result merged in.

    Failed results leave the prior value untouched.
    """
    merged: ContentTree = {key: dict(slide) for key, slide in pitchbook.generated_content.items()}
    for key, slide_results in results.items():
        for placeholder_id, result in slide_results.items():
            if result.success:
                merged.setdefault(key, {})[placeholder_id] = result
    return pitchbook.model_copy(update={"generated_content": merged, "last_generated": generated_at})


def serialize_content(tree: ContentTree) -> dict:
    return {
        key: {pid: result.model_dump(mode="json") for pid, result in slide.items()}
        for key, slide in tree.items()
    }


def ordered_contents(pitchbook: PitchbookSnapshot) -> list[str]:
    """Successful content strings in slide order, then placeholder order."""
    def slide_order(key: str) -> tuple[int, str]:
        number = slide_number_from_key(key)
        return (number if number is not None else 10**9, key)

    contents = []
    for key in sorted(pitchbook.generated_content, key=slide_order):
        slide_results = pitchbook.generated_content[key]
        number = slide_number_from_key(key)
        slide = pitchbook.get_slide(number) if number is not None else None
        for placeholder_id in order_placeholder_ids(slide, slide_results):
            result = slide_results[placeholder_id]
            if result.success and result.content:
                contents.append(result.content)
    return contents


def build_review_prompt(content: str, criteria: ReviewCriteria, audience: str) -> str:
    lines = [REVIEW_PROMPT_HEADER, "", f'"{content}"', "", "Review criteria:"]
    if criteria.check_grammar:
        lines.append("- Fix any grammar or spelling errors")
    if criteria.check_clarity:
        lines.append("- Improve clarity and readability")
    if criteria.check_tone:
        lines.append(f"- Ensure appropriate tone for {audience}")
    lines.extend(REVIEW_FIXED_CRITERIA)
    lines.extend(["", REVIEW_PROMPT_FOOTER])
    return "\n".join(lines)


def build_summary_prompt(contents: list[str]) -> str:
    joined = "\n\n".join(contents)
    return (
        f"{EXECUTIVE_SUMMARY_INSTRUCTIONS}\n\n"
        f"Presentation content:\n\n"
        f"{joined}\n\n"
        f"Executive Summary:"
    )


# ---------------------------------------------------------------------------
# Merger
# ---------------------------------------------------------------------------

class ResultMerger:
    def __init__(
        self,
        llm: LLMClient,
        *,
        call_timeout: float | None = None,
        batch_size: int | None = None,
        batch_delay: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.llm = llm
        self.call_timeout = settings.LLM_CALL_TIMEOUT_SECONDS if call_timeout is None else call_timeout
        self.batch_size = batch_size or settings.GENERATION_BATCH_SIZE
        self.batch_delay = settings.GENERATION_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self._sleep = sleep

    async def review_results(
        self,
        results: ContentTree,
        criteria: ReviewCriteria | None = None,
        context: ContextTag | None = None,
    ) -> ContentTree:
        """Rewrite every successful result through a review prompt.

        Reviewed results keep the unreviewed text in ``original_content``;
        a failed review leaves the result as it was.
        """
        criteria = criteria or ReviewCriteria()
        audience = criteria.target_audience or (
            context_profile(context).audience if context else DEFAULT_REVIEW_AUDIENCE
        )

        items = [
            (key, pid, result)
            for key, slide in results.items()
            for pid, result in slide.items()
            if result.success and result.content
        ]

        async def review(item: tuple[str, str, GenerationResult]) -> tuple[str, str, GenerationResult]:
            key, pid, result = item
            prompt = build_review_prompt(result.content, criteria, audience)
            try:
                improved = await call_llm(self.llm.generate_content, prompt, self.call_timeout)
            except Exception as exc:
                logger.warning("Review failed for %s/%s: %s", key, pid, exc)
                return item
            return key, pid, result.model_copy(update={"content": improved, "original_content": result.content})

        reviewed: ContentTree = {key: dict(slide) for key, slide in results.items()}
        pool = BatchPool(self.batch_size, self.batch_delay, self._sleep)
        async for batch in pool.run(items, review):
            for key, pid, result in batch:
                reviewed[key][pid] = result
        return reviewed

    async def executive_summary(self, pitchbook: PitchbookSnapshot) -> ExecutiveSummary:
        contents = ordered_contents(pitchbook)
        if not contents:
            return ExecutiveSummary(success=False, error="No generated content found to summarize")

        try:
            summary = await call_llm(self.llm.generate_content, build_summary_prompt(contents), self.call_timeout)
        except Exception as exc:
            logger.warning("Executive summary failed for pitchbook %s: %s", pitchbook.id, exc)
            return ExecutiveSummary(success=False, content_count=len(contents), error=str(exc) or exc.__class__.__name__)

        return ExecutiveSummary(success=True, summary=summary, content_count=len(contents))

    async def finalize(
        self,
        pitchbook: PitchbookSnapshot,
        run: GenerationRun,
        store: PitchbookStore,
        *,
        auto_review: bool = False,
        criteria: ReviewCriteria | None = None,
        executive_summary: bool = False,
        generated_at: datetime.datetime | None = None,
    ) -> MergeReport:
        """Review, merge, summarise and persist a run with one storage write."""
        results = run.results
        if auto_review:
            results = await self.review_results(results, criteria, run.context)

        merged = merge_results(pitchbook, results, generated_at or utc_now())
        summary = await self.executive_summary(merged) if executive_summary else run.executive_summary
        run = run.model_copy(update={"results": results, "executive_summary": summary})

        partial = {
            "generated_content": serialize_content(merged.generated_content),
            "last_generated": merged.last_generated,
        }
        try:
            await store.update_pitchbook(pitchbook.id, partial)
        except Exception as exc:
            logger.exception("Failed to persist generated content for pitchbook %s", pitchbook.id)
            return MergeReport(run=run, pitchbook=merged, persisted=False, error=str(exc) or exc.__class__.__name__)

        return MergeReport(run=run, pitchbook=merged, persisted=True)
