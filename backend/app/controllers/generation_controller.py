import logging
import uuid
from dataclasses import dataclass, field

from fastapi import HTTPException
from sqlmodel.ext.asyncio.session import AsyncSession

from app.controllers.pitchbook_controller import SqlPitchbookStore
from app.core.ai_generators import LLMClient
from app.core.concurrency import CancellationToken
from app.core.config import settings
from app.core.orchestrator import (
    GenerationInitError,
    GenerationOrchestrator,
    SlideNotFoundError,
    run_context,
)
from app.core.result_merger import ResultMerger
from app.schemas.generation import (
    CancelResponse,
    GeneratePitchbookRequest,
    GeneratePitchbookResponse,
    GenerationOptions,
    GenerationResult,
    GenerationRun,
    ProgressEvent,
    RegenerateRequest,
    SlideGenerationResponse,
    VariationsRequest,
)

logger = logging.getLogger(__name__)


@dataclass
class ActiveRun:
    cancel: CancellationToken = field(default_factory=CancellationToken)
    progress: ProgressEvent | None = None


# One in-flight batch run per pitchbook, keyed by pitchbook id.
_active_runs: dict[str, ActiveRun] = {}


def _options(payload: GeneratePitchbookRequest) -> GenerationOptions:
    return GenerationOptions(
        regenerate=payload.regenerate,
        selected_slides=set(payload.selected_slides) if payload.selected_slides is not None else None,
        batch_size=payload.batch_size or settings.GENERATION_BATCH_SIZE,
    )


async def generate_pitchbook(
    pitchbook_id: uuid.UUID,
    payload: GeneratePitchbookRequest,
    db: AsyncSession,
    llm: LLMClient,
) -> GeneratePitchbookResponse:
    """Generate, optionally review and summarise, then persist a whole pitchbook."""
    key = str(pitchbook_id)
    if key in _active_runs:
        raise HTTPException(status_code=409, detail="Generation already in progress for this pitchbook")

    # Registered before the first await so a concurrent request sees it.
    active = ActiveRun()
    _active_runs[key] = active
    try:
        store = SqlPitchbookStore(db)
        pitchbook = await store.get_pitchbook(key)
        options = _options(payload)

        def on_progress(event: ProgressEvent) -> None:
            active.progress = event

        try:
            run = await GenerationOrchestrator(llm).generate_batch(
                pitchbook, options, on_progress=on_progress, cancel=active.cancel
            )
        except GenerationInitError as e:
            logger.error("Generation init failed for pitchbook %s: %s", key, e)
            raise HTTPException(status_code=502, detail=str(e))

        if run.total == 0:
            return GeneratePitchbookResponse.model_validate(run.model_dump())

        report = await ResultMerger(llm, batch_size=options.batch_size).finalize(
            pitchbook,
            run,
            store,
            auto_review=payload.auto_review,
            criteria=payload.review,
            executive_summary=payload.executive_summary,
        )
        return GeneratePitchbookResponse.model_validate(
            {**report.run.model_dump(), "persisted": report.persisted, "error": report.error}
        )
    finally:
        if _active_runs.get(key) is active:
            del _active_runs[key]


def cancel_generation(pitchbook_id: uuid.UUID) -> CancelResponse:
    active = _active_runs.get(str(pitchbook_id))
    if active is None:
        return CancelResponse(cancelled=False)
    active.cancel.cancel()
    logger.info("Cancellation requested for pitchbook %s", pitchbook_id)
    return CancelResponse(cancelled=True)


def get_progress(pitchbook_id: uuid.UUID) -> ProgressEvent | None:
    active = _active_runs.get(str(pitchbook_id))
    return active.progress if active is not None else None


async def generate_slide(
    pitchbook_id: uuid.UUID,
    slide_number: int,
    db: AsyncSession,
    llm: LLMClient,
) -> SlideGenerationResponse:
    store = SqlPitchbookStore(db)
    pitchbook = await store.get_pitchbook(str(pitchbook_id))

    try:
        slide_result = await GenerationOrchestrator(llm).generate_slide(pitchbook, slide_number)
    except SlideNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except GenerationInitError as e:
        logger.error("Slide generation init failed for pitchbook %s: %s", pitchbook_id, e)
        raise HTTPException(status_code=502, detail=str(e))

    if not slide_result.results:
        return SlideGenerationResponse.model_validate(slide_result.model_dump())

    completed = len(slide_result.results)
    run = GenerationRun(
        success=True,
        results={slide_result.slide_key: slide_result.results},
        context=run_context(pitchbook),
        total=completed,
        completed=completed,
    )
    report = await ResultMerger(llm).finalize(pitchbook, run, store)
    return SlideGenerationResponse.model_validate(
        {**slide_result.model_dump(), "persisted": report.persisted, "error": report.error}
    )


async def regenerate_content(payload: RegenerateRequest, llm: LLMClient) -> GenerationResult:
    return await GenerationOrchestrator(llm).regenerate(payload.prior, payload.overrides)


async def generate_variations(payload: VariationsRequest, llm: LLMClient) -> list[GenerationResult]:
    return await GenerationOrchestrator(llm).generate_variations(
        payload.prompt, payload.metadata, payload.count
    )
