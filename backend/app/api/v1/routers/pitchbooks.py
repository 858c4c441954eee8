import uuid

from fastapi import APIRouter, Depends, Path
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db, get_llm_client
from app.controllers import generation_controller, pitchbook_controller
from app.core.ai_generators import LLMClient
from app.schemas.generation import (
    CancelResponse,
    GeneratePitchbookRequest,
    GeneratePitchbookResponse,
    ProgressEvent,
    SlideGenerationResponse,
)
from app.schemas.pitchbook import PitchbookSnapshot

router = APIRouter(prefix="/pitchbooks", tags=["pitchbooks"])


@router.get("/{pitchbook_id}", response_model=PitchbookSnapshot)
async def get_pitchbook(
    pitchbook_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
):
    """Get a pitchbook with its slides, layouts and generated content."""
    return await pitchbook_controller.get_pitchbook(pitchbook_id, db)


@router.post("/{pitchbook_id}/generate", response_model=GeneratePitchbookResponse)
async def generate_pitchbook(
    pitchbook_id: uuid.UUID,
    payload: GeneratePitchbookRequest | None = None,
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
):
    """Generate content for every prompted placeholder and persist it."""
    return await generation_controller.generate_pitchbook(
        pitchbook_id, payload or GeneratePitchbookRequest(), db, llm
    )


@router.post("/{pitchbook_id}/generate/cancel", response_model=CancelResponse)
async def cancel_generation(pitchbook_id: uuid.UUID):
    """Stop the running generation after its current batch."""
    return generation_controller.cancel_generation(pitchbook_id)


@router.get("/{pitchbook_id}/generate/progress", response_model=ProgressEvent | None)
async def get_progress(pitchbook_id: uuid.UUID):
    """Latest progress event of the running generation."""
    return generation_controller.get_progress(pitchbook_id)


@router.post("/{pitchbook_id}/slides/{slide_number}/generate", response_model=SlideGenerationResponse)
async def generate_slide(
    pitchbook_id: uuid.UUID,
    slide_number: int = Path(ge=1),
    db: AsyncSession = Depends(get_db),
    llm: LLMClient = Depends(get_llm_client),
):
    """Generate every prompted placeholder of one slide."""
    return await generation_controller.generate_slide(pitchbook_id, slide_number, db, llm)
