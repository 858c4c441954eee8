from fastapi import APIRouter, Depends

from app.api.deps import get_llm_client
from app.controllers import generation_controller
from app.core.ai_generators import LLMClient
from app.schemas.generation import GenerationResult, RegenerateRequest, VariationsRequest

router = APIRouter(prefix="/generation", tags=["generation"])


@router.post("/regenerate", response_model=GenerationResult)
async def regenerate(
    payload: RegenerateRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    """Regenerate one result with style, tone, length or temperature overrides."""
    return await generation_controller.regenerate_content(payload, llm)


@router.post("/variations", response_model=list[GenerationResult])
async def variations(
    payload: VariationsRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    """Generate alternative takes on a single prompt."""
    return await generation_controller.generate_variations(payload, llm)
