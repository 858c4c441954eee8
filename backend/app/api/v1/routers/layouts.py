from fastapi import APIRouter, Depends
from sqlmodel.ext.asyncio.session import AsyncSession

from app.api.deps import get_db
from app.controllers import pitchbook_controller
from app.schemas.pitchbook import Layout

router = APIRouter(prefix="/layouts", tags=["layouts"])


@router.get("/", response_model=list[Layout])
async def list_layouts(db: AsyncSession = Depends(get_db)):
    """List every slide layout and its placeholders."""
    return await pitchbook_controller.list_layouts(db)
