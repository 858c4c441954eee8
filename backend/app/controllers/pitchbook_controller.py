import datetime
import logging
import uuid
from typing import Any

from fastapi import HTTPException
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from sqlalchemy.orm.attributes import flag_modified
from sqlmodel.ext.asyncio.session import AsyncSession

from app.models.pitchbook import Pitchbook, Slide, SlideLayout
from app.schemas.pitchbook import Layout, PitchbookSnapshot, SlideSnapshot

logger = logging.getLogger(__name__)

# Pitchbook columns a partial update may touch. Anything else is ignored.
UPDATABLE_FIELDS = {
    "title",
    "status",
    "pitchbook_prompt",
    "section_prompts",
    "scoped_prompts",
    "generated_content",
    "last_generated",
}
JSON_FIELDS = {"section_prompts", "scoped_prompts", "generated_content"}
SLIDE_FIELDS = {"layout_name", "slide_type", "section_title", "slide_prompt", "placeholder_prompts"}


def _parse_id(pitchbook_id: uuid.UUID | str) -> uuid.UUID:
    if isinstance(pitchbook_id, uuid.UUID):
        return pitchbook_id
    try:
        return uuid.UUID(pitchbook_id)
    except ValueError:
        raise HTTPException(status_code=404, detail="Pitchbook not found")


def to_snapshot(pitchbook: Pitchbook, layouts: dict[str, Layout]) -> PitchbookSnapshot:
    """Build the read-only snapshot the generation pipeline consumes."""
    slides = [
        SlideSnapshot(
            slide_number=slide.slide_number,
            layout_name=slide.layout_name,
            slide_type=slide.slide_type or "body",
            section_title=slide.section_title,
            slide_prompt=slide.slide_prompt,
            layout=layouts.get(slide.layout_name),
            placeholder_prompts=slide.placeholder_prompts or {},
        )
        for slide in pitchbook.slides
    ]
    return PitchbookSnapshot(
        id=str(pitchbook.id),
        title=pitchbook.title,
        type=pitchbook.type or "standard",
        slides=slides,
        pitchbook_prompt=pitchbook.pitchbook_prompt,
        section_prompts=pitchbook.section_prompts or {},
        scoped_prompts=pitchbook.scoped_prompts or {},
        generated_content=pitchbook.generated_content or {},
        last_generated=pitchbook.last_generated,
    )


async def get_pitchbook_record(pitchbook_id: uuid.UUID | str, db: AsyncSession) -> Pitchbook:
    result = await db.execute(
        select(Pitchbook)
        .where(Pitchbook.id == _parse_id(pitchbook_id))
        .options(selectinload(Pitchbook.slides))
    )
    pitchbook = result.scalar_one_or_none()
    if not pitchbook:
        raise HTTPException(status_code=404, detail="Pitchbook not found")
    return pitchbook


async def list_layouts(db: AsyncSession) -> list[Layout]:
    result = await db.execute(select(SlideLayout).order_by(SlideLayout.name.asc()))
    return [Layout.model_validate(layout) for layout in result.scalars().all()]


async def _layouts_for(pitchbook: Pitchbook, db: AsyncSession) -> dict[str, Layout]:
    names = {slide.layout_name for slide in pitchbook.slides}
    if not names:
        return {}
    result = await db.execute(select(SlideLayout).where(SlideLayout.name.in_(names)))
    return {layout.name: Layout.model_validate(layout) for layout in result.scalars().all()}


async def get_pitchbook(pitchbook_id: uuid.UUID | str, db: AsyncSession) -> PitchbookSnapshot:
    pitchbook = await get_pitchbook_record(pitchbook_id, db)
    return to_snapshot(pitchbook, await _layouts_for(pitchbook, db))


def _apply_slide_updates(pitchbook: Pitchbook, updates: list[dict[str, Any]]) -> None:
    by_number: dict[int, Slide] = {slide.slide_number: slide for slide in pitchbook.slides}
    for update in updates:
        slide = by_number.get(update.get("slide_number"))
        if slide is None:
            raise HTTPException(status_code=404, detail=f"Slide {update.get('slide_number')} not found")
        for field, value in update.items():
            if field in SLIDE_FIELDS:
                setattr(slide, field, value)
                if field == "placeholder_prompts":
                    flag_modified(slide, field)


async def update_pitchbook(
    pitchbook_id: uuid.UUID | str,
    partial: dict[str, Any],
    db: AsyncSession,
) -> PitchbookSnapshot:
    """Apply *partial* to the pitchbook and its slides in one commit."""
    pitchbook = await get_pitchbook_record(pitchbook_id, db)

    for field, value in partial.items():
        if field == "slides":
            _apply_slide_updates(pitchbook, value)
            continue
        if field not in UPDATABLE_FIELDS:
            continue
        if field == "last_generated" and isinstance(value, str):
            value = datetime.datetime.fromisoformat(value)
        setattr(pitchbook, field, value)
        if field in JSON_FIELDS:
            flag_modified(pitchbook, field)

    db.add(pitchbook)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Updated pitchbook %s (%s)", pitchbook.id, ", ".join(sorted(partial)))
    return to_snapshot(pitchbook, await _layouts_for(pitchbook, db))


class SqlPitchbookStore:
    """Pitchbook storage backed by the request's database session."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_pitchbook(self, pitchbook_id: str) -> PitchbookSnapshot:
        return await get_pitchbook(pitchbook_id, self.db)

    async def update_pitchbook(self, pitchbook_id: str, partial: dict[str, Any]) -> PitchbookSnapshot:
        return await update_pitchbook(pitchbook_id, partial, self.db)

    async def list_layouts(self) -> list[Layout]:
        return await list_layouts(self.db)
