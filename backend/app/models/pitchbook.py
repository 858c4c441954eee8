from datetime import datetime
from uuid import UUID

from sqlalchemy import Column, DateTime, Text, UniqueConstraint
from sqlmodel import Field, Relationship

from app.models.base import BaseRecord, json_field


class Pitchbook(BaseRecord, table=True):
    __tablename__ = "pitchbooks"

    title: str = Field(max_length=255)
    type: str = Field(default="standard", max_length=50)  # standard, investor, executive, sales
    status: str = Field(default="draft", max_length=50)  # draft, generating, ready, archived

    # Prompts above slide level
    pitchbook_prompt: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    section_prompts: dict = json_field()
    scoped_prompts: dict = json_field()

    # {slide_key: {placeholder_id: GenerationResult}}
    generated_content: dict = json_field()
    last_generated: datetime | None = Field(default=None, sa_type=DateTime(timezone=True))

    # Relationships
    slides: list["Slide"] = Relationship(
        back_populates="pitchbook",
        sa_relationship_kwargs={"cascade": "all, delete-orphan", "order_by": "Slide.slide_number"},
    )


class Slide(BaseRecord, table=True):
    __tablename__ = "slides"
    __table_args__ = (
        UniqueConstraint("pitchbook_id", "slide_number", name="uq_pitchbook_slide_number"),
    )

    pitchbook_id: UUID = Field(foreign_key="pitchbooks.id", ondelete="CASCADE", index=True)
    slide_number: int
    layout_name: str = Field(max_length=255)  # resolved against slide_layouts.name on read
    slide_type: str = Field(default="body", max_length=50)
    section_title: str | None = Field(default=None, max_length=255)
    slide_prompt: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    placeholder_prompts: dict = json_field()

    # Relationships
    pitchbook: "Pitchbook" = Relationship(back_populates="slides")


class SlideLayout(BaseRecord, table=True):
    __tablename__ = "slide_layouts"

    name: str = Field(max_length=255, unique=True, index=True)
    type: str = Field(default="", max_length=100)
    # [{id, name, type, x, y, width, height}]
    placeholders: list = json_field(list)
