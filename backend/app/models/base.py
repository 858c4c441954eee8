from datetime import datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, DateTime, func
from sqlmodel import SQLModel, Field

from app.schemas.generation import utc_now


def timestamp_field(*, created: bool) -> Any:
    """Timezone-aware timestamp column; a new Column object per table.

    ``created`` columns default to now on insert, the others are set by the
    database on every update.
    """
    if created:
        return Field(
            default_factory=utc_now,
            sa_type=DateTime(timezone=True),
            sa_column_kwargs={"server_default": func.now(), "nullable": False},
        )
    return Field(
        default=None,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": func.now(), "nullable": True},
    )


def json_field(default_factory: type = dict) -> Any:
    """Non-null JSON column holding prompts, layouts or generated content."""
    return Field(
        default_factory=default_factory,
        sa_column=Column(JSON, nullable=False, default=default_factory),
    )


class BaseRecord(SQLModel):
    """Pitchbook tables share a UUID key and created/updated timestamps."""

    id: UUID = Field(default_factory=uuid4, primary_key=True, index=True)
    created_at: datetime = timestamp_field(created=True)
    updated_at: datetime | None = timestamp_field(created=False)
