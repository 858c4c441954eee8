# Import all models so SQLModel.metadata registers them for Alembic autogenerate.
from app.models.base import BaseRecord  # noqa: F401
from app.models.pitchbook import Pitchbook, Slide, SlideLayout  # noqa: F401
