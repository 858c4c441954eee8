"""
Shared FastAPI dependencies: single source of truth for DI.

All routers should import get_db and get_llm_client from HERE,
not directly from db.database or core.ai_generators.
"""

from functools import lru_cache

from sqlmodel.ext.asyncio.session import AsyncSession

from app.core.ai_generators import AgentLLMClient, LLMClient
from app.db.database import get_db as _get_db

__all__ = ["get_db", "get_llm_client"]


async def get_db() -> AsyncSession:
    """Yield an async database session."""
    async for session in _get_db():
        yield session


@lru_cache
def get_llm_client() -> LLMClient:
    """Process-wide LLM client. Sessions inside it are keyed per run."""
    return AgentLLMClient()
