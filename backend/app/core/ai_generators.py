"""
LLM collaborator backed by pydantic-ai.

Agents
------
- **chat_agent**: generation sessions keyed by session id; each request replays
  the session primer exchange and nothing else
- **content_agent**: one-shot completions (review, summaries, regenerate,
  variations)

The generation pipeline only depends on the ``LLMClient`` protocol, so tests
can swap in a fake or a pydantic-ai ``TestModel``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from pydantic_ai import Agent
from pydantic_ai.messages import ModelMessage
from pydantic_ai.models import Model
from pydantic_ai.settings import ModelSettings

from app.core.config import settings

logger = logging.getLogger(__name__)


_WRITER_SYSTEM_PROMPT = """\
You write content for individual placeholders of business presentation slides.

Rules:
- Follow the length, structure and formatting instructions of each request.
- Do not include any preamble such as "Here is your content".  Start directly \
  with the content.
- Output plain text only; use "•" for bullet points when asked for bullets.
"""


@dataclass
class ChatHandle:
    session_id: str
    history: list[ModelMessage] = field(default_factory=list)


class LLMClient(Protocol):
    async def start_chat(self, session_id: str) -> ChatHandle: ...

    async def send_message(self, session_id: str, text: str) -> str: ...

    async def generate_content(self, prompt: str, *, temperature: float | None = None) -> str: ...

    def clear_chat(self, session_id: str) -> None: ...


class AgentLLMClient:
    """``LLMClient`` implementation running two pydantic-ai agents."""

    def __init__(self, model: Model | str | None = None) -> None:
        model = model or settings.LLM_MODEL
        self.chat_agent = Agent(
            model=model,
            output_type=str,
            system_prompt=_WRITER_SYSTEM_PROMPT,
            defer_model_check=True,
        )
        self.content_agent = Agent(
            model=model,
            output_type=str,
            system_prompt=_WRITER_SYSTEM_PROMPT,
            defer_model_check=True,
        )
        self._sessions: dict[str, ChatHandle] = {}

    async def start_chat(self, session_id: str) -> ChatHandle:
        handle = ChatHandle(session_id=session_id)
        self._sessions[session_id] = handle
        logger.debug("Started chat session %s", session_id)
        return handle

    async def send_message(self, session_id: str, text: str) -> str:
        """Send *text* within a session and return the assistant reply.

        Unknown session ids are started implicitly.  The first exchange of a
        session (the primer) is kept as its history; later exchanges are not
        recorded, so every content request carries the same fixed context.
        """
        handle = self._sessions.get(session_id)
        if handle is None:
            handle = await self.start_chat(session_id)

        result = await self.chat_agent.run(text, message_history=list(handle.history))
        if not handle.history:
            handle.history.extend(result.new_messages())
        return result.output

    async def generate_content(self, prompt: str, *, temperature: float | None = None) -> str:
        model_settings = ModelSettings(temperature=temperature) if temperature is not None else None
        result = await self.content_agent.run(prompt, model_settings=model_settings)
        return result.output

    def clear_chat(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def has_session(self, session_id: str) -> bool:
        return session_id in self._sessions
