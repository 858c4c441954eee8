"""
Shared test fixtures for pytest.

- FakeLLM: records every call, tracks concurrency and injects failures
- SleepRecorder: no-op replacement for asyncio.sleep that records delays
- make_slide / make_pitchbook: snapshot builders
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from app.core.ai_generators import ChatHandle
from app.schemas.pitchbook import Layout, PitchbookSnapshot, Placeholder, SlideSnapshot

PRIMER_PREFIX = "System context:"


class FakeLLM:
    """In-memory ``LLMClient`` that echoes a canned reply per prompt."""

    def __init__(
        self,
        reply: Callable[[str], str] | None = None,
        fail_when: Callable[[str], bool] | None = None,
        fail_start: bool = False,
        hang_when: Callable[[str], bool] | None = None,
        yields: int = 3,
    ) -> None:
        self.reply = reply or (lambda prompt: f"content #{len(self.prompts)}")
        self.fail_when = fail_when or (lambda prompt: False)
        self.fail_start = fail_start
        self.hang_when = hang_when or (lambda prompt: False)
        self.yields = yields

        self.started: list[str] = []
        self.cleared: list[str] = []
        self.primers: list[str] = []
        self.prompts: list[str] = []
        self.one_shot: list[tuple[str, float | None]] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.in_flight_at_start: list[int] = []
        self.on_call: Callable[[str], Any] | None = None

    async def _call(self, prompt: str) -> str:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.in_flight_at_start.append(self.in_flight)
        try:
            if self.on_call is not None:
                self.on_call(prompt)
            # Let sibling calls of the same batch start before this one settles.
            for _ in range(self.yields):
                await asyncio.sleep(0)
            if self.hang_when(prompt):
                await asyncio.sleep(3600)
            if self.fail_when(prompt):
                raise RuntimeError("model exploded")
            return self.reply(prompt)
        finally:
            self.in_flight -= 1

    async def start_chat(self, session_id: str) -> ChatHandle:
        if self.fail_start:
            raise ConnectionError("provider unavailable")
        self.started.append(session_id)
        return ChatHandle(session_id=session_id)

    async def send_message(self, session_id: str, text: str) -> str:
        if text.startswith(PRIMER_PREFIX):
            self.primers.append(text)
            return "Acknowledged."
        self.prompts.append(text)
        return await self._call(text)

    async def generate_content(self, prompt: str, *, temperature: float | None = None) -> str:
        self.prompts.append(prompt)
        self.one_shot.append((prompt, temperature))
        return await self._call(prompt)

    def clear_chat(self, session_id: str) -> None:
        self.cleared.append(session_id)

    @property
    def calls(self) -> int:
        return len(self.prompts)


class SleepRecorder:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_slide(
    slide_number: int,
    prompts: dict[str, str],
    *,
    slide_type: str = "body",
    section_title: str | None = None,
    slide_prompt: str | None = None,
    placeholders: list[Placeholder] | None = None,
    layout_name: str = "Title and Content",
) -> SlideSnapshot:
    if placeholders is None:
        placeholders = [
            Placeholder(id=pid, name=pid, type="body", y=index * 100)
            for index, pid in enumerate(prompts)
        ]
    return SlideSnapshot(
        slide_number=slide_number,
        layout_name=layout_name,
        slide_type=slide_type,
        section_title=section_title,
        slide_prompt=slide_prompt,
        layout=Layout(name=layout_name, type="content", placeholders=placeholders),
        placeholder_prompts=prompts,
    )


def make_pitchbook(slides: list[SlideSnapshot], **kwargs: Any) -> PitchbookSnapshot:
    kwargs.setdefault("id", "pb-1")
    kwargs.setdefault("title", "Company Overview")
    return PitchbookSnapshot(slides=slides, **kwargs)


def many_prompts(count: int, per_slide: int = 1) -> PitchbookSnapshot:
    """Pitchbook with *count* prompted placeholders spread over slides."""
    slides = []
    for start in range(0, count, per_slide):
        number = start // per_slide + 1
        ids = [f"ph{i}" for i in range(1, min(per_slide, count - start) + 1)]
        slides.append(make_slide(number, {pid: f"Describe item {number}-{pid}" for pid in ids}))
    return make_pitchbook(slides)


@pytest.fixture
def llm() -> FakeLLM:
    return FakeLLM()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()
