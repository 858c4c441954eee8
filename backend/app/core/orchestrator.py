"""
Generation orchestrator.

Drives enhanced prompts through the LLM:

- ``generate_batch``: whole pitchbook, bounded concurrent batches with
  progress events and cancellation at batch boundaries
- ``generate_slide``: one slide, sequentially, in a transient session
- ``regenerate``: re-issue one result with style / tone / length
  overrides
- ``generate_variations``: several serial takes on one prompt

Per-placeholder failures are encoded as ``GenerationResult(success=False)``.
Only session bring-up failures escape as ``GenerationInitError``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import math
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from app.core.ai_generators import LLMClient
from app.core.config import settings
from app.core.concurrency import BatchPool, CancellationToken, Sleep, call_llm
from app.core.context_inferrer import infer_context
from app.core.prompt_enhancer import (
    WORD_COUNT_RE,
    build_system_prompt,
    enhance_leaf,
    enhance_prompt,
)
from app.core.prompt_resolver import PromptLeaf, resolve_leaves
from app.core.prompt_templates import SESSION_PRIMER_TEMPLATE, VARIATION_INSTRUCTION
from app.schemas.generation import (
    ContextTag,
    EnhancedPrompt,
    GenerationOptions,
    GenerationResult,
    GenerationRun,
    ProgressEvent,
    PromptMetadata,
    RegenerateOverrides,
    SlideGenerationResult,
)
from app.schemas.pitchbook import PitchbookSnapshot

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressEvent], Awaitable[None] | None]


class GenerationInitError(RuntimeError):
    """The LLM session for a run could not be opened."""


class SlideNotFoundError(LookupError):
    pass


@dataclass
class GenerationTask:
    leaf: PromptLeaf
    prompt: EnhancedPrompt

    @property
    def slide_key(self) -> str:
        return self.leaf.slide_key

    @property
    def placeholder_id(self) -> str:
        return self.leaf.placeholder_id


def progress_percentage(current: int, total: int) -> int:
    if total <= 0:
        return 100
    # Round half up.
    return min(100, math.floor(current * 100 / total + 0.5))


def run_context(pitchbook: PitchbookSnapshot) -> ContextTag:
    """Context tag shared by every prompt of a run.

    Inferred from the title and the pitchbook-level prompt only, so every
    placeholder of a run is enhanced against the same context.  Placeholder
    prompts are only searched by ``enhance_prompt`` when no context is given.
    """
    return infer_context(pitchbook.title, pitchbook.pitchbook_prompt, pitchbook.type)


class GenerationSession:
    """Chat session owned by exactly one run.

    Opening it starts the chat and primes it with the context's system
    prompt; closing it drops the chat on the client.
    """

    def __init__(self, llm: LLMClient, session_id: str, context: ContextTag) -> None:
        self.llm = llm
        self.session_id = session_id
        self.context = context

    @staticmethod
    def new_session_id(pitchbook_id: str) -> str:
        return f"gen_{pitchbook_id}_{time.monotonic_ns()}"

    async def open(self) -> None:
        try:
            await self.llm.start_chat(self.session_id)
            primer = SESSION_PRIMER_TEMPLATE.format(system_prompt=build_system_prompt(self.context))
            await self.llm.send_message(self.session_id, primer)
        except Exception as exc:
            self.close()
            raise GenerationInitError(f"Could not open LLM session: {exc}") from exc

    async def ask(self, prompt: str) -> str:
        return await self.llm.send_message(self.session_id, prompt)

    def close(self) -> None:
        self.llm.clear_chat(self.session_id)

    async def __aenter__(self) -> "GenerationSession":
        await self.open()
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.close()


class GenerationOrchestrator:
    def __init__(
        self,
        llm: LLMClient,
        *,
        batch_delay: float | None = None,
        variation_delay: float | None = None,
        call_timeout: float | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.llm = llm
        self.batch_delay = settings.GENERATION_BATCH_DELAY_SECONDS if batch_delay is None else batch_delay
        self.variation_delay = (
            settings.GENERATION_VARIATION_DELAY_SECONDS if variation_delay is None else variation_delay
        )
        self.call_timeout = settings.LLM_CALL_TIMEOUT_SECONDS if call_timeout is None else call_timeout
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Task planning
    # ------------------------------------------------------------------

    def plan_tasks(
        self,
        pitchbook: PitchbookSnapshot,
        options: GenerationOptions,
        context: ContextTag,
    ) -> list[GenerationTask]:
        """Selected slides × prompted placeholders, minus generated ones unless regenerating."""
        tasks = []
        for leaf in resolve_leaves(pitchbook):
            if options.selected_slides is not None and leaf.slide_key not in options.selected_slides:
                continue
            existing = pitchbook.generated_content.get(leaf.slide_key, {})
            if not options.regenerate and existing.get(leaf.placeholder_id) is not None:
                continue
            tasks.append(GenerationTask(leaf=leaf, prompt=enhance_leaf(leaf, pitchbook, context)))
        return tasks

    # ------------------------------------------------------------------
    # Single calls
    # ------------------------------------------------------------------

    async def _generate(
        self,
        send: Callable[[str], Awaitable[str]],
        original: str,
        enhanced: str,
    ) -> GenerationResult:
        try:
            content = await call_llm(send, enhanced, self.call_timeout)
        except Exception as exc:
            return GenerationResult(
                success=False,
                original=original,
                enhanced=enhanced,
                error=str(exc) or exc.__class__.__name__,
            )
        return GenerationResult(success=True, original=original, enhanced=enhanced, content=content)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def generate_batch(
        self,
        pitchbook: PitchbookSnapshot,
        options: GenerationOptions | None = None,
        *,
        on_progress: ProgressCallback | None = None,
        cancel: CancellationToken | None = None,
    ) -> GenerationRun:
        """Generate every pending placeholder of *pitchbook*.

        Raises ``GenerationInitError`` if the session cannot be opened; any
        other failure is recorded on the affected placeholder only.
        """
        options = options or GenerationOptions(batch_size=settings.GENERATION_BATCH_SIZE)
        context = run_context(pitchbook)

        tasks = self.plan_tasks(pitchbook, options, context)
        if not tasks:
            has_prompts = next(resolve_leaves(pitchbook), None) is not None
            logger.info("Nothing to generate for pitchbook %s", pitchbook.id)
            return GenerationRun(
                success=True,
                context=context,
                reason=None if has_prompts else "no_prompts",
            )

        session = GenerationSession(self.llm, GenerationSession.new_session_id(pitchbook.id), context)
        await session.open()
        logger.info(
            "Generating %d placeholders for pitchbook %s (context=%s, session=%s)",
            len(tasks), pitchbook.id, context.value, session.session_id,
        )

        async def worker(task: GenerationTask) -> tuple[GenerationTask, GenerationResult]:
            result = await self._generate(session.ask, task.prompt.original, task.prompt.enhanced)
            if not result.success:
                logger.warning(
                    "Generation failed for %s/%s: %s", task.slide_key, task.placeholder_id, result.error
                )
            return task, result

        settled: dict[tuple[str, str], GenerationResult] = {}
        pool = BatchPool(options.batch_size, self.batch_delay, self._sleep)
        try:
            async for batch in pool.run(tasks, worker, cancel):
                for task, result in batch:
                    settled[(task.slide_key, task.placeholder_id)] = result
                await _emit(
                    on_progress,
                    ProgressEvent(
                        current=len(settled),
                        total=len(tasks),
                        percentage=progress_percentage(len(settled), len(tasks)),
                    ),
                )
        finally:
            session.close()

        results: dict[str, dict[str, GenerationResult]] = {}
        for task in tasks:
            result = settled.get((task.slide_key, task.placeholder_id))
            if result is not None:
                results.setdefault(task.slide_key, {})[task.placeholder_id] = result

        cancelled = len(settled) < len(tasks)
        if cancelled:
            logger.info(
                "Generation cancelled for pitchbook %s after %d/%d placeholders",
                pitchbook.id, len(settled), len(tasks),
            )
        else:
            logger.info("Generation complete for pitchbook %s", pitchbook.id)

        return GenerationRun(
            success=not cancelled,
            results=results,
            context=context,
            session_id=session.session_id,
            reason="cancelled" if cancelled else None,
            total=len(tasks),
            completed=len(settled),
        )

    async def generate_slide(self, pitchbook: PitchbookSnapshot, slide_number: int) -> SlideGenerationResult:
        """Generate every prompted placeholder of one slide, one at a time."""
        slide = pitchbook.get_slide(slide_number)
        if slide is None:
            raise SlideNotFoundError(f"Slide {slide_number} not found")

        context = run_context(pitchbook)
        leaves = [leaf for leaf in resolve_leaves(pitchbook) if leaf.slide.slide_number == slide_number]
        results: dict[str, GenerationResult] = {}
        if leaves:
            session_id = GenerationSession.new_session_id(pitchbook.id)
            async with GenerationSession(self.llm, session_id, context) as session:
                for leaf in leaves:
                    prompt = enhance_leaf(leaf, pitchbook, context)
                    results[leaf.placeholder_id] = await self._generate(
                        session.ask, prompt.original, prompt.enhanced
                    )

        return SlideGenerationResult(slide_key=slide.slide_key, slide_number=slide_number, results=results)

    async def regenerate(
        self,
        prior: GenerationResult,
        overrides: RegenerateOverrides | None = None,
    ) -> GenerationResult:
        """Re-issue *prior* with its enhanced prompt adjusted by *overrides*."""
        overrides = overrides or RegenerateOverrides()
        prompt = prior.enhanced or prior.original

        if overrides.style:
            prompt += f"\nStyle modification: {overrides.style}"
        if overrides.tone:
            prompt += f"\nTone modification: {overrides.tone}"
        if overrides.word_count:
            target = f"{overrides.word_count} words"
            if WORD_COUNT_RE.search(prompt):
                prompt = WORD_COUNT_RE.sub(target, prompt, count=1)
            else:
                prompt += f"\nTarget length: {target}"

        temperature = overrides.temperature
        if temperature is None:
            temperature = settings.REGENERATE_DEFAULT_TEMPERATURE

        async def send(text: str) -> str:
            return await self.llm.generate_content(text, temperature=temperature)

        return await self._generate(send, prior.original, prompt)

    async def generate_variations(
        self,
        prompt: str,
        metadata: PromptMetadata | None = None,
        count: int = 3,
    ) -> list[GenerationResult]:
        """Generate *count* alternative takes on *prompt*, serially."""
        enhanced = enhance_prompt(prompt, metadata or PromptMetadata())
        variations = []
        for index in range(1, count + 1):
            varied = f"{enhanced.enhanced}\n\n{VARIATION_INSTRUCTION.format(index=index)}"
            variations.append(await self._generate(self.llm.generate_content, prompt, varied))
            if index < count:
                await self._sleep(self.variation_delay)
        return variations


async def _emit(on_progress: ProgressCallback | None, event: ProgressEvent) -> None:
    if on_progress is None:
        return
    outcome = on_progress(event)
    if inspect.isawaitable(outcome):
        await outcome
