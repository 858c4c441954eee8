"""
Concurrency primitives for talking to a rate-limited model.

- ``CancellationToken``: caller-owned flag checked at batch boundaries
- ``BatchPool``: runs work items in fixed-size concurrent batches
  with a pause between batches
- ``call_llm``: one model call with a timeout and an empty-reply check
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")

Sleep = Callable[[float], Awaitable[None]]


class EmptyResponseError(RuntimeError):
    pass


class CancellationToken:
    def __init__(self) -> None:
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def cancelled(self) -> bool:
        return self._cancelled


class BatchPool:
    """Run work items at most ``batch_size`` at a time.

    A batch starts only after every call of the previous batch has settled,
    and ``delay`` seconds pass between consecutive batches.  The worker must
    settle every item itself (return a failure value instead of raising).
    """

    def __init__(self, batch_size: int, delay: float = 0.0, sleep: Sleep = asyncio.sleep) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.delay = delay
        self._sleep = sleep

    async def run(
        self,
        items: Sequence[T],
        worker: Callable[[T], Awaitable[R]],
        cancel: CancellationToken | None = None,
    ) -> AsyncIterator[list[R]]:
        """Yield the settled results of each batch, in item order."""
        for start in range(0, len(items), self.batch_size):
            if cancel is not None and cancel.cancelled:
                return

            batch = items[start:start + self.batch_size]
            yield list(await asyncio.gather(*(worker(item) for item in batch)))

            if start + self.batch_size < len(items):
                if cancel is not None and cancel.cancelled:
                    return
                await self._sleep(self.delay)


async def call_llm(send: Callable[[str], Awaitable[str]], prompt: str, timeout: float) -> str:
    """Issue one model call, bounded by *timeout* seconds."""
    try:
        text = await asyncio.wait_for(send(prompt), timeout=timeout)
    except asyncio.TimeoutError as exc:
        raise asyncio.TimeoutError(f"LLM call timed out after {timeout:g}s") from exc

    if not text or not text.strip():
        raise EmptyResponseError("Empty response from model")
    return text.strip()
