"""Tests for BatchPool, CancellationToken and call_llm."""

from __future__ import annotations

import asyncio

import pytest
from conftest import SleepRecorder

from app.core.concurrency import BatchPool, CancellationToken, EmptyResponseError, call_llm


class TestBatchPool:
    @pytest.mark.asyncio
    async def test_batches_and_delays(self):
        sleep = SleepRecorder()
        pool = BatchPool(3, delay=1.0, sleep=sleep)

        async def double(x: int) -> int:
            return x * 2

        batches = [batch async for batch in pool.run(list(range(7)), double)]

        assert batches == [[0, 2, 4], [6, 8, 10], [12]]
        assert sleep.delays == [1.0, 1.0]

    @pytest.mark.asyncio
    async def test_never_exceeds_batch_size(self):
        in_flight = 0
        peak = 0

        async def work(x: int) -> int:
            nonlocal in_flight, peak
            in_flight += 1
            peak = max(peak, in_flight)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            in_flight -= 1
            return x

        pool = BatchPool(2, sleep=SleepRecorder())
        async for _ in pool.run(list(range(9)), work):
            pass

        assert peak == 2

    @pytest.mark.asyncio
    async def test_cancel_stops_at_batch_boundary(self):
        token = CancellationToken()

        async def work(x: int) -> int:
            if x == 0:
                token.cancel()
            return x

        pool = BatchPool(2, sleep=SleepRecorder())
        batches = [batch async for batch in pool.run([0, 1, 2, 3], work, token)]

        assert batches == [[0, 1]]

    @pytest.mark.asyncio
    async def test_cancel_before_start_runs_nothing(self):
        token = CancellationToken()
        token.cancel()

        async def work(x: int) -> int:
            raise AssertionError("should not run")

        batches = [batch async for batch in BatchPool(2).run([1, 2], work, token)]
        assert batches == []

    @pytest.mark.asyncio
    async def test_no_sleep_after_last_batch(self):
        sleep = SleepRecorder()

        async def work(x: int) -> int:
            return x

        async for _ in BatchPool(5, delay=1.0, sleep=sleep).run([1, 2, 3], work):
            pass
        assert sleep.delays == []

    def test_rejects_zero_batch_size(self):
        with pytest.raises(ValueError):
            BatchPool(0)


class TestCallLLM:
    @pytest.mark.asyncio
    async def test_returns_stripped_text(self):
        async def send(prompt: str) -> str:
            return "  hello  \n"

        assert await call_llm(send, "hi", timeout=1) == "hello"

    @pytest.mark.asyncio
    async def test_empty_reply_raises(self):
        async def send(prompt: str) -> str:
            return "   "

        with pytest.raises(EmptyResponseError):
            await call_llm(send, "hi", timeout=1)

    @pytest.mark.asyncio
    async def test_timeout(self):
        async def send(prompt: str) -> str:
            await asyncio.sleep(10)
            return "late"

        with pytest.raises(asyncio.TimeoutError, match="timed out"):
            await call_llm(send, "hi", timeout=0.01)
