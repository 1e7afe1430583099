"""Tests for the single-flight reconciliation runner."""

import asyncio

import pytest

from tradelog.reconciliation.single_flight import SingleFlight


async def _spin(times: int = 5) -> None:
    for _ in range(times):
        await asyncio.sleep(0)


class GatedPass:
    """Pass function whose first invocation blocks until released."""

    def __init__(self) -> None:
        self.gate = asyncio.Event()
        self.calls = 0
        self.finished = 0

    async def __call__(self) -> int:
        self.calls += 1
        n = self.calls
        if n == 1:
            await self.gate.wait()
        self.finished += 1
        return n


class TestSingleFlight:
    @pytest.mark.asyncio
    async def test_single_run(self):
        async def fn():
            return "done"

        flight = SingleFlight(fn)
        assert await flight.run() == "done"
        assert flight.runs == 1

    @pytest.mark.asyncio
    async def test_burst_costs_two_passes(self):
        fn = GatedPass()
        flight = SingleFlight(fn)

        first = asyncio.create_task(flight.run())
        await _spin()
        assert fn.calls == 1
        followers = [asyncio.create_task(flight.run()) for _ in range(3)]
        await _spin()
        assert fn.calls == 1

        fn.gate.set()
        results = await asyncio.gather(first, *followers)

        assert results == [1, 2, 2, 2]
        assert fn.calls == 2
        assert flight.runs == 2

    @pytest.mark.asyncio
    async def test_sequential_runs_do_not_coalesce(self):
        calls = []

        async def fn():
            calls.append(1)
            return len(calls)

        flight = SingleFlight(fn)
        assert await flight.run() == 1
        assert await flight.run() == 2

    @pytest.mark.asyncio
    async def test_exception_reaches_waiter(self):
        attempts = []

        async def fn():
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("remote down")
            return "ok"

        flight = SingleFlight(fn)
        with pytest.raises(RuntimeError, match="remote down"):
            await flight.run()
        assert await flight.run() == "ok"
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_queued_pass_runs_after_failure(self):
        gate = asyncio.Event()
        attempts = []

        async def fn():
            attempts.append(1)
            if len(attempts) == 1:
                await gate.wait()
                raise RuntimeError("first failed")
            return "second"

        flight = SingleFlight(fn)
        first = asyncio.create_task(flight.run())
        await _spin()
        second = asyncio.create_task(flight.run())
        await _spin()
        gate.set()

        with pytest.raises(RuntimeError):
            await first
        assert await second == "second"

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_pass(self):
        fn = GatedPass()
        flight = SingleFlight(fn)

        waiter = asyncio.create_task(flight.run())
        await _spin()
        waiter.cancel()
        await _spin()

        fn.gate.set()
        await _spin()
        assert fn.finished == 1
        assert waiter.cancelled()

    @pytest.mark.asyncio
    async def test_pass_reads_state_when_it_starts(self):
        state = {"value": 0}
        gate = asyncio.Event()
        seen = []

        async def fn():
            seen.append(state["value"])
            if len(seen) == 1:
                await gate.wait()
            return seen[-1]

        flight = SingleFlight(fn)
        first = asyncio.create_task(flight.run())
        await _spin()
        state["value"] = 1
        second = asyncio.create_task(flight.run())
        await _spin()
        state["value"] = 2
        third = asyncio.create_task(flight.run())
        await _spin()
        gate.set()

        assert await asyncio.gather(first, second, third) == [0, 2, 2]
