"""
Unit tests for EventBus suspending (asyncio) delivery.

Tests sequential awaiting, failure isolation, per-listener timeouts, drain,
and async listeners reached through synchronous emission.
"""

import asyncio

import pytest

from beacon.core.event import BusConfiguration, EmissionMode, EventBus
from beacon.core.exceptions import ErrorSeverity, InvalidArgumentError


@pytest.mark.unit
@pytest.mark.asyncio
class TestSuspendingDelivery:
    """Listeners are awaited one at a time, in order."""

    async def test_listeners_run_sequentially(self, bus):
        trace = []

        async def slow(payload, event_name):
            trace.append("slow:start")
            await asyncio.sleep(0.01)
            trace.append("slow:end")

        async def fast(payload, event_name):
            trace.append("fast")

        bus.on("job:run", slow, priority=2)
        bus.on("job:run", fast, priority=1)

        await bus.emit_async("job:run", {"id": 1})

        assert trace == ["slow:start", "slow:end", "fast"]

    async def test_sync_listeners_are_accepted(self, bus, calls, recorder):
        bus.on("job:run", recorder("sync"))

        await bus.emit_async("job:run", 5)

        assert calls == [("sync", 5)]

    async def test_emit_returns_awaitable_task(self, bus, calls, recorder):
        bus.on("job:run", recorder("A"))

        pending = bus.emit("job:run", 1, mode=EmissionMode.SUSPENDING)

        assert calls == []
        await pending
        assert calls == [("A", 1)]

    async def test_emit_without_listeners_returns_done_future(self, bus):
        pending = bus.emit("nobody", mode="suspending")

        assert pending.done()
        await pending
        assert len(bus.get_history()) == 1

    async def test_history_recorded_at_emit_time(self, bus):
        async def listener(payload):
            await asyncio.sleep(0)

        bus.on("job:run", listener)
        pending = bus.emit("job:run", mode=EmissionMode.SUSPENDING)

        assert [r.event_name for r in bus.get_history()] == ["job:run"]
        await pending

    async def test_once_listener_runs_once_across_concurrent_emissions(self, bus):
        seen = []

        async def listener(payload):
            await asyncio.sleep(0)
            seen.append(payload)

        bus.once("job:run", listener)
        first = bus.emit("job:run", 1, mode=EmissionMode.SUSPENDING)
        second = bus.emit("job:run", 2, mode=EmissionMode.SUSPENDING)
        await asyncio.gather(first, second)

        assert seen == [1]

    async def test_emission_context_visible_to_listeners(self, bus, mocker):
        from beacon.core.logging import get_log_context

        observed = mocker.MagicMock()

        async def listener(payload):
            observed(get_log_context().get("event_name"))

        bus.on("lead:created", listener)
        await bus.emit_async("lead:created")

        observed.assert_called_once_with("lead:created")


@pytest.mark.unit
@pytest.mark.asyncio
class TestSuspendingFailures:
    """Failures and timeouts are isolated and reported."""

    async def test_failing_listener_does_not_stop_batch(self, bus, calls, recorder, error_sink):
        async def failing(payload):
            raise RuntimeError("async boom")

        bus.on("job:run", failing, priority=1)
        bus.on("job:run", recorder("after"))

        await bus.emit_async("job:run", 1)

        assert calls == [("after", 1)]
        assert len(error_sink.failures) == 1
        assert error_sink.failures[0].mode == "suspending"
        assert isinstance(error_sink.failures[0].original_error, RuntimeError)

    async def test_failure_never_reaches_emitter(self, bus):
        bus.on("job:run", lambda: 1 / 0)

        await bus.emit_async("job:run")

    async def test_timeout_reported_as_warning(self, error_sink, calls, recorder):
        bus = EventBus(
            BusConfiguration(listener_timeout_seconds=0.01),
            error_sink=error_sink,
        )

        async def hangs(payload):
            await asyncio.sleep(1)

        bus.on("job:run", hangs, priority=1)
        bus.on("job:run", recorder("after"))

        await bus.emit_async("job:run", 1)

        assert calls == [("after", 1)]
        failure = error_sink.failures[0]
        assert isinstance(failure.original_error, asyncio.TimeoutError)
        assert failure.severity is ErrorSeverity.WARNING

    async def test_no_timeout_by_default(self, bus, error_sink):
        async def brief(payload):
            await asyncio.sleep(0.02)

        bus.on("job:run", brief)
        await bus.emit_async("job:run")

        assert error_sink.failures == []


@pytest.mark.unit
@pytest.mark.asyncio
class TestSyncEmitWithAsyncListeners:
    """Sync emission schedules awaitables returned by listeners."""

    async def test_coroutine_scheduled_and_drained(self, bus):
        seen = []

        async def listener(payload):
            seen.append(payload)

        bus.on("x", listener)
        result = bus.emit("x", 7)

        assert result is None
        assert bus.get_debug_info()["pending_deliveries"] == 1
        await bus.drain()
        assert seen == [7]
        assert bus.get_debug_info()["pending_deliveries"] == 0

    async def test_scheduled_coroutine_failure_reported(self, bus, error_sink):
        async def failing(payload):
            raise ValueError("late failure")

        bus.on("x", failing)
        bus.emit("x")
        await bus.drain()

        assert len(error_sink.failures) == 1
        assert error_sink.failures[0].mode == "sync"

    async def test_drain_waits_for_suspending_emissions(self, bus):
        seen = []

        async def listener(payload):
            await asyncio.sleep(0.01)
            seen.append(payload)

        bus.on("x", listener)
        bus.emit("x", 1, mode=EmissionMode.SUSPENDING)
        bus.emit("x", 2, mode=EmissionMode.SUSPENDING)

        await bus.drain()

        assert sorted(seen) == [1, 2]


@pytest.mark.unit
class TestSyncEmitWithoutLoop:
    """Outside a running loop, an async listener is reported as failed."""

    def test_coroutine_closed_and_reported(self, bus, error_sink):
        async def listener(payload):
            return payload

        bus.on("x", listener)
        bus.emit("x", 1)

        assert len(error_sink.failures) == 1
        assert isinstance(error_sink.failures[0].original_error, RuntimeError)

    def test_emit_async_mode_requires_loop(self, bus):
        with pytest.raises(InvalidArgumentError):
            bus.emit("x", mode=EmissionMode.SUSPENDING)
