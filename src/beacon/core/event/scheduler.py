"""
EventScheduler: listener delivery for the Beacon EventBus.

Purpose
-------
Deliver an already-resolved batch of listeners, either synchronously in the
caller's turn or one at a time in suspending (asyncio) mode, isolating every
listener failure.

Responsibilities
----------------
- Invoke listeners strictly in batch order in both modes
- Claim once-listeners (remove from the registry) immediately before their
  invocation, and never invoke a claimed record twice
- Await each suspending listener before starting the next one
- Apply the optional per-listener timeout in suspending mode
- Route every failure to the error sink via `handle_listener_error`
- Track delivery tasks so they are not garbage collected mid-flight

Execution Model
---------------
- SYNC: `deliver_sync()` runs the batch to completion before returning. A
  listener that returns an awaitable has it scheduled as a tracked task on
  the running loop; its failure is reported like any other. With no running
  loop the awaitable is closed and reported as a failure.
- SUSPENDING: `deliver_suspending()` is a coroutine; the bus wraps it in a
  tracked task. Listeners are awaited sequentially, never concurrently.
- Separate emissions are independent; no ordering holds between the
  listeners of two emissions that are draining at the same time.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Any, Awaitable, Coroutine, Optional

from beacon.core.event.errors import ErrorSink, handle_listener_error
from beacon.core.event.metrics import EventMetricsRecorder
from beacon.core.event.registry import ListenerRegistry
from beacon.core.event.types import (
    BusConfiguration,
    EmissionMode,
    EventPayload,
    ListenerRecord,
)
from beacon.core.exceptions import ErrorSeverity
from beacon.core.logging.logger import get_logger

logger = get_logger(__name__)


class EventScheduler:
    """
    Delivers listener batches for one EventBus.

    Examples
    --------
    >>> scheduler = EventScheduler(registry, BusConfiguration())
    >>> scheduler.deliver_sync(
    ...     event_name="lead:created",
    ...     payload={"id": 1},
    ...     batch=registry.collect("lead:created"),
    ...     sink=log_listener_failure,
    ...     metrics=None,
    ... )
    """

    def __init__(self, registry: ListenerRegistry, config: BusConfiguration) -> None:
        self._registry = registry
        self._config = config
        self._background_tasks: set[asyncio.Task[Any]] = set()

    # ------------------------------------------------------------------ #
    # Once handling
    # ------------------------------------------------------------------ #

    def _claim(self, listener: ListenerRecord, event_name: str) -> bool:
        """
        Decide whether `listener` may run now.

        Once-listeners are marked consumed and removed from the registry
        before their body executes, so a re-emission from inside the body
        cannot reach them again.
        """
        if not listener.once:
            return True

        if listener.consumed:
            return False

        listener.consumed = True
        self._registry.remove_record(listener)

        if self._config.logging_enabled:
            logger.debug(
                "EventBus: once listener released",
                extra={"event_name": event_name, "listener_id": listener.identifier},
            )
        return True

    # ------------------------------------------------------------------ #
    # Sync delivery
    # ------------------------------------------------------------------ #

    def deliver_sync(
        self,
        *,
        event_name: str,
        payload: EventPayload,
        batch: list[ListenerRecord],
        sink: ErrorSink,
        metrics: Optional[EventMetricsRecorder],
    ) -> None:
        """Invoke every listener in the caller's turn, in batch order."""
        for listener in batch:
            if not self._claim(listener, event_name):
                continue

            self._trace(event_name, listener, EmissionMode.SYNC)

            try:
                result = listener.invoke(payload, event_name)
            except Exception as exc:
                handle_listener_error(
                    event_name=event_name,
                    listener=listener,
                    exc=exc,
                    mode=EmissionMode.SYNC,
                    sink=sink,
                    metrics=metrics,
                )
                continue

            if inspect.isawaitable(result):
                self._adopt_awaitable(event_name, listener, result, sink, metrics)

    def _adopt_awaitable(
        self,
        event_name: str,
        listener: ListenerRecord,
        awaitable: Awaitable[Any],
        sink: ErrorSink,
        metrics: Optional[EventMetricsRecorder],
    ) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            handle_listener_error(
                event_name=event_name,
                listener=listener,
                exc=RuntimeError(
                    "listener returned an awaitable during sync delivery "
                    "but no event loop is running"
                ),
                mode=EmissionMode.SYNC,
                sink=sink,
                metrics=metrics,
            )
            return

        self._track(
            loop.create_task(
                self._await_detached(event_name, listener, awaitable, sink, metrics),
                name=f"beacon-listener-{listener.identifier}",
            )
        )

    async def _await_detached(
        self,
        event_name: str,
        listener: ListenerRecord,
        awaitable: Awaitable[Any],
        sink: ErrorSink,
        metrics: Optional[EventMetricsRecorder],
    ) -> None:
        try:
            await awaitable
        except Exception as exc:
            handle_listener_error(
                event_name=event_name,
                listener=listener,
                exc=exc,
                mode=EmissionMode.SYNC,
                sink=sink,
                metrics=metrics,
            )

    # ------------------------------------------------------------------ #
    # Suspending delivery
    # ------------------------------------------------------------------ #

    async def deliver_suspending(
        self,
        *,
        event_name: str,
        payload: EventPayload,
        batch: list[ListenerRecord],
        sink: ErrorSink,
        metrics: Optional[EventMetricsRecorder],
    ) -> None:
        """Invoke and await each listener in turn, never concurrently."""
        timeout = self._config.listener_timeout_seconds

        for listener in batch:
            if not self._claim(listener, event_name):
                continue

            self._trace(event_name, listener, EmissionMode.SUSPENDING)

            try:
                result = listener.invoke(payload, event_name)
                if inspect.isawaitable(result):
                    await self._await_with_timeout(result, timeout)
            except asyncio.TimeoutError as exc:
                handle_listener_error(
                    event_name=event_name,
                    listener=listener,
                    exc=exc,
                    mode=EmissionMode.SUSPENDING,
                    sink=sink,
                    metrics=metrics,
                    severity=ErrorSeverity.WARNING,
                )
            except Exception as exc:
                handle_listener_error(
                    event_name=event_name,
                    listener=listener,
                    exc=exc,
                    mode=EmissionMode.SUSPENDING,
                    sink=sink,
                    metrics=metrics,
                )

    @staticmethod
    async def _await_with_timeout(awaitable: Awaitable[Any], timeout: float) -> Any:
        # No timeout protection if timeout is non-positive
        if timeout <= 0:
            return await awaitable
        return await asyncio.wait_for(awaitable, timeout=timeout)

    # ------------------------------------------------------------------ #
    # Task tracking
    # ------------------------------------------------------------------ #

    def spawn(self, coro: Coroutine[Any, Any, None], *, name: str) -> asyncio.Task[None]:
        """Schedule a delivery coroutine on the running loop and track it."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._track(task)
        return task

    def _track(self, task: asyncio.Task[Any]) -> None:
        self._background_tasks.add(task)
        # Auto-remove from set when task completes
        task.add_done_callback(self._background_tasks.discard)

    async def drain(self) -> None:
        """Wait until every tracked delivery task has finished."""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    def get_background_task_count(self) -> int:
        return len(self._background_tasks)

    # ------------------------------------------------------------------ #
    # Logging
    # ------------------------------------------------------------------ #

    def _trace(self, event_name: str, listener: ListenerRecord, mode: EmissionMode) -> None:
        if self._config.logging_enabled:
            logger.debug(
                "EventBus: executing listener",
                extra={
                    "event_name": event_name,
                    "listener_id": listener.identifier,
                    "priority": listener.priority,
                    "mode": mode.value,
                },
            )
