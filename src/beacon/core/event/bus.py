"""
Beacon EventBus: in-process publish/subscribe with deterministic ordering.

Purpose
-------
Provides the EventBus class: the public surface over the listener registry,
the wildcard router, the emission history ring, the scheduler and the
metrics recorder.

Responsibilities
----------------
- Register/unregister listeners with priorities, contexts and once-semantics
- Validate API calls and raise `InvalidArgumentError` synchronously
- Record exactly one history entry per emission
- Resolve every matching pattern (exact + wildcard), merge and re-sort
- Deliver synchronously or in suspending (asyncio) mode, isolating failures
- Introspection: history, counts, stats, per-pattern breakdown, debug info

Design Decisions
----------------
- **Instance-based**: no module-level singleton. The application builds one
  bus at bootstrap (`create_event_bus`) and passes it to its consumers;
  tests build as many isolated buses as they like.
- **Deterministic ordering**: priority desc, then registration order asc,
  across patterns.
- **Snapshot batches**: a batch is frozen when the emission starts.
  Subscriptions changed by listeners only affect later emissions.
- **Error isolation**: listener failures go to the injected error sink and
  never reach the `emit` caller.
- **Soft capacity**: exceeding the per-pattern listener cap logs a warning;
  registration always succeeds.
- **Verbose logging toggle**: `set_logging()` gates debug-level tracing of
  subscriptions and emissions. Warnings and failures are always logged.

Thread Safety
-------------
Designed for a single thread (optionally running an asyncio loop). Registry
and history mutations happen between awaits only.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional, Union

from beacon.core.event.context import emission_log_context
from beacon.core.event.errors import ErrorSink, log_listener_failure
from beacon.core.event.history import EmissionHistory
from beacon.core.event.metrics import (
    BusStats,
    EventMetrics,
    EventMetricsRecorder,
    PatternBreakdown,
    build_breakdown,
)
from beacon.core.event.registry import ListenerRegistry
from beacon.core.event.router import EventRouter
from beacon.core.event.scheduler import EventScheduler
from beacon.core.event.types import (
    BusConfiguration,
    CallbackType,
    EmissionMode,
    EmissionRecord,
    EventEnvelope,
    EventPayload,
    ListenerRecord,
)
from beacon.core.exceptions import InvalidArgumentError
from beacon.core.logging.logger import get_logger

logger = get_logger(__name__)

RECENT_EVENTS_IN_DEBUG_INFO = 10


def _require_name(argument: str, value: Any) -> str:
    if not isinstance(value, str) or not value:
        raise InvalidArgumentError(argument, "must be a non-empty string", value)
    return value


def _require_int(argument: str, value: Any, minimum: Optional[int] = None) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidArgumentError(argument, "must be an integer", value)
    if minimum is not None and value < minimum:
        raise InvalidArgumentError(argument, f"must be at least {minimum}", value)
    return value


class Subscription:
    """
    Handle returned by `EventBus.on()` / `EventBus.once()`.

    Calling the handle unsubscribes exactly the listener it was returned
    for, even when the same callback is registered more than once.

    >>> unsubscribe = bus.on("lead:created", refresh)
    >>> unsubscribe()
    True
    >>> unsubscribe()
    False
    """

    __slots__ = ("_bus", "_record")

    def __init__(self, bus: EventBus, record: ListenerRecord) -> None:
        self._bus = bus
        self._record = record

    @property
    def pattern(self) -> str:
        return self._record.pattern

    @property
    def priority(self) -> int:
        return self._record.priority

    @property
    def active(self) -> bool:
        """True while the listener can still be invoked by a future emission."""
        return self._bus._is_registered(self._record)

    def __call__(self) -> bool:
        return self._bus._remove_record(self._record)

    def __repr__(self) -> str:
        return (
            f"Subscription(pattern={self.pattern!r}, priority={self.priority}, "
            f"active={self.active})"
        )


class EventBus:
    """
    In-process publish/subscribe event bus.

    Examples
    --------
    >>> bus = EventBus()
    >>> order = []
    >>> bus.on("order:*", lambda payload: order.append("X"), priority=10)
    >>> bus.on("order:paid", lambda payload: order.append("Y"), priority=5)
    >>> bus.emit("order:paid", {"id": 1})
    >>> order
    ['X', 'Y']
    """

    def __init__(
        self,
        config: Optional[BusConfiguration] = None,
        *,
        error_sink: Optional[ErrorSink] = None,
        router: Optional[EventRouter] = None,
    ) -> None:
        """
        Initialize EventBus.

        Parameters
        ----------
        config:
            Runtime settings. Built from the static `Config` if None. The bus
            owns this object and mutates it through the `set_*` methods.
        error_sink:
            Receives a `ListenerFailure` for every failing listener. Defaults
            to logging the failure.
        router:
            Pattern matcher shared by the registry and the history ring.
        """
        self._config = config or BusConfiguration.from_config()
        _require_int("max_listeners_per_pattern", self._config.max_listeners_per_pattern, 1)
        _require_int("max_history_size", self._config.max_history_size, 0)

        self._router = router or EventRouter()
        self._registry = ListenerRegistry(self._router)
        self._history = EmissionHistory(self._config.max_history_size, self._router)
        self._scheduler = EventScheduler(self._registry, self._config)
        self._metrics = EventMetricsRecorder()
        self._error_sink: ErrorSink = error_sink or log_listener_failure
        self._initialized = False

    # ------------------------------------------------------------------ #
    # Lifecycle
    # ------------------------------------------------------------------ #

    def initialize(self, *, error_sink: Optional[ErrorSink] = None) -> None:
        """
        Mark the bus ready, optionally replacing the error sink.

        Calling it again is a no-op apart from a warning.
        """
        if self._initialized:
            logger.warning("EventBus: already initialized")
            return

        if error_sink is not None:
            self._error_sink = error_sink

        self._initialized = True
        logger.info(
            "EventBus initialized",
            extra={
                "max_listeners_per_pattern": self._config.max_listeners_per_pattern,
                "max_history_size": self._config.max_history_size,
                "logging_enabled": self._config.logging_enabled,
                "listener_timeout_seconds": self._config.listener_timeout_seconds,
            },
        )

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def config(self) -> BusConfiguration:
        return self._config

    def set_error_sink(self, sink: ErrorSink) -> None:
        if not callable(sink):
            raise InvalidArgumentError("sink", "must be callable", sink)
        self._error_sink = sink

    async def drain(self) -> None:
        """Wait for every in-flight suspending delivery to finish."""
        await self._scheduler.drain()

    def destroy(self) -> None:
        """Tear down: drop all listeners and history, reset counters."""
        self.clear()
        self.clear_history()
        self._initialized = False
        logger.info("EventBus destroyed")

    # ------------------------------------------------------------------ #
    # Subscription API
    # ------------------------------------------------------------------ #

    def on(
        self,
        pattern: str,
        callback: CallbackType,
        *,
        context: Any = None,
        priority: int = 0,
    ) -> Subscription:
        """
        Subscribe a callback to an event name or wildcard pattern.

        Parameters
        ----------
        pattern:
            Event name like "lead:created" or wildcard like "lead:*". A single
            `*` stays within one `:` segment, so a bare `"*"` only sees names
            without a separator; subscribe to `"**"` to receive every event.
        callback:
            Sync or async callable, invoked as `callback(payload, event_name)`
            (or `callback(context, payload, event_name)` with a context).
            Callables declaring fewer positional parameters (defaulted ones
            included) get only the leading arguments.
        context:
            Optional receiver passed as the first argument.
        priority:
            Signed integer; higher runs first. Equal priorities run in
            registration order.

        Returns
        -------
        Subscription:
            Callable handle that unsubscribes this listener.

        Raises
        ------
        InvalidArgumentError:
            Empty/non-string pattern, non-callable callback, non-int priority.
        """
        return self._subscribe(pattern, callback, context=context, priority=priority, once=False)

    def once(
        self,
        pattern: str,
        callback: CallbackType,
        *,
        context: Any = None,
        priority: int = 0,
    ) -> Subscription:
        """
        Subscribe a callback that runs at most once.

        The listener is removed from the registry immediately before it is
        invoked, so a re-emission from inside its body does not reach it.
        """
        return self._subscribe(pattern, callback, context=context, priority=priority, once=True)

    def _subscribe(
        self,
        pattern: str,
        callback: CallbackType,
        *,
        context: Any,
        priority: int,
        once: bool,
    ) -> Subscription:
        _require_name("pattern", pattern)
        if not callable(callback):
            raise InvalidArgumentError("callback", "must be callable", callback)
        _require_int("priority", priority)

        existing = self._registry.count(pattern)
        if existing >= self._config.max_listeners_per_pattern:
            logger.warning(
                "EventBus: max listeners reached for pattern",
                extra={
                    "pattern": pattern,
                    "max_listeners": self._config.max_listeners_per_pattern,
                    "listener_count": existing + 1,
                    "warning_type": "CapacityWarning",
                },
            )

        record = ListenerRecord(
            pattern=pattern,
            callback=callback,
            context=context,
            priority=int(priority),
            once=once,
        )
        total = self._registry.add_listener(record)

        if self._config.logging_enabled:
            logger.debug(
                "EventBus: listener added",
                extra={
                    "pattern": pattern,
                    "listener_id": record.identifier,
                    "priority": record.priority,
                    "once": once,
                    "listener_count": total,
                },
            )

        return Subscription(self, record)

    def off(self, pattern: str, callback: CallbackType) -> bool:
        """
        Unsubscribe a callback from a pattern.

        Removes the earliest-sorted registration of `callback` under exactly
        `pattern`. Removing the last listener deletes the pattern entry.

        Returns
        -------
        bool:
            True if a listener was removed, False if the pair was not
            registered.
        """
        if not isinstance(pattern, str):
            return False

        removed = self._registry.remove_listener(pattern, callback)
        if removed is None:
            return False

        if self._config.logging_enabled:
            logger.debug(
                "EventBus: listener removed",
                extra={"pattern": pattern, "listener_id": removed.identifier},
            )
        return True

    def off_all(self, pattern: str) -> int:
        """Remove every listener registered under `pattern`; returns the count."""
        if not isinstance(pattern, str):
            return 0

        count = self._registry.remove_all(pattern)
        if count and self._config.logging_enabled:
            logger.debug(
                "EventBus: all listeners removed",
                extra={"pattern": pattern, "listener_count": count},
            )
        return count

    def clear(self) -> None:
        """Remove every pattern and listener and reset the counters."""
        total = self._registry.clear_all()
        self._metrics.reset()
        logger.info("EventBus: cleared all listeners", extra={"previous_listener_count": total})

    def _remove_record(self, record: ListenerRecord) -> bool:
        removed = self._registry.remove_record(record)
        if removed and self._config.logging_enabled:
            logger.debug(
                "EventBus: listener removed",
                extra={"pattern": record.pattern, "listener_id": record.identifier},
            )
        return removed

    def _is_registered(self, record: ListenerRecord) -> bool:
        return any(
            candidate is record
            for pattern, records in self._registry.entries()
            if pattern == record.pattern
            for candidate in records
        )

    # ------------------------------------------------------------------ #
    # Emission API
    # ------------------------------------------------------------------ #

    def emit(
        self,
        event_name: str,
        payload: EventPayload = None,
        *,
        mode: Union[EmissionMode, str] = EmissionMode.SYNC,
    ) -> Optional[asyncio.Future[None]]:
        """
        Publish an event to every matching listener.

        Parameters
        ----------
        event_name:
            Name of the event to publish.
        payload:
            Opaque payload, passed by reference to every listener.
        mode:
            `EmissionMode.SYNC` (default) delivers before returning.
            `EmissionMode.SUSPENDING` schedules sequential, awaited delivery
            on the running loop and returns an awaitable that completes once
            the batch has drained.

        Returns
        -------
        None in sync mode; an awaitable (asyncio Task or Future) in
        suspending mode.

        Raises
        ------
        InvalidArgumentError:
            Empty/non-string event name, unknown mode, or suspending mode
            requested with no running event loop.
        """
        _require_name("event_name", event_name)
        mode = self._coerce_mode(mode)

        loop: Optional[asyncio.AbstractEventLoop] = None
        if mode is EmissionMode.SUSPENDING:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                raise InvalidArgumentError(
                    "mode", "suspending delivery requires a running event loop", mode.value
                ) from None

        self._metrics.record_emit(event_name)
        self._history.record(event_name, payload)

        with emission_log_context(event_name) as emission_id:
            batch = self._registry.collect(event_name)

            if self._config.logging_enabled:
                logger.debug(
                    "EventBus: emitting",
                    extra={
                        "event_name": event_name,
                        "emission_id": emission_id,
                        "mode": mode.value,
                        "listener_count": len(batch),
                    },
                )

            if not batch:
                if loop is None:
                    return None
                done: asyncio.Future[None] = loop.create_future()
                done.set_result(None)
                return done

            if loop is None:
                self._scheduler.deliver_sync(
                    event_name=event_name,
                    payload=payload,
                    batch=batch,
                    sink=self._error_sink,
                    metrics=self._metrics,
                )
                return None

            return self._scheduler.spawn(
                self._scheduler.deliver_suspending(
                    event_name=event_name,
                    payload=payload,
                    batch=batch,
                    sink=self._error_sink,
                    metrics=self._metrics,
                ),
                name=f"beacon-emit-{event_name}-{emission_id}",
            )

    async def emit_async(self, event_name: str, payload: EventPayload = None) -> None:
        """Emit in suspending mode and wait until every listener has run."""
        await self.emit(event_name, payload, mode=EmissionMode.SUSPENDING)

    def emit_envelope(
        self,
        envelope: EventEnvelope[Any],
        *,
        mode: Union[EmissionMode, str] = EmissionMode.SYNC,
    ) -> Optional[asyncio.Future[None]]:
        """Emit a tagged `EventEnvelope`; same semantics as `emit()`."""
        return self.emit(envelope.name, envelope.payload, mode=mode)

    @staticmethod
    def _coerce_mode(mode: Union[EmissionMode, str]) -> EmissionMode:
        if isinstance(mode, EmissionMode):
            return mode
        try:
            return EmissionMode(mode)
        except ValueError:
            raise InvalidArgumentError("mode", "must be 'sync' or 'suspending'", mode) from None

    # ------------------------------------------------------------------ #
    # History
    # ------------------------------------------------------------------ #

    def get_history(self, pattern: Optional[str] = None) -> tuple[EmissionRecord, ...]:
        """
        Snapshot of retained emissions, oldest first.

        Parameters
        ----------
        pattern:
            Optional event name or wildcard pattern to filter by.
        """
        if pattern is not None:
            _require_name("pattern", pattern)
        return self._history.snapshot(pattern)

    def clear_history(self) -> None:
        self._history.clear()

    # ------------------------------------------------------------------ #
    # Listener inspection
    # ------------------------------------------------------------------ #

    def get_listener_count(self, pattern: str) -> int:
        """Listeners registered under exactly `pattern` (no wildcard expansion)."""
        return self._registry.count(pattern)

    def get_event_types(self) -> list[str]:
        """Every pattern that currently has listeners, in registration order."""
        return self._registry.patterns()

    def has_listeners(self, pattern: str) -> bool:
        return self.get_listener_count(pattern) > 0

    def describe_listeners(self) -> dict[str, list[dict[str, Any]]]:
        """Per-pattern listener listing, in delivery order, for debugging tools."""
        return {
            pattern: [
                {
                    "listener_id": record.identifier,
                    "priority": record.priority,
                    "has_context": record.context is not None,
                    "once": record.once,
                    "registered_at": record.registered_at,
                }
                for record in records
            ]
            for pattern, records in self._registry.entries()
        }

    # ------------------------------------------------------------------ #
    # Configuration
    # ------------------------------------------------------------------ #

    def set_max_listeners(self, max_listeners: int) -> None:
        """Set the soft per-pattern listener cap (at least 1)."""
        self._config.max_listeners_per_pattern = _require_int("max_listeners", max_listeners, 1)

    def set_logging(self, enabled: bool) -> None:
        """Toggle verbose (debug-level) tracing of subscriptions and emissions."""
        self._config.logging_enabled = bool(enabled)

    def set_max_history_size(self, size: int) -> None:
        """Resize the history ring; shrinking keeps the newest records."""
        self._config.max_history_size = _require_int("size", size, 0)
        self._history.resize(size)

    # ------------------------------------------------------------------ #
    # Statistics
    # ------------------------------------------------------------------ #

    def get_stats(self) -> BusStats:
        return BusStats(
            total_listeners=self._registry.total_count(),
            event_types=len(self._registry),
            total_emits=self._metrics.total_emits,
            history_size=len(self._history),
            max_history_size=self._history.max_size,
            max_listeners=self._config.max_listeners_per_pattern,
        )

    def get_breakdown(self) -> list[PatternBreakdown]:
        """Per-pattern listener counts and oldest registration, busiest first."""
        return build_breakdown(self._registry.entries())

    def get_metrics(self) -> EventMetrics:
        return self._metrics.snapshot(self._registry.total_count())

    def get_metrics_summary(self) -> dict[str, Any]:
        return self.get_metrics().get_summary()

    def get_debug_info(self) -> dict[str, Any]:
        """Stats, breakdown and the most recent emissions in one structure."""
        return {
            "stats": self.get_stats().as_dict(),
            "breakdown": self.get_breakdown(),
            "recent_events": self._history.recent(RECENT_EVENTS_IN_DEBUG_INFO),
            "pending_deliveries": self._scheduler.get_background_task_count(),
            "matcher_cache": self._router.cache_info()._asdict(),
        }
