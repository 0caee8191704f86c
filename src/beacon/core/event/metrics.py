"""
Metrics and introspection for the Beacon EventBus.

Purpose
-------
Counters the dispatcher bumps (emissions and listener failures per event)
and immutable, on-demand views assembled from those counters, the registry
and the history ring for debugging tools.

Design Decisions
----------------
- Only raw counters are stored. Aggregates (totals, per-pattern breakdown,
  oldest listener, error rate) are computed when asked for and never cached.
- Snapshots are frozen dataclasses holding copies, so a debugging tool can
  keep one around without seeing later mutations.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Iterable

from beacon.core.event.types import ListenerRecord


@dataclass(frozen=True)
class EventMetrics:
    """
    Immutable snapshot of event bus counters.

    Attributes
    ----------
    events_emitted:
        Mapping of event names to emission counts.
    listener_errors:
        Mapping of event names to listener failure counts.
    total_listeners:
        Number of registered listeners when the snapshot was taken.

    Examples
    --------
    >>> metrics = EventMetrics(
    ...     events_emitted={"lead:created": 40},
    ...     listener_errors={"lead:created": 2},
    ...     total_listeners=3,
    ... )
    >>> metrics.get_summary()["error_rate"]
    5.0
    """

    events_emitted: dict[str, int] = field(default_factory=dict)
    listener_errors: dict[str, int] = field(default_factory=dict)
    total_listeners: int = 0

    def get_summary(self) -> dict[str, Any]:
        """
        Generate a formatted summary of metrics.

        Returns
        -------
        dict[str, Any]:
            total_events_emitted, events_by_type, total_errors,
            errors_by_event, total_listeners and error_rate (listener
            failures per 100 emissions; exceeds 100 when several listeners
            fail on one emission).
        """
        total_events = sum(self.events_emitted.values())
        total_errors = sum(self.listener_errors.values())
        error_rate = (total_errors / max(1, total_events)) * 100.0

        return {
            "total_events_emitted": total_events,
            "events_by_type": dict(self.events_emitted),
            "total_errors": total_errors,
            "errors_by_event": dict(self.listener_errors),
            "total_listeners": self.total_listeners,
            "error_rate": round(error_rate, 2),
        }


@dataclass(frozen=True)
class PatternBreakdown:
    """Per-pattern listener statistics."""

    pattern: str
    listener_count: int
    oldest_listener: float


@dataclass(frozen=True)
class BusStats:
    """Bus-wide totals, as reported by `EventBus.get_stats()`."""

    total_listeners: int
    event_types: int
    total_emits: int
    history_size: int
    max_history_size: int
    max_listeners: int

    def as_dict(self) -> dict[str, int]:
        return {
            "total_listeners": self.total_listeners,
            "event_types": self.event_types,
            "total_emits": self.total_emits,
            "history_size": self.history_size,
            "max_history_size": self.max_history_size,
            "max_listeners": self.max_listeners,
        }


def build_breakdown(
    entries: Iterable[tuple[str, tuple[ListenerRecord, ...]]],
) -> list[PatternBreakdown]:
    """
    Per-pattern counts and oldest registration time, busiest pattern first.

    Patterns with equal counts keep registry order.
    """
    breakdown = [
        PatternBreakdown(
            pattern=pattern,
            listener_count=len(records),
            oldest_listener=min(record.registered_at for record in records),
        )
        for pattern, records in entries
        if records
    ]
    breakdown.sort(key=lambda item: item.listener_count, reverse=True)
    return breakdown


class EventMetricsRecorder:
    """
    Mutable counters for the EventBus.

    Counters are keyed per distinct event name and grow until `reset()`,
    which `EventBus.clear()` calls. Keep event names low-cardinality and
    carry identifiers in the payload instead.

    Thread Safety
    -------------
    Not thread-safe. Designed for single-threaded (asyncio) usage.

    Examples
    --------
    >>> recorder = EventMetricsRecorder()
    >>> recorder.record_emit("lead:created")
    >>> recorder.record_error("lead:created")
    >>> recorder.total_emits
    1
    """

    def __init__(self) -> None:
        self._events_emitted: defaultdict[str, int] = defaultdict(int)
        self._listener_errors: defaultdict[str, int] = defaultdict(int)

    def record_emit(self, event_name: str) -> None:
        self._events_emitted[event_name] += 1

    def record_error(self, event_name: str) -> None:
        self._listener_errors[event_name] += 1

    @property
    def total_emits(self) -> int:
        return sum(self._events_emitted.values())

    @property
    def total_errors(self) -> int:
        return sum(self._listener_errors.values())

    def reset(self) -> None:
        self._events_emitted.clear()
        self._listener_errors.clear()

    def snapshot(self, total_listeners: int) -> EventMetrics:
        """
        Return an immutable snapshot of current counters.

        Creates new dict instances to prevent accidental mutation leaks.
        """
        return EventMetrics(
            events_emitted=dict(self._events_emitted),
            listener_errors=dict(self._listener_errors),
            total_listeners=total_listeners,
        )
