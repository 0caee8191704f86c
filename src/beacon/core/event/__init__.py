"""
Event System for Beacon.

Purpose
-------
Provides an in-process publish/subscribe EventBus with wildcard patterns,
priorities, once-listeners, a bounded emission history and sync or
suspending delivery, plus startup/shutdown helpers.
"""

from .bus import EventBus, Subscription
from .context import emission_log_context
from .errors import ErrorSink, log_listener_failure
from .metrics import BusStats, EventMetrics, PatternBreakdown
from .router import EventRouter
from .types import (
    BusConfiguration,
    CallbackType,
    EmissionMode,
    EmissionRecord,
    EventEnvelope,
    EventPayload,
    ListenerPriority,
    ListenerRecord,
)
from .setup import create_event_bus, shutdown_event_bus
from . import catalog

__all__ = [
    "EventBus",
    "Subscription",
    "EventRouter",
    "BusConfiguration",
    "BusStats",
    "CallbackType",
    "EmissionMode",
    "EmissionRecord",
    "ErrorSink",
    "EventEnvelope",
    "EventMetrics",
    "EventPayload",
    "ListenerPriority",
    "ListenerRecord",
    "PatternBreakdown",
    "catalog",
    "create_event_bus",
    "emission_log_context",
    "log_listener_failure",
    "shutdown_event_bus",
]
