"""
Core Event Types for the Beacon EventBus.

Purpose
-------
Type definitions shared by every part of the event system: listener
priorities, delivery modes, listener records, emission records and the
per-bus runtime configuration.

Design Decisions
----------------
- **Signed integer priorities**: any `int` is a valid priority; higher runs
  first. `ListenerPriority` only names a few conventional levels.
- **Registration sequence**: a process-wide monotonic counter stamps every
  ListenerRecord. Ordering is (priority desc, sequence asc), so ties between
  listeners of different patterns resolve by registration order.
- **Identity semantics**: ListenerRecord compares by identity (`eq=False`);
  the same callback registered twice yields two independent records.
- **Opaque payloads**: payloads are passed by reference, never copied or
  serialized.
"""

from __future__ import annotations

import inspect
import itertools
import time
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any, Awaitable, Callable, Generic, TypeVar, Union

from beacon.core.config.config import Config

EventPayload = Any

CallbackType = Union[
    Callable[..., Any],
    Callable[..., Awaitable[Any]],
]

P = TypeVar("P")

_sequence = itertools.count(1)


class ListenerPriority(IntEnum):
    """
    Conventional priority levels. Higher values run first.

    >>> ListenerPriority.HIGH > ListenerPriority.NORMAL
    True
    """

    CRITICAL = 100
    HIGH = 10
    NORMAL = 0
    LOW = -10


class EmissionMode(Enum):
    """How a batch is delivered."""

    SYNC = "sync"
    SUSPENDING = "suspending"


def _accepted_positional(callback: CallbackType, skip: int) -> int:
    """
    Number of positional arguments a callback accepts, capped at 2.

    `skip` leading parameters are reserved for the bound context. Defaulted
    positional parameters count too, so `def on_paid(payload=None)` still
    receives the payload; bind extra values with `functools.partial` instead
    of default arguments. Callables whose signature cannot be inspected, or
    that take `*args`, receive both arguments.
    """
    try:
        params = list(inspect.signature(callback).parameters.values())
    except (TypeError, ValueError):
        return 2

    count = 0
    for param in params:
        if param.kind is inspect.Parameter.VAR_POSITIONAL:
            return 2
        if param.kind in (
            inspect.Parameter.POSITIONAL_ONLY,
            inspect.Parameter.POSITIONAL_OR_KEYWORD,
        ):
            count += 1
    return max(0, min(2, count - skip))


def describe_callback(callback: CallbackType) -> str:
    """Readable identifier for a callback: module.qualname."""
    module = getattr(callback, "__module__", None) or "unknown"
    qualname = getattr(callback, "__qualname__", None) or getattr(
        callback, "__name__", type(callback).__name__
    )
    return f"{module}.{qualname}"


@dataclass(slots=True, eq=False)
class ListenerRecord:
    """
    A registered listener plus its invocation metadata.

    Attributes
    ----------
    pattern:
        Pattern the listener was registered under (verbatim).
    callback:
        Sync or async callable. Invoked as `callback(payload, event_name)`,
        or `callback(context, payload, event_name)` when a context is bound.
        Callbacks declaring fewer positional parameters (defaulted ones
        included) get only the leading arguments they accept.
    context:
        Optional receiver passed as the first argument.
    priority:
        Signed integer; higher runs first.
    once:
        Remove the listener immediately before its first invocation.
    sequence:
        Monotonic registration counter used as the tie-break.
    registered_at:
        Wall-clock registration time (seconds since epoch), introspection only.
    consumed:
        Set when a once-listener has been claimed for invocation.
    """

    pattern: str
    callback: CallbackType
    context: Any = None
    priority: int = 0
    once: bool = False
    sequence: int = field(default_factory=lambda: next(_sequence))
    registered_at: float = field(default_factory=time.time)
    consumed: bool = False
    arity: int = field(init=False, default=2)

    def __post_init__(self) -> None:
        self.arity = _accepted_positional(self.callback, 1 if self.context is not None else 0)

    @property
    def sort_key(self) -> tuple[int, int]:
        return (-self.priority, self.sequence)

    @property
    def identifier(self) -> str:
        return f"{describe_callback(self.callback)}@{self.pattern}"

    def invoke(self, payload: EventPayload, event_name: str) -> Any:
        args = (payload, event_name)[: self.arity]
        if self.context is not None:
            return self.callback(self.context, *args)
        return self.callback(*args)


@dataclass(frozen=True, slots=True)
class EmissionRecord:
    """One past emission, as kept by the history ring."""

    event_name: str
    payload: EventPayload
    timestamp: float


@dataclass(frozen=True, slots=True)
class EventEnvelope(Generic[P]):
    """
    Tagged envelope pairing an event name with a typed payload.

    Producers that want static typing can annotate their payloads through the
    envelope and emit it with `EventBus.emit_envelope`; the bus itself
    treats the payload as opaque.

    >>> envelope = EventEnvelope("lead:created", {"id": 1})
    >>> envelope.name
    'lead:created'
    """

    name: str
    payload: P


@dataclass(slots=True)
class BusConfiguration:
    """
    Mutable, per-bus runtime settings.

    Attributes
    ----------
    max_listeners_per_pattern:
        Soft cap; exceeding it logs a warning but never blocks registration.
    max_history_size:
        Capacity of the emission history ring.
    logging_enabled:
        Verbose (debug-level) logging of subscriptions and emissions.
        Warnings and listener failures are logged regardless.
    listener_timeout_seconds:
        Per-listener timeout in suspending mode; 0 disables it.
    """

    max_listeners_per_pattern: int = 50
    max_history_size: int = 100
    logging_enabled: bool = False
    listener_timeout_seconds: float = 0.0

    @classmethod
    def from_config(cls) -> BusConfiguration:
        """Build bus settings from the static `Config`."""
        return cls(
            max_listeners_per_pattern=Config.EVENT_BUS_MAX_LISTENERS,
            max_history_size=Config.EVENT_BUS_MAX_HISTORY,
            logging_enabled=Config.EVENT_BUS_LOGGING,
            listener_timeout_seconds=Config.EVENT_BUS_LISTENER_TIMEOUT_SECONDS,
        )
