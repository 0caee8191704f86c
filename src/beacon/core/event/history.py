"""
EmissionHistory: bounded, diagnostic-only record of past emissions.

The ring is append-only from the dispatcher's point of view and is never
consulted when resolving or delivering listeners. Records are kept oldest
first; once the capacity is exceeded the oldest record is evicted.
"""

from __future__ import annotations

import time
from collections import deque
from typing import Deque, Optional

from beacon.core.event.router import EventRouter
from beacon.core.event.types import EmissionRecord, EventPayload


class EmissionHistory:
    """
    Fixed-capacity FIFO of EmissionRecords.

    Examples
    --------
    >>> history = EmissionHistory(max_size=2)
    >>> for name in ("a", "b", "c"):
    ...     _ = history.record(name, None)
    >>> [r.event_name for r in history.snapshot()]
    ['b', 'c']
    """

    def __init__(self, max_size: int = 100, router: Optional[EventRouter] = None) -> None:
        self._router = router or EventRouter()
        self._records: Deque[EmissionRecord] = deque(maxlen=max_size)

    @property
    def max_size(self) -> int:
        return self._records.maxlen or 0

    def record(self, event_name: str, payload: EventPayload) -> EmissionRecord:
        """Append one emission; evicts the oldest record when full."""
        entry = EmissionRecord(event_name=event_name, payload=payload, timestamp=time.time())
        self._records.append(entry)
        return entry

    def resize(self, max_size: int) -> None:
        """
        Change the capacity, keeping the newest records.

        A deque's maxlen is fixed, so the ring is rebuilt; rebuilding from
        the existing deque with a smaller maxlen drops the oldest entries.
        """
        self._records = deque(self._records, maxlen=max_size)

    def snapshot(self, pattern: Optional[str] = None) -> tuple[EmissionRecord, ...]:
        """
        Return the retained records, oldest first.

        Parameters
        ----------
        pattern:
            Optional exact name or wildcard pattern to filter by.
        """
        if pattern is None:
            return tuple(self._records)
        return tuple(
            entry for entry in self._records if self._router.matches(entry.event_name, pattern)
        )

    def recent(self, count: int) -> tuple[EmissionRecord, ...]:
        """The newest `count` records, oldest first."""
        if count <= 0:
            return ()
        return tuple(self._records)[-count:]

    def clear(self) -> None:
        self._records.clear()

    def __len__(self) -> int:
        return len(self._records)
