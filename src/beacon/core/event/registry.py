"""
ListenerRegistry: storage and lookup for EventBus listeners.

Purpose
-------
Own the pattern → ordered listener list mapping and build the merged batch
for an emission.

Responsibilities
----------------
- Store listeners per pattern (exact and wildcard patterns share one map)
- Keep each entry ordered by (priority desc, registration sequence asc)
- Remove listeners by callback, by record, by pattern, or all at once
- Prune entries the moment their last listener goes away
- Collect the merged, re-sorted snapshot batch for an event name
- Provide introspection (counts, patterns, entries)

Design Decisions
----------------
- **No locking**: the bus runs on one cooperative thread, so dict and list
  mutations are atomic between awaits.
- **Insertion-ordered dict**: patterns iterate in first-registration order,
  which keeps batch construction deterministic before the final sort.
- **Re-sort after merge**: entries are each sorted, but merging entries can
  interleave priorities, so `collect()` always sorts the merged batch.
- **Snapshots**: `collect()` returns a new list; later registry mutations
  never reach a batch that is already being delivered.
"""

from __future__ import annotations

import bisect
from typing import Iterator, Optional

from beacon.core.event.router import EventRouter
from beacon.core.event.types import CallbackType, ListenerRecord


def _sort_key(record: ListenerRecord) -> tuple[int, int]:
    return record.sort_key


class ListenerRegistry:
    """
    Registry for event listeners, keyed by pattern.

    Thread Safety
    -------------
    Not thread-safe. Designed for single-threaded (asyncio) usage.

    Examples
    --------
    >>> registry = ListenerRegistry()
    >>> registry.add_listener(ListenerRecord(pattern="lead:*", callback=print))
    1
    >>> [r.pattern for r in registry.collect("lead:created")]
    ['lead:*']
    """

    def __init__(self, router: Optional[EventRouter] = None) -> None:
        self._router = router or EventRouter()
        self._entries: dict[str, list[ListenerRecord]] = {}

    # ------------------------------------------------------------------ #
    # Modification
    # ------------------------------------------------------------------ #

    def add_listener(self, record: ListenerRecord) -> int:
        """
        Store a listener under its pattern.

        Returns
        -------
        int:
            Number of listeners on the pattern after insertion.
        """
        entry = self._entries.setdefault(record.pattern, [])
        # Sequence numbers only grow, so bisecting on the sort key keeps
        # equal-priority listeners in registration order.
        bisect.insort_right(entry, record, key=_sort_key)
        return len(entry)

    def remove_listener(self, pattern: str, callback: CallbackType) -> Optional[ListenerRecord]:
        """
        Remove the first listener on `pattern` whose callback equals `callback`.

        Returns
        -------
        Optional[ListenerRecord]:
            The removed record, or None if the pair was not registered.
        """
        entry = self._entries.get(pattern)
        if not entry:
            return None

        for index, record in enumerate(entry):
            if record.callback == callback:
                del entry[index]
                self._prune(pattern)
                return record

        return None

    def remove_record(self, record: ListenerRecord) -> bool:
        """Remove exactly this record. False if it is no longer registered."""
        entry = self._entries.get(record.pattern)
        if not entry:
            return False

        for index, candidate in enumerate(entry):
            if candidate is record:
                del entry[index]
                self._prune(record.pattern)
                return True

        return False

    def remove_all(self, pattern: str) -> int:
        """Remove every listener on `pattern`; returns how many were removed."""
        entry = self._entries.pop(pattern, None)
        return len(entry) if entry else 0

    def clear_all(self) -> int:
        """Remove all listeners and return the previous total count."""
        total = self.total_count()
        self._entries.clear()
        return total

    def _prune(self, pattern: str) -> None:
        if not self._entries.get(pattern):
            self._entries.pop(pattern, None)

    # ------------------------------------------------------------------ #
    # Lookup
    # ------------------------------------------------------------------ #

    def collect(self, event_name: str) -> list[ListenerRecord]:
        """
        Build the delivery batch for an event name.

        Every pattern the router confirms is merged into one list, which is
        then re-sorted by (priority desc, sequence asc).

        Returns
        -------
        list[ListenerRecord]:
            A fresh list; the caller owns it.
        """
        batch: list[ListenerRecord] = []

        for pattern, entry in self._entries.items():
            if self._router.matches(event_name, pattern):
                batch.extend(entry)

        batch.sort(key=_sort_key)
        return batch

    # ------------------------------------------------------------------ #
    # Introspection
    # ------------------------------------------------------------------ #

    def count(self, pattern: str) -> int:
        """Listeners registered under exactly this pattern."""
        return len(self._entries.get(pattern, ()))

    def total_count(self) -> int:
        return sum(len(entry) for entry in self._entries.values())

    def patterns(self) -> list[str]:
        """Registered patterns, in first-registration order."""
        return list(self._entries)

    def entries(self) -> Iterator[tuple[str, tuple[ListenerRecord, ...]]]:
        """Yield (pattern, listeners) pairs as immutable snapshots."""
        for pattern, entry in list(self._entries.items()):
            yield pattern, tuple(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, pattern: object) -> bool:
        return pattern in self._entries
