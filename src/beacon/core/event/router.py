"""
EventRouter: wildcard event-name matching for the Beacon EventBus.

Purpose
-------
Decide whether a published event name satisfies a subscription pattern.

Supported Patterns
------------------
- Exact:     "lead:created"   → matches only "lead:created"
- Segment:   "lead:*"         → matches "lead:created", not "lead:sub:created"
- Suffix:    "*:created"      → matches "lead:created", "business:created"
- Deep:      "lead:**"        → matches "lead:created" and "lead:sub:created"
- Global:    "**"             → matches any event
- Single:    "lead:update?"   → matches "lead:updated", not "lead:update"

Notes
-----
- `*` matches any run of characters within one `:`-separated segment.
- `**` matches any run of characters, separators included.
- `?` matches exactly one character.
- Every other character is literal (".", "[", "+" have no special meaning).
- Matching is anchored at both ends and case-sensitive.
- Compiled matchers are cached per pattern string. The cache is keyed on the
  pattern text alone, so registering or removing patterns never changes what
  a given (event, pattern) pair evaluates to.
"""

from __future__ import annotations

import re
from functools import lru_cache

SEGMENT_SEPARATOR = ":"
WILDCARD_CHARS = frozenset("*?")

_SEGMENT_RUN = f"[^{re.escape(SEGMENT_SEPARATOR)}]*"


def is_wildcard(pattern: str) -> bool:
    """True when the pattern contains `*` or `?`."""
    return any(char in WILDCARD_CHARS for char in pattern)


@lru_cache(maxsize=1024)
def compile_pattern(pattern: str) -> re.Pattern[str]:
    """
    Translate a wildcard pattern into an anchored regular expression.

    >>> compile_pattern("lead:*").pattern
    'lead:[^:]*'
    """
    parts: list[str] = []
    index = 0
    length = len(pattern)

    while index < length:
        char = pattern[index]
        if char == "*":
            if index + 1 < length and pattern[index + 1] == "*":
                parts.append(".*")
                # "***" and longer runs collapse into a single "**"
                while index < length and pattern[index] == "*":
                    index += 1
                continue
            parts.append(_SEGMENT_RUN)
        elif char == "?":
            parts.append(".")
        else:
            parts.append(re.escape(char))
        index += 1

    return re.compile("".join(parts), re.DOTALL)


class EventRouter:
    """
    Matches event names against subscription patterns.

    Stateless apart from the module-level compile cache; one instance is
    shared by the registry, the history ring and the bus.

    Examples
    --------
    >>> router = EventRouter()
    >>> router.matches("lead:created", "lead:*")
    True
    >>> router.matches("lead:sub:created", "lead:*")
    False
    >>> router.matches("ab", "a?")
    True
    """

    def matches(self, event_name: str, pattern: str) -> bool:
        """
        Check if an event name matches a pattern.

        Parameters
        ----------
        event_name:
            The event name to check (e.g., "lead:created").
        pattern:
            The pattern to match against. May contain wildcards.

        Returns
        -------
        bool:
            True if the event name matches the pattern, False otherwise.
        """
        if event_name == pattern:
            return True

        if not is_wildcard(pattern):
            return False

        return compile_pattern(pattern).fullmatch(event_name) is not None

    @staticmethod
    def cache_info():
        """Expose compile cache statistics for debugging tools."""
        return compile_pattern.cache_info()
