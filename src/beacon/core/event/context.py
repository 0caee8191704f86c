"""
Event log context helpers for the Beacon EventBus.

While an emission is being delivered, every log line (including lines logged
by listeners) carries the event name and a short emission id. Suspending
deliveries run in a task created inside this context, and asyncio copies
the context into the task, so they are tagged as well.
"""

from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Iterator

from beacon.core.logging.logger import reset_log_context, set_log_context


def new_emission_id() -> str:
    return uuid.uuid4().hex[:12]


@contextmanager
def emission_log_context(event_name: str) -> Iterator[str]:
    """
    Tag logs with the emission's event name and id for the enclosed block.

    >>> with emission_log_context("lead:created") as emission_id:
    ...     logger.info("delivering")  # carries event_name and emission_id
    """
    emission_id = new_emission_id()
    token = set_log_context(event_name=event_name, emission_id=emission_id)
    try:
        yield emission_id
    finally:
        reset_log_context(token)
