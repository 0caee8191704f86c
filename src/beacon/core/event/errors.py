"""
Error handling helpers for the Beacon EventBus.

Purpose
-------
Centralize what happens when a listener fails: wrap the exception in a
`ListenerFailure`, count it, and hand it to the bus error sink. Nothing in
here ever raises; a failing listener must only degrade the feature it
powers.

Error Sink Contract
-------------------
An error sink is any callable taking one `ListenerFailure`. It is injected
into the bus (for example a telemetry client adapter). The default sink,
`log_listener_failure`, logs the failure with its traceback. A sink that
raises is itself logged and ignored.
"""

from __future__ import annotations

import logging
from logging import Logger
from typing import Callable, Optional

from beacon.core.event.metrics import EventMetricsRecorder
from beacon.core.event.types import EmissionMode, ListenerRecord
from beacon.core.exceptions import ErrorSeverity, ListenerFailure, get_error_severity
from beacon.core.logging.logger import get_logger

logger = get_logger(__name__)

ErrorSink = Callable[[ListenerFailure], None]

_SEVERITY_LEVELS = {
    ErrorSeverity.DEBUG: logging.DEBUG,
    ErrorSeverity.INFO: logging.INFO,
    ErrorSeverity.WARNING: logging.WARNING,
    ErrorSeverity.ERROR: logging.ERROR,
    ErrorSeverity.CRITICAL: logging.CRITICAL,
}


def log_listener_failure(failure: ListenerFailure) -> None:
    """Default error sink: log the failure at its severity, with traceback."""
    original = failure.original_error
    logger.log(
        _SEVERITY_LEVELS[get_error_severity(failure)],
        "EventBus listener error",
        extra=failure.details,
        exc_info=(type(original), original, original.__traceback__),
    )


def handle_listener_error(
    *,
    event_name: str,
    listener: ListenerRecord,
    exc: BaseException,
    mode: EmissionMode,
    sink: ErrorSink,
    metrics: Optional[EventMetricsRecorder],
    severity: Optional[ErrorSeverity] = None,
    log: Logger = logger,
) -> ListenerFailure:
    """
    Report a listener failure to the sink and update metrics.

    Parameters
    ----------
    event_name:
        Name of the event being delivered.
    listener:
        The ListenerRecord that failed.
    exc:
        The exception raised by the listener.
    mode:
        Delivery mode of the emission.
    sink:
        Error sink receiving the ListenerFailure.
    metrics:
        Optional recorder to update.
    severity:
        Override for the failure severity (timeouts report WARNING).

    Returns
    -------
    ListenerFailure:
        The failure handed to the sink.
    """
    if metrics is not None:
        metrics.record_error(event_name)

    failure = ListenerFailure(
        event_name=event_name,
        pattern=listener.pattern,
        listener_id=listener.identifier,
        priority=listener.priority,
        mode=mode.value,
        original_error=exc,
        severity=severity,
    )

    try:
        sink(failure)
    except Exception as sink_exc:
        log.error(
            "EventBus error sink failed",
            extra={
                "event_name": event_name,
                "listener_id": listener.identifier,
                "sink_error": str(sink_exc),
                "sink_error_type": type(sink_exc).__name__,
            },
            exc_info=True,
        )

    return failure
