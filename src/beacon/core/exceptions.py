"""
Infrastructure exceptions for Beacon.

Purpose
-------
Define the structured exception hierarchy for the event bus: malformed API
calls, listener failures captured during dispatch, and configuration errors
detected at bootstrap.

Design Notes
------------
- All exceptions inherit from `BeaconInfrastructureException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging/alerting
  - `error_code`: short, stable identifier for programmatic use
- `InvalidArgumentError` is the only exception an API caller ever sees.
  `ListenerFailure` is constructed by the dispatcher and handed to the
  error sink; it is never raised out of `emit`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging and alerting."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"  # Handled, e.g. a listener timing out
    ERROR = "error"  # A listener raised
    CRITICAL = "critical"  # Bootstrap cannot continue


class BeaconInfrastructureException(Exception):
    """
    Base exception for all Beacon errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        error_code: Optional code for programmatic handling

    Example:
        >>> raise BeaconInfrastructureException(
        ...     "Bus not initialized",
        ...     {"operation": "emit"},
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        details_str = f" | Details: {self.details}" if self.details else ""
        return f"[{self.error_code}] {self.message}{details_str}"

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}"
            ")"
        )


class InvalidArgumentError(BeaconInfrastructureException, ValueError):
    """
    Raised synchronously when a bus API call is malformed.

    Covers empty or non-string patterns and event names, non-callable
    callbacks, non-integer priorities and out-of-range limits.

    Args:
        argument: Name of the offending argument
        message: Description of the violation
        value: The rejected value (only its repr is kept)
    """

    DEFAULT_SEVERITY = ErrorSeverity.INFO

    def __init__(self, argument: str, message: str, value: Any = None) -> None:
        self.argument = argument
        super().__init__(
            f"Invalid argument '{argument}': {message}",
            details={"argument": argument, "value": repr(value)},
            error_code="INVALID_ARGUMENT",
        )


class ListenerFailure(BeaconInfrastructureException):
    """
    A listener raised (or timed out) while an emission was being delivered.

    Instances are handed to the bus error sink. The original exception is
    kept on `original_error` and chained as `__cause__`.

    Args:
        event_name: Name of the emitted event
        pattern: Pattern the failing listener was subscribed under
        listener_id: Readable identifier of the listener callback
        priority: Listener priority
        mode: Delivery mode name ("sync" or "suspending")
        original_error: The exception raised by the listener
    """

    DEFAULT_SEVERITY = ErrorSeverity.ERROR

    def __init__(
        self,
        *,
        event_name: str,
        pattern: str,
        listener_id: str,
        priority: int,
        mode: str,
        original_error: BaseException,
        severity: Optional[ErrorSeverity] = None,
    ) -> None:
        self.event_name = event_name
        self.pattern = pattern
        self.listener_id = listener_id
        self.priority = priority
        self.mode = mode
        self.original_error = original_error
        super().__init__(
            f"Listener '{listener_id}' failed for event '{event_name}': {original_error!s}",
            details={
                "event_name": event_name,
                "pattern": pattern,
                "listener_id": listener_id,
                "priority": priority,
                "mode": mode,
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            },
            severity=severity,
            error_code="LISTENER_FAILURE",
        )
        self.__cause__ = original_error


class ConfigurationError(BeaconInfrastructureException):
    """
    Raised when a configuration key is invalid or missing.

    Args:
        config_key: The configuration key that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            f"Configuration error for {config_key}: {message}",
            details={"config_key": config_key, "message": message},
            error_code="CONFIG_ERROR",
        )


def get_error_severity(exc: BaseException) -> ErrorSeverity:
    """
    Get the severity level of an exception for logging.

    Args:
        exc: Exception to check

    Returns:
        ErrorSeverity level.
    """
    if isinstance(exc, BeaconInfrastructureException):
        return exc.severity
    return ErrorSeverity.ERROR
