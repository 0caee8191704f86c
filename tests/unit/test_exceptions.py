"""
Unit tests for the Beacon exception hierarchy.
"""

import pytest

from beacon.core.exceptions import (
    BeaconInfrastructureException,
    ConfigurationError,
    ErrorSeverity,
    InvalidArgumentError,
    ListenerFailure,
    get_error_severity,
)


@pytest.mark.unit
class TestExceptions:
    """Structured fields, serialization and severity lookup."""

    def test_invalid_argument_fields(self):
        exc = InvalidArgumentError("priority", "must be an integer", "high")

        assert exc.argument == "priority"
        assert exc.error_code == "INVALID_ARGUMENT"
        assert exc.details["value"] == "'high'"
        assert isinstance(exc, ValueError)
        assert "[INVALID_ARGUMENT]" in str(exc)

    def test_listener_failure_chains_original(self):
        original = RuntimeError("boom")
        failure = ListenerFailure(
            event_name="lead:created",
            pattern="lead:*",
            listener_id="app.refresh@lead:*",
            priority=0,
            mode="sync",
            original_error=original,
        )

        assert failure.__cause__ is original
        assert failure.severity is ErrorSeverity.ERROR
        assert failure.to_dict()["details"]["error"] == "boom"

    def test_severity_override(self):
        failure = ListenerFailure(
            event_name="x",
            pattern="x",
            listener_id="id",
            priority=0,
            mode="suspending",
            original_error=TimeoutError(),
            severity=ErrorSeverity.WARNING,
        )

        assert get_error_severity(failure) is ErrorSeverity.WARNING

    def test_configuration_error_is_critical(self):
        exc = ConfigurationError("LOG_LEVEL", "bad")

        assert exc.severity is ErrorSeverity.CRITICAL
        assert exc.config_key == "LOG_LEVEL"

    def test_foreign_exceptions_default_to_error(self):
        assert get_error_severity(KeyError("x")) is ErrorSeverity.ERROR

    def test_base_repr(self):
        exc = BeaconInfrastructureException("failed", {"k": 1})

        assert "failed" in repr(exc)
        assert exc.to_dict()["error_type"] == "BeaconInfrastructureException"
