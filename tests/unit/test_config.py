"""
Unit tests for Config.

Tests environment parsing, fallback to defaults, bounds checking and the
production validation gate.
"""

import pytest

from beacon.core.config import Config, Environment
from beacon.core.event import BusConfiguration
from beacon.core.exceptions import ConfigurationError

_KEYS = (
    "ENVIRONMENT",
    "LOG_LEVEL",
    "EVENT_BUS_MAX_LISTENERS",
    "EVENT_BUS_MAX_HISTORY",
    "EVENT_BUS_LOGGING",
    "EVENT_BUS_LISTENER_TIMEOUT_SECONDS",
)


@pytest.fixture
def env(monkeypatch):
    """Clean event bus environment; Config is reloaded after each test."""
    for key in _KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "testing")
    yield monkeypatch
    monkeypatch.undo()
    Config.load()


@pytest.mark.unit
class TestLoading:
    """Values come from the environment, with defaults."""

    def test_defaults(self, env):
        Config.load()

        assert Config.EVENT_BUS_MAX_LISTENERS == 50
        assert Config.EVENT_BUS_MAX_HISTORY == 100
        assert Config.EVENT_BUS_LISTENER_TIMEOUT_SECONDS == 0.0
        assert Config.is_testing() is True

    def test_values_from_environment(self, env):
        env.setenv("EVENT_BUS_MAX_LISTENERS", "5")
        env.setenv("EVENT_BUS_MAX_HISTORY", "0")
        env.setenv("EVENT_BUS_LOGGING", "yes")
        env.setenv("EVENT_BUS_LISTENER_TIMEOUT_SECONDS", "2.5")
        Config.load()

        assert Config.EVENT_BUS_MAX_LISTENERS == 5
        assert Config.EVENT_BUS_MAX_HISTORY == 0
        assert Config.EVENT_BUS_LOGGING is True
        assert Config.EVENT_BUS_LISTENER_TIMEOUT_SECONDS == 2.5

    def test_bus_logging_follows_environment(self, env):
        env.setenv("ENVIRONMENT", "development")
        Config.load()
        assert Config.EVENT_BUS_LOGGING is True

        env.setenv("ENVIRONMENT", "production")
        Config.load()
        assert Config.EVENT_BUS_LOGGING is False

    def test_bus_configuration_from_config(self, env):
        env.setenv("EVENT_BUS_MAX_LISTENERS", "7")
        Config.load()

        settings = BusConfiguration.from_config()

        assert settings.max_listeners_per_pattern == 7
        assert settings.max_history_size == 100


@pytest.mark.unit
class TestInvalidValues:
    """Invalid values fall back to defaults and are recorded."""

    @pytest.mark.parametrize("raw", ["abc", "0", "999999"])
    def test_max_listeners_out_of_range(self, env, raw):
        env.setenv("EVENT_BUS_MAX_LISTENERS", raw)
        Config.load()

        assert Config.EVENT_BUS_MAX_LISTENERS == 50
        assert "EVENT_BUS_MAX_LISTENERS" in Config.get_metrics().validation_errors

    def test_negative_timeout_rejected(self, env):
        env.setenv("EVENT_BUS_LISTENER_TIMEOUT_SECONDS", "-1")
        Config.load()

        assert Config.EVENT_BUS_LISTENER_TIMEOUT_SECONDS == 0.0

    def test_invalid_boolean_uses_default(self, env):
        env.setenv("EVENT_BUS_LOGGING", "maybe")
        Config.load()

        assert Config.EVENT_BUS_LOGGING is False

    def test_reload_forgets_previous_errors(self, env):
        env.setenv("EVENT_BUS_MAX_HISTORY", "-5")
        Config.load()
        env.delenv("EVENT_BUS_MAX_HISTORY")
        Config.load()

        assert Config.get_metrics().validation_errors == {}


@pytest.mark.unit
class TestValidation:
    """Production refuses rejected values; other environments tolerate them."""

    def test_production_raises_on_rejected_value(self, env):
        env.setenv("ENVIRONMENT", "production")
        env.setenv("EVENT_BUS_MAX_HISTORY", "lots")
        Config.load()

        with pytest.raises(ConfigurationError) as exc_info:
            Config.validate()

        assert exc_info.value.config_key == "EVENT_BUS_MAX_HISTORY"

    def test_development_tolerates_rejected_value(self, env):
        env.setenv("ENVIRONMENT", "development")
        env.setenv("EVENT_BUS_MAX_HISTORY", "lots")
        Config.load()

        Config.validate()

        assert Config.EVENT_BUS_MAX_HISTORY == 100

    def test_invalid_log_level_reset(self, env):
        env.setenv("LOG_LEVEL", "LOUD")
        Config.load()
        Config.validate()

        assert Config.LOG_LEVEL == "INFO"

    def test_summary(self, env):
        Config.load()

        summary = Config.get_config_summary()

        assert summary["environment"] == "testing"
        assert summary["event_bus_max_history"] == 100


@pytest.mark.unit
class TestEnvironment:
    def test_from_string_is_case_insensitive(self):
        assert Environment.from_string("Production") is Environment.PRODUCTION

    def test_unknown_falls_back_to_development(self):
        assert Environment.from_string("moon") is Environment.DEVELOPMENT
