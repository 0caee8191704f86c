"""
Pytest Configuration and Fixtures for Beacon Tests
==================================================

Purpose
-------
Centralized test fixtures and configuration for the Beacon test suite.
Provides isolated EventBus instances, a recording error sink, and helpers
for listener bookkeeping.

Architecture Notes
------------------
- Every test gets its own EventBus; nothing is shared between tests
- Async tests use pytest-asyncio (`@pytest.mark.asyncio`)
- Mocks come from pytest-mock (`mocker`)
"""

from __future__ import annotations

import os
from typing import Any, Callable, List

import pytest

from beacon.core.config.config import Config
from beacon.core.event import BusConfiguration, EventBus
from beacon.core.exceptions import ListenerFailure

# ============================================================================
# PYTEST CONFIGURATION
# ============================================================================


def pytest_configure(config):
    """Configure pytest environment."""
    os.environ["ENVIRONMENT"] = "testing"
    os.environ["LOG_LEVEL"] = "DEBUG"
    Config.load()


# ============================================================================
# EVENT BUS FIXTURES
# ============================================================================


class RecordingSink:
    """Error sink that keeps every ListenerFailure it receives."""

    def __init__(self) -> None:
        self.failures: List[ListenerFailure] = []

    def __call__(self, failure: ListenerFailure) -> None:
        self.failures.append(failure)

    @property
    def errors(self) -> List[BaseException]:
        return [failure.original_error for failure in self.failures]


@pytest.fixture
def bus_config() -> BusConfiguration:
    """Default bus settings with verbose logging on."""
    return BusConfiguration(
        max_listeners_per_pattern=50,
        max_history_size=100,
        logging_enabled=True,
    )


@pytest.fixture
def error_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def bus(bus_config: BusConfiguration, error_sink: RecordingSink) -> EventBus:
    """
    Fresh, initialized EventBus per test.

    Listener failures are collected by `error_sink` instead of being logged.
    """
    instance = EventBus(bus_config, error_sink=error_sink)
    instance.initialize()
    return instance


@pytest.fixture
def calls() -> List[Any]:
    """Shared list listeners append to, for asserting invocation order."""
    return []


@pytest.fixture
def recorder(calls: List[Any]) -> Callable[[str], Callable[..., None]]:
    """
    Factory for listeners that append `(tag, payload)` to `calls`.

    >>> bus.on("a", recorder("X"))
    """

    def factory(tag: str) -> Callable[..., None]:
        def listener(payload: Any, event_name: str) -> None:
            calls.append((tag, payload))

        listener.__qualname__ = f"listener_{tag}"
        return listener

    return factory
