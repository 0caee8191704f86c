"""
Event System Initialization for Beacon.

Purpose
-------
Build the application's EventBus during startup and tear it down during
shutdown.

Responsibilities
----------------
- Validate static configuration before the bus is created
- Copy `Config` values into a per-bus `BusConfiguration`
- Install the error sink (telemetry adapter or the logging default)
- Drain in-flight suspending deliveries on shutdown, then destroy the bus

Architecture Notes
------------------
- There is no module-level bus. The bootstrap code keeps the instance
  returned by `create_event_bus()` and hands it to its consumers.
"""

from __future__ import annotations

from typing import Optional

from beacon.core.config.config import Config
from beacon.core.event.bus import EventBus
from beacon.core.event.errors import ErrorSink
from beacon.core.event.types import BusConfiguration
from beacon.core.logging.logger import get_logger

logger = get_logger(__name__)


def create_event_bus(
    config: Optional[BusConfiguration] = None,
    *,
    error_sink: Optional[ErrorSink] = None,
) -> EventBus:
    """
    Create and initialize an EventBus.

    Parameters
    ----------
    config:
        Explicit bus settings. Built from `Config` when omitted.
    error_sink:
        Receiver for listener failures. Defaults to logging them.

    Raises
    ------
    ConfigurationError
        If static configuration is invalid in production.
    """
    logger.info("Initializing event system...")

    if config is None:
        Config.validate()
        config = BusConfiguration.from_config()

    bus = EventBus(config)
    bus.initialize(error_sink=error_sink)

    logger.info("Event system initialization complete")
    return bus


async def shutdown_event_bus(bus: EventBus) -> None:
    """
    Gracefully shut an EventBus down.

    Waits for every in-flight suspending delivery, then drops listeners and
    history.
    """
    logger.info("Shutting down event system...")

    pending = bus.get_debug_info()["pending_deliveries"]
    if pending:
        logger.info("Draining pending deliveries", extra={"pending_deliveries": pending})
    await bus.drain()

    bus.destroy()
    logger.info("Event system shutdown complete")
