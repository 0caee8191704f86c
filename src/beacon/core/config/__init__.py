"""
Configuration subsystem for Beacon.

Static settings come from environment variables (with `.env` support) and
are exposed on the `Config` class::

    from beacon.core.config import Config

    Config.validate()
    max_history = Config.EVENT_BUS_MAX_HISTORY

The event bus never reads `Config` on its hot path; bootstrap copies the
values into a per-bus `BusConfiguration`.
"""

from beacon.core.config.config import Config, Environment

__all__ = [
    "Config",
    "Environment",
]
