"""
Beacon: in-process publish/subscribe event bus.

Application code builds one bus at bootstrap and hands it to consumers::

    from beacon.core.event import create_event_bus

    bus = create_event_bus()
    bus.on("lead:*", refresh_sidebar)
    bus.emit("lead:created", {"id": 1})
"""

__version__ = "1.0.0"
