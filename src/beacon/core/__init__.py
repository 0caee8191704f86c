"""Core infrastructure for Beacon: configuration, logging, errors and the event system."""
