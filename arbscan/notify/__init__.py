"""Notification modules for the arbitrage scanner."""

from .events import Event, EventBus, EVENT_TYPES

__all__ = ["Event", "EventBus", "EVENT_TYPES"]
