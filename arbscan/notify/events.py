"""In-process event broadcasting for dashboards and API clients."""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from loguru import logger

TICKER = "ticker"
OPPORTUNITY = "opportunity"
LOG = "log"
EXEC_RESULT = "exec_result"
EXCHANGES = "exchanges"

EVENT_TYPES = (TICKER, OPPORTUNITY, LOG, EXEC_RESULT, EXCHANGES)


@dataclass
class Event:
    """A single broadcast event."""
    type: str
    data: Any
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": self.data, "timestamp": self.timestamp}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class EventBus:
    """Fire-and-forget broadcast of events to listeners and subscriber queues.

    ``publish`` never blocks and never raises: a failing listener is logged
    and a full subscriber queue drops the event for that subscriber only.
    """

    def __init__(self, queue_size: int = 1000):
        self.queue_size = queue_size
        self._listeners: List[Callable[[Event], None]] = []
        self._subscribers: Set[asyncio.Queue] = set()
        self._published = 0
        self._dropped = 0

    def add_listener(self, callback: Callable[[Event], None]):
        """Add a synchronous callback invoked for every event."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[Event], None]):
        if callback in self._listeners:
            self._listeners.remove(callback)

    def subscribe(self) -> asyncio.Queue:
        """Create a queue that receives every subsequent event."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        logger.debug(f"Event subscriber added ({len(self._subscribers)} total)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue):
        self._subscribers.discard(queue)
        logger.debug(f"Event subscriber removed ({len(self._subscribers)} total)")

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event_type: str, data: Any) -> Event:
        """Broadcast an event."""
        event = Event(type=event_type, data=data)
        self._published += 1

        for callback in list(self._listeners):
            try:
                callback(event)
            except Exception as e:
                logger.error(f"Error in event listener for {event_type}: {e}")

        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                self._dropped += 1
                logger.debug(f"Subscriber queue full, dropped {event_type} event")

        return event

    def get_stats(self) -> Dict[str, int]:
        return {
            "published": self._published,
            "dropped": self._dropped,
            "subscribers": len(self._subscribers),
            "listeners": len(self._listeners),
        }
