"""
Server-Sent Events (SSE) fan-out for ingestion progress.

Every event gets a sequence number that is sent as the SSE `id`. The most
recent events are kept so a client reconnecting with `Last-Event-ID` picks up
where it left off.
"""

import asyncio
import logging
from collections import deque
from datetime import datetime, timezone
from typing import Any, Optional

logger = logging.getLogger(__name__)


class EventManager:
    """
    Broadcasts events to every connected SSE client.

    Each subscriber has a bounded queue. Events for a subscriber whose queue
    is full are dropped for that subscriber only.
    """

    def __init__(self, max_queue_size: int = 100, history_size: int = 200):
        self._subscribers: list[asyncio.Queue] = []
        self._history: deque = deque(maxlen=history_size)
        self._lock = asyncio.Lock()
        self._next_id = 1
        self.max_queue_size = max_queue_size

    async def subscribe(self, last_event_id: Optional[int] = None) -> asyncio.Queue:
        """
        Subscribe to events.

        Args:
            last_event_id: Sequence number the client saw last; newer events
                still in history are queued immediately

        Returns:
            Queue that will receive events
        """
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.max_queue_size)
        async with self._lock:
            if last_event_id is not None:
                for event in self._history:
                    if event["id"] > last_event_id and not queue.full():
                        queue.put_nowait(event)
            self._subscribers.append(queue)
        logger.debug(f"[SSE] New subscriber. Total: {len(self._subscribers)}")
        return queue

    async def unsubscribe(self, queue: asyncio.Queue) -> None:
        """Stop delivering events to a queue returned from subscribe()."""
        async with self._lock:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    async def emit(self, event_type: str, data: dict[str, Any]) -> dict[str, Any]:
        """
        Record an event and deliver it to all subscribers.

        Args:
            event_type: Type of event (e.g., "ingestion_started")
            data: JSON-serializable payload

        Returns:
            The event as delivered ({"id", "type", "data", "emitted_at"})
        """
        async with self._lock:
            event = {
                "id": self._next_id,
                "type": event_type,
                "data": data,
                "emitted_at": datetime.now(timezone.utc).isoformat(),
            }
            self._next_id += 1
            self._history.append(event)

            dropped = 0
            for queue in self._subscribers:
                try:
                    queue.put_nowait(event)
                except asyncio.QueueFull:
                    dropped += 1

        if dropped:
            logger.warning(f"[SSE] {event_type} dropped for {dropped} slow subscriber(s)")
        return event

    def recent(self, limit: int = 20) -> list[dict[str, Any]]:
        """The most recent events, oldest first."""
        return list(self._history)[-limit:]


# Global event manager instance
event_manager = EventManager()
