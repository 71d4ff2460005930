"""
In-process pub/sub behind the admin live streams.

Writers publish on a topic after committing; each open stream holds a
bounded queue and re-reads its snapshot when notified. Must be used from the
event loop thread.
"""
import asyncio
from contextlib import contextmanager
from typing import Any, Iterator, Optional

from walkin.core.logger import get_logger

logger = get_logger("events")

APPROVALS_TOPIC = "approvals:pending"


def attendance_topic(date_str: str) -> str:
    return f"attendance:{date_str}"


class EventBroadcaster:
    def __init__(self, queue_size: int = 32):
        self.queue_size = queue_size
        self._subscribers: dict[str, set[asyncio.Queue]] = {}

    def publish(self, topic: str, payload: Optional[Any] = None) -> int:
        """Notify every subscriber of ``topic``; returns how many were notified."""
        queues = self._subscribers.get(topic, set())
        for queue in queues:
            if queue.full():
                # Slow consumer: drop the oldest notification
                queue.get_nowait()
            queue.put_nowait(payload)
        if queues:
            logger.debug(f"Published to {topic} ({len(queues)} subscribers)")
        return len(queues)

    @contextmanager
    def subscribe(self, topic: str) -> Iterator[asyncio.Queue]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.setdefault(topic, set()).add(queue)
        logger.debug(f"Subscribed to {topic}")
        try:
            yield queue
        finally:
            queues = self._subscribers.get(topic)
            if queues is not None:
                queues.discard(queue)
                if not queues:
                    del self._subscribers[topic]
            logger.debug(f"Unsubscribed from {topic}")

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))
