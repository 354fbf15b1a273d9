"""In-memory topic transport for testing."""

from __future__ import annotations

import asyncio
from collections import defaultdict, deque
from typing import AsyncIterator, Deque, Dict, List, Optional, Set, Tuple

from ..contracts import TopicEnvelope
from .base import BaseTransport


class InMemoryTransport(BaseTransport[Tuple[str, TopicEnvelope]]):
    """In-process topics fanning out to bound queues.

    Envelopes published to a topic without bound queues are dropped, as a
    topic without subscribers would.
    """

    def __init__(self) -> None:
        self._queues: Dict[str, Deque[Tuple[str, TopicEnvelope]]] = defaultdict(deque)
        self._bindings: Dict[str, Set[str]] = defaultdict(set)
        self._lock = asyncio.Lock()

    async def bind_queue(self, topic: str, queue: Optional[str] = None) -> str:
        queue = queue or topic
        async with self._lock:
            self._bindings[topic].add(queue)
            self._queues.setdefault(queue, deque())
        return queue

    async def unbind_queue(self, topic: str, queue: str) -> None:
        async with self._lock:
            self._bindings[topic].discard(queue)
            self._queues.pop(queue, None)

    async def publish(self, topic: str, envelope: TopicEnvelope) -> None:
        """Copy envelope into every queue bound to ``topic``."""
        raw = envelope.to_json()
        async with self._lock:
            for queue in self._bindings.get(topic, ()):
                self._queues[queue].append(
                    (raw, TopicEnvelope.from_json(raw))
                )

    async def receive(
        self, queue: str, max_messages: int = 10
    ) -> List[Tuple[str, TopicEnvelope]]:
        """Pop up to ``max_messages`` pending envelopes without waiting."""
        async with self._lock:
            pending = self._queues[queue]
            batch = []
            while pending and len(batch) < max_messages:
                batch.append(pending.popleft())
            return batch

    async def subscribe(
        self, queue: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[Tuple[str, TopicEnvelope], TopicEnvelope]]:
        """Subscribe to envelopes arriving on a bound queue.

        Args:
            queue: The queue to read from
            lifespan: Maximum time in seconds to keep connection open. If None, runs indefinitely.
        """
        start_time = asyncio.get_event_loop().time() if lifespan else None

        while True:
            if lifespan and start_time:
                elapsed = asyncio.get_event_loop().time() - start_time
                if elapsed >= lifespan:
                    break

            async with self._lock:
                pending = self._queues[queue]
                raw_message = pending.popleft() if pending else None

            if raw_message is not None:
                yield raw_message, raw_message[1]
                continue

            await asyncio.sleep(0.1)

    async def ack(self, raw_message: Tuple[str, TopicEnvelope]) -> None:
        """No-op acknowledgment for in-memory transport."""
        pass
