"""Redis transport for cross-process topic publishing."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Optional, Tuple

import redis.asyncio as redis
from pydantic import ValidationError

from ..contracts import TopicEnvelope
from .base import BaseTransport

logger = logging.getLogger(__name__)

KEY_PREFIX = "publish_reports"


class RedisTransport(BaseTransport[str]):
    """Redis-based transport.

    A topic is a Redis set holding the names of its bound queues; each queue
    is a Redis list.
    """

    def __init__(
        self,
        host: str = "localhost",
        port: int = 6379,
        db: int = 0,
        password: Optional[str] = None,
    ) -> None:
        self.host = host
        self.port = port
        self.db = db
        self.password = password
        self._redis: Optional[Any] = None

    @staticmethod
    def topic_key(topic: str) -> str:
        return f"{KEY_PREFIX}:topic:{topic}"

    @staticmethod
    def queue_key(queue: str) -> str:
        return f"{KEY_PREFIX}:queue:{queue}"

    async def connect(self) -> None:
        """Connect to Redis."""
        self._redis = redis.Redis(
            host=self.host,
            port=self.port,
            db=self.db,
            password=self.password,
            decode_responses=True,
        )
        await self._redis.ping()

    async def disconnect(self) -> None:
        """Disconnect from Redis."""
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    async def bind_queue(self, topic: str, queue: Optional[str] = None) -> str:
        if not self._redis:
            await self.connect()
        queue = queue or topic
        await self._redis.sadd(self.topic_key(topic), queue)
        return queue

    async def publish(self, topic: str, envelope: TopicEnvelope) -> None:
        """Push envelope onto every queue bound to ``topic``."""
        if not self._redis:
            await self.connect()

        queues = await self._redis.smembers(self.topic_key(topic))
        if not queues:
            return
        body = envelope.to_json()
        async with self._redis.pipeline(transaction=True) as pipe:
            for queue in queues:
                pipe.lpush(self.queue_key(queue), body)
            await pipe.execute()

    async def subscribe(
        self, queue: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[str, TopicEnvelope]]:
        """Subscribe to envelopes from a bound Redis queue."""
        if not self._redis:
            await self.connect()

        key = self.queue_key(queue)
        start_time = asyncio.get_event_loop().time() if lifespan else None

        while True:
            if lifespan and start_time:
                elapsed = asyncio.get_event_loop().time() - start_time
                if elapsed >= lifespan:
                    break

            # Blocking pop with timeout
            result = await self._redis.brpop(key, timeout=1)

            if result:
                _, body = result
                try:
                    envelope = TopicEnvelope.from_json(body)
                except ValidationError as e:
                    logger.warning(f"Dropping unparseable envelope on {queue}: {e}")
                    continue
                yield body, envelope

            # Brief sleep to prevent busy waiting when no messages
            await asyncio.sleep(0.01)

    async def ack(self, raw_message: str) -> None:
        """No-op acknowledgment for Redis transport (message already consumed)."""
        pass
