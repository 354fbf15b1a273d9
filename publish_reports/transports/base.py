"""Base transport interface for topic publishing."""

from __future__ import annotations

import abc
from typing import AsyncIterator, Generic, Optional, Tuple, TypeVar

from ..contracts import TopicEnvelope

RawMessageT = TypeVar("RawMessageT")


class BaseTransport(Generic[RawMessageT], metaclass=abc.ABCMeta):
    """Abstract pub/sub transport.

    Publishers write envelopes to a topic. Subscribers read from queues bound
    to that topic; every bound queue receives its own copy.
    """

    async def connect(self) -> None:
        """Open connection to broker (no-op by default)."""
        pass

    async def disconnect(self) -> None:
        """Close connection to broker (no-op by default)."""
        pass

    @abc.abstractmethod
    async def publish(self, topic: str, envelope: TopicEnvelope) -> None:
        """Send an envelope to a topic."""
        raise NotImplementedError

    @abc.abstractmethod
    async def bind_queue(self, topic: str, queue: Optional[str] = None) -> str:
        """Bind a queue to ``topic`` and return its name.

        Args:
            topic: Topic whose envelopes the queue should receive
            queue: Queue name. Defaults to the topic name.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def subscribe(
        self, queue: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[RawMessageT, TopicEnvelope]]:
        """Yield raw transport message and envelope pairs from a bound queue.

        Args:
            queue: The bound queue to read from
            lifespan: Maximum time in seconds to keep connection open. If None, runs indefinitely.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def ack(self, raw_message: RawMessageT) -> None:
        """Acknowledge successful processing."""
        raise NotImplementedError

    async def nack(self, raw_message: RawMessageT, requeue: bool = True) -> None:
        """Negatively acknowledge (default to ack if unsupported)."""
        await self.ack(raw_message)
