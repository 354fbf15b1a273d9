"""Kafka transport implementation using aiokafka."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, Dict, Iterable, Optional, Tuple

from aiokafka import AIOKafkaConsumer, AIOKafkaProducer
from aiokafka.structs import TopicPartition
from pydantic import ValidationError

from ..contracts import TopicEnvelope
from .base import BaseTransport

logger = logging.getLogger(__name__)


class KafkaTransport(BaseTransport[Any]):
    """Kafka-based transport.

    A bound queue is a consumer group on the topic, so each queue sees every
    envelope once.
    """

    def __init__(
        self,
        brokers: Iterable[str] | str = "localhost:9092",
        dlq_topic: str = "publish_reports.deadletter",
    ) -> None:
        self.brokers = [brokers] if isinstance(brokers, str) else list(brokers)
        self.dlq_topic = dlq_topic
        self._producer: Optional[AIOKafkaProducer] = None
        self._consumers: Dict[str, AIOKafkaConsumer] = {}
        self._bindings: Dict[str, str] = {}

    async def connect(self) -> None:
        if not self._producer:
            self._producer = AIOKafkaProducer(bootstrap_servers=self.brokers)
            await self._producer.start()

    async def disconnect(self) -> None:
        for consumer in self._consumers.values():
            await consumer.stop()
        self._consumers.clear()
        if self._producer:
            await self._producer.stop()
            self._producer = None

    async def bind_queue(self, topic: str, queue: Optional[str] = None) -> str:
        queue = queue or topic
        self._bindings[queue] = topic
        return queue

    async def publish(self, topic: str, envelope: TopicEnvelope) -> None:
        if not self._producer:
            await self.connect()
        data = envelope.to_json().encode()
        await self._producer.send_and_wait(topic, value=data)

    async def _consumer(self, queue: str) -> AIOKafkaConsumer:
        consumer = self._consumers.get(queue)
        if consumer is None:
            topic = self._bindings.get(queue)
            if topic is None:
                raise RuntimeError(f"Queue {queue} is not bound to a topic")
            consumer = AIOKafkaConsumer(
                topic,
                bootstrap_servers=self.brokers,
                group_id=queue,
                enable_auto_commit=False,
                auto_offset_reset="earliest",
            )
            await consumer.start()
            self._consumers[queue] = consumer
        return consumer

    async def subscribe(
        self, queue: str, lifespan: Optional[float] = None
    ) -> AsyncIterator[Tuple[Any, TopicEnvelope]]:
        consumer = await self._consumer(queue)
        start_time = asyncio.get_event_loop().time() if lifespan else None

        while True:
            if lifespan and start_time is not None:
                if asyncio.get_event_loop().time() - start_time >= lifespan:
                    break
            msg = await consumer.getone()
            try:
                envelope = TopicEnvelope.from_json(msg.value)
            except ValidationError as e:
                logger.warning(f"Dead-lettering unparseable envelope on {queue}: {e}")
                await self.nack(msg, requeue=False)
                continue
            yield msg, envelope

    def _owner(self, raw_message: Any) -> AIOKafkaConsumer:
        for queue, topic in self._bindings.items():
            if topic == raw_message.topic and queue in self._consumers:
                return self._consumers[queue]
        raise RuntimeError("KafkaTransport not connected")

    async def ack(self, raw_message: Any) -> None:
        tp = TopicPartition(raw_message.topic, raw_message.partition)
        await self._owner(raw_message).commit({tp: raw_message.offset + 1})

    async def nack(self, raw_message: Any, requeue: bool = True) -> None:
        if requeue:
            tp = TopicPartition(raw_message.topic, raw_message.partition)
            self._owner(raw_message).seek(tp, raw_message.offset)
        else:
            if self._producer:
                await self._producer.send_and_wait(self.dlq_topic, value=raw_message.value)
            await self.ack(raw_message)
