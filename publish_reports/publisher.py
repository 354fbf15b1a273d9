"""Publishing of built records to their per-type topic."""

from __future__ import annotations

import logging
from typing import Optional

from .config import TopicBindings
from .contracts import (
    OutcomeState,
    PublishOutcome,
    RecordType,
    ReportRecord,
    TopicEnvelope,
)
from .errors import PublishFailure
from .transports import BaseTransport

logger = logging.getLogger(__name__)


class TopicPublisher:
    """Publish records to the topic bound to their record type.

    ``publish`` never raises for transport errors; the failure is reported
    in the returned outcome instead.
    """

    def __init__(self, transport: BaseTransport, bindings: TopicBindings) -> None:
        self._transport = transport
        self._bindings = bindings

    def topic_for(self, record_type: RecordType) -> Optional[str]:
        return self._bindings.topic_for(record_type)

    async def publish(self, record: ReportRecord) -> PublishOutcome:
        record_type = record.record_type
        record_id = record.record_id
        topic = self.topic_for(record_type)
        if not topic:
            logger.debug(
                f"No topic bound for {record_type.value} records; "
                f"not publishing {record_id}"
            )
            return PublishOutcome(
                record_type=record_type,
                state=OutcomeState.UNBOUND,
                record_id=record_id,
            )

        try:
            await self._transport.publish(topic, TopicEnvelope.wrap(record, topic))
        except Exception as e:
            failure = PublishFailure(topic, e)
            logger.error(
                f"Failed to publish {record_type.value} record {record_id}: "
                f"{failure.message}"
            )
            return PublishOutcome(
                record_type=record_type,
                state=OutcomeState.PUBLISH_FAILED,
                record_id=record_id,
                topic=topic,
                error=failure.message,
            )

        logger.info(f"Published {record_type.value} record {record_id} to {topic}")
        return PublishOutcome(
            record_type=record_type,
            state=OutcomeState.PUBLISHED,
            record_id=record_id,
            topic=topic,
        )
