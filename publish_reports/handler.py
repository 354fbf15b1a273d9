"""Fan-out of one execution event into per-type record publishes."""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from typing import Any, List, Mapping, Optional, Union

from .config import PublishReportsConfig, load_config
from .contracts import (
    OutcomeState,
    PublishOutcome,
    RecordType,
    WorkflowExecutionEvent,
    WorkflowMessage,
)
from .extract import extract_message
from .publisher import TopicPublisher
from .records import (
    BuildResult,
    BuildStatus,
    build_execution_record,
    build_granule_records,
    build_pdr_record,
    try_build,
)
from .records.common import DEFAULT_REGION, now_ms
from .transports import BaseTransport, get_transport

logger = logging.getLogger(__name__)


class ReportHandler:
    """Publishes the execution, PDR and granule records of workflow events.

    Each record is built and published inside its own scope: a record that
    fails to build or publish is logged and reported as an outcome, and
    never prevents the other records from being published. Only a message
    that cannot be extracted fails the invocation.
    """

    def __init__(
        self, publisher: TopicPublisher, region: str = DEFAULT_REGION
    ) -> None:
        self._publisher = publisher
        self._region = region

    async def handle(
        self, event: Union[WorkflowExecutionEvent, Mapping[str, Any]]
    ) -> None:
        """Handle one execution status event.

        Raises:
            MalformedMessage: If the workflow message cannot be extracted.
        """
        message = extract_message(event)
        outcomes = await self.publish_report_messages(message)

        counts = Counter(outcome.state.value for outcome in outcomes)
        summary = ", ".join(f"{state}={count}" for state, count in sorted(counts.items()))
        logger.info(
            f"Processed execution {message.cumulus_meta.execution_name}: {summary or 'no records'}"
        )

    async def publish_report_messages(
        self, message: WorkflowMessage
    ) -> List[PublishOutcome]:
        """Build and publish every record of ``message`` concurrently."""
        now = now_ms()
        execution, pdr, granules = await asyncio.gather(
            self.handle_execution_message(message, now),
            self.handle_pdr_message(message, now),
            self.handle_granule_messages(message, now),
        )
        return [execution, pdr, *granules]

    async def handle_execution_message(
        self, message: WorkflowMessage, now: Optional[int] = None
    ) -> PublishOutcome:
        result = try_build(
            lambda: build_execution_record(message, region=self._region, now=now)
        )
        return await self._publish_result(RecordType.EXECUTION, result)

    async def handle_pdr_message(
        self, message: WorkflowMessage, now: Optional[int] = None
    ) -> PublishOutcome:
        result = try_build(
            lambda: build_pdr_record(message, region=self._region, now=now)
        )
        return await self._publish_result(RecordType.PDR, result)

    async def handle_granule_messages(
        self, message: WorkflowMessage, now: Optional[int] = None
    ) -> List[PublishOutcome]:
        results = build_granule_records(message, region=self._region, now=now)
        outcomes = await asyncio.gather(
            *(self._publish_result(RecordType.GRANULE, result) for result in results)
        )
        return list(outcomes)

    async def _publish_result(
        self, record_type: RecordType, result: BuildResult
    ) -> PublishOutcome:
        if result.status is BuildStatus.NOT_APPLICABLE:
            logger.debug(f"No {record_type.value} record in workflow message")
            return PublishOutcome(record_type=record_type, state=OutcomeState.SKIPPED)

        if result.status is BuildStatus.FAILED:
            logger.warning(f"Failed to build {record_type.value} record: {result.error}")
            return PublishOutcome(
                record_type=record_type,
                state=OutcomeState.BUILD_FAILED,
                error=str(result.error),
            )

        return await self._publisher.publish(result.record)


def build_handler(
    config: Optional[PublishReportsConfig] = None,
    transport: Optional[BaseTransport] = None,
) -> ReportHandler:
    """Create a handler wired to the configured transport and topics."""
    config = config or load_config()
    if transport is None:
        transport = get_transport(config=config)
    return ReportHandler(
        TopicPublisher(transport, config.topics), region=config.region
    )


def handler(
    event: Mapping[str, Any],
    context: Any = None,
    transport: Optional[BaseTransport] = None,
) -> None:
    """Synchronous entry point for a function runtime.

    The transport is connected for the duration of the invocation and
    disconnected afterwards, also when handling fails.
    """
    config = load_config()
    if transport is None:
        transport = get_transport(config=config)
    report_handler = build_handler(config, transport)

    async def _run() -> None:
        await transport.connect()
        try:
            await report_handler.handle(event)
        finally:
            await transport.disconnect()

    asyncio.run(_run())
