"""Shared fixtures: workflow messages and an in-memory topic/queue harness."""

import json
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

import pytest
import pytest_asyncio

from publish_reports.config import TopicBindings
from publish_reports.contracts import RecordType, TopicEnvelope
from publish_reports.handler import ReportHandler
from publish_reports.publisher import TopicPublisher
from publish_reports.transports.inmemory import InMemoryTransport

STATE_MACHINE_ARN = (
    "arn:aws:states:us-east-1:111122223333:stateMachine:HelloWorld-StateMachine"
)


def random_string() -> str:
    return uuid.uuid4().hex[:12]


class FailingTransport(InMemoryTransport):
    """In-memory transport whose publishes fail for selected topics."""

    def __init__(self, failing_topics: Optional[Set[str]] = None) -> None:
        super().__init__()
        self.failing_topics = failing_topics

    async def publish(self, topic: str, envelope: TopicEnvelope) -> None:
        if self.failing_topics is None or topic in self.failing_topics:
            raise ConnectionError("nope")
        await super().publish(topic, envelope)


@dataclass
class TopicHarness:
    transport: InMemoryTransport
    topics: TopicBindings
    queues: Dict[RecordType, str]

    def handler(self) -> ReportHandler:
        return ReportHandler(TopicPublisher(self.transport, self.topics))

    async def received(self, record_type: RecordType) -> List[dict]:
        """Decoded records waiting on the queue bound to ``record_type``."""
        batch = await self.transport.receive(self.queues[record_type])
        return [json.loads(TopicEnvelope.from_json(raw).message) for raw, _ in batch]


async def _bind_all(transport: InMemoryTransport) -> TopicHarness:
    suffix = random_string()
    topics = TopicBindings(
        execution=f"executions-{suffix}",
        pdr=f"pdrs-{suffix}",
        granule=f"granules-{suffix}",
    )
    queues = {}
    for record_type in RecordType:
        topic = topics.topic_for(record_type)
        queues[record_type] = await transport.bind_queue(topic, f"{topic}-queue")
    return TopicHarness(transport=transport, topics=topics, queues=queues)


async def _unbind_all(harness: TopicHarness) -> None:
    for record_type, queue in harness.queues.items():
        await harness.transport.unbind_queue(
            harness.topics.topic_for(record_type), queue
        )


@pytest_asyncio.fixture
async def harness():
    harness = await _bind_all(InMemoryTransport())
    yield harness
    await _unbind_all(harness)


@pytest.fixture
def failing_harness():
    """Factory for a harness whose transport fails on the given record types."""
    async def _make(*record_types: RecordType) -> TopicHarness:
        transport = FailingTransport()
        harness = await _bind_all(transport)
        if record_types:
            transport.failing_topics = {
                harness.topics.topic_for(record_type) for record_type in record_types
            }
        return harness

    return _make


@pytest.fixture
def pdr_name() -> str:
    return random_string()


@pytest.fixture
def cumulus_message(pdr_name) -> dict:
    return {
        "meta": {
            "provider": {
                "id": "s3_provider",
                "protocol": "https",
                "host": "example.com",
                "port": 80,
            },
            "collection": {"name": "MOD09GQ", "version": "006"},
            "workflow_name": "DiscoverGranules",
        },
        "cumulus_meta": {
            "execution_name": random_string(),
            "state_machine": STATE_MACHINE_ARN,
            "workflow_start_time": 1600000000000,
        },
        "payload": {"pdr": {"name": pdr_name}},
    }


def make_event(message: dict, status: str = "RUNNING", **detail) -> dict:
    return {"detail": {"status": status, "input": json.dumps(message), **detail}}


@pytest.fixture
def event_factory():
    return make_event


@pytest.fixture
def execution_event(cumulus_message) -> dict:
    return make_event(cumulus_message)
