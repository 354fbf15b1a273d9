"""Simple example showing one execution event fanned out to record topics."""

import asyncio
import json

from publish_reports import RecordType, ReportHandler, TopicBindings, TopicPublisher
from publish_reports.transports.inmemory import InMemoryTransport


async def main():
    """Publish the records of a running DiscoverPdrs execution."""
    transport = InMemoryTransport()
    topics = TopicBindings(execution="executions", pdr="pdrs", granule="granules")

    # One queue per record type
    queues = {
        record_type: await transport.bind_queue(topics.topic_for(record_type))
        for record_type in RecordType
    }

    message = {
        "meta": {
            "provider": {"id": "s3_provider"},
            "collection": {"name": "MOD09GQ", "version": "006"},
        },
        "cumulus_meta": {
            "execution_name": "exec-123",
            "state_machine": "arn:aws:states:us-east-1:111122223333:stateMachine:DiscoverPdrs",
        },
        "payload": {
            "pdr": {"name": "PDR1"},
            "granules": [{"granuleId": "MOD09GQ.A2017025.h21v00.006"}],
        },
    }
    event = {"detail": {"status": "RUNNING", "input": json.dumps(message)}}

    handler = ReportHandler(TopicPublisher(transport, topics))
    await handler.handle(event)

    for record_type, queue in queues.items():
        for _, envelope in await transport.receive(queue):
            print(f"✅ {record_type.value}: {envelope.message}")


if __name__ == "__main__":
    asyncio.run(main())
