"""publish_reports: fan-out of workflow execution events into per-type topics."""

from .config import PublishReportsConfig, TopicBindings, load_config
from .contracts import (
    ExecutionRecord,
    ExecutionStatus,
    GranuleRecord,
    OutcomeState,
    PdrRecord,
    PublishOutcome,
    RecordType,
    TopicEnvelope,
    WorkflowExecutionEvent,
    WorkflowMessage,
)
from .extract import extract_message
from .handler import ReportHandler, build_handler
from .publisher import TopicPublisher
from .transports import get_transport

__version__ = "0.1.0"
__all__ = [
    "ExecutionRecord",
    "ExecutionStatus",
    "GranuleRecord",
    "OutcomeState",
    "PdrRecord",
    "PublishOutcome",
    "PublishReportsConfig",
    "RecordType",
    "ReportHandler",
    "TopicBindings",
    "TopicEnvelope",
    "TopicPublisher",
    "WorkflowExecutionEvent",
    "WorkflowMessage",
    "build_handler",
    "extract_message",
    "get_transport",
    "load_config",
]
