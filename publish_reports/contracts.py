"""Message contracts for workflow report publishing."""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ExecutionStatus(str, Enum):
    """Status of a workflow execution as reported by the workflow engine."""

    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    ABORTED = "ABORTED"
    TIMED_OUT = "TIMED_OUT"

    @classmethod
    def from_engine(cls, value: Any) -> "ExecutionStatus":
        """Parse an engine status, accepting ``SUCCEEDED`` as ``COMPLETED``."""
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().upper()
        if normalized == "SUCCEEDED":
            return cls.COMPLETED
        return cls(normalized)

    @property
    def is_terminal(self) -> bool:
        return self is not ExecutionStatus.RUNNING

    @property
    def is_failed(self) -> bool:
        return self in (
            ExecutionStatus.FAILED,
            ExecutionStatus.ABORTED,
            ExecutionStatus.TIMED_OUT,
        )

    @property
    def record_status(self) -> str:
        """Status string stored on published records."""
        if not self.is_terminal:
            return "running"
        return "failed" if self.is_failed else "completed"


class RecordType(str, Enum):
    """Kinds of records fanned out from one workflow message."""

    EXECUTION = "execution"
    PDR = "pdr"
    GRANULE = "granule"


# ---------------------------------------------------------------------------
# Inbound


class EventDetail(BaseModel):
    """``detail`` block of an execution status change notification."""

    model_config = ConfigDict(extra="allow")

    status: ExecutionStatus
    input: Optional[str] = None
    output: Optional[str] = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> ExecutionStatus:
        return ExecutionStatus.from_engine(value)


class WorkflowExecutionEvent(BaseModel):
    """Notification that a workflow execution changed state."""

    model_config = ConfigDict(extra="allow")

    detail: EventDetail

    @property
    def status(self) -> ExecutionStatus:
        return self.detail.status


class CumulusMeta(BaseModel):
    """Execution identifiers carried in ``cumulus_meta``.

    Values are kept as sent; each builder checks the ones it needs so that a
    bad identifier only fails the records that depend on it.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    execution_name: Any = None
    state_machine: Any = None
    parent_execution_arn: Any = Field(default=None, alias="parentExecutionArn")
    async_operation_id: Any = Field(default=None, alias="asyncOperationId")
    workflow_start_time: Any = None


class WorkflowMessage(BaseModel):
    """Decoded workflow message embedded in an execution event."""

    model_config = ConfigDict(extra="allow")

    meta: Dict[str, Any] = Field(default_factory=dict)
    cumulus_meta: CumulusMeta = Field(default_factory=CumulusMeta)
    payload: Any = None
    exception: Any = None
    execution_status: Optional[ExecutionStatus] = Field(default=None, exclude=True)

    @field_validator("meta", "cumulus_meta", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return {} if value is None else value

    @property
    def payload_dict(self) -> Dict[str, Any]:
        """The payload when it is an object, otherwise an empty dict."""
        return self.payload if isinstance(self.payload, dict) else {}

    @property
    def record_status(self) -> Optional[str]:
        if self.execution_status is not None:
            return self.execution_status.record_status
        return self.meta.get("status")

    @property
    def collection_id(self) -> Optional[str]:
        """``<name>___<version>`` of ``meta.collection`` when both are set."""
        collection = self.meta.get("collection")
        if not isinstance(collection, dict):
            return None
        name, version = collection.get("name"), collection.get("version")
        if name is None or version is None:
            return None
        return f"{name}___{version}"

    @property
    def provider_id(self) -> Optional[str]:
        provider = self.meta.get("provider")
        if isinstance(provider, dict):
            return provider.get("id")
        return None


# ---------------------------------------------------------------------------
# Outbound records


class ReportRecord(BaseModel):
    """Base for records published to a per-type topic."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    record_type: ClassVar[RecordType]
    # Fields written as explicit ``null`` when unset instead of being omitted.
    nullable_fields: ClassVar[Tuple[str, ...]] = ()

    @property
    def record_id(self) -> str:
        """Natural identifier consumers deduplicate on."""
        raise NotImplementedError

    def to_json(self) -> str:
        """Serialize record to its wire JSON."""
        data = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        for name in self.nullable_fields:
            alias = type(self).model_fields[name].alias or name
            data.setdefault(alias, None)
        return json.dumps(data)


class ExecutionRecord(ReportRecord):
    record_type: ClassVar[RecordType] = RecordType.EXECUTION
    nullable_fields: ClassVar[Tuple[str, ...]] = (
        "collection_id",
        "async_operation_id",
        "parent_arn",
    )

    name: str
    arn: str
    execution: str
    status: Optional[str] = None
    workflow_name: Optional[str] = Field(default=None, alias="type")
    collection_id: Optional[str] = None
    async_operation_id: Optional[str] = None
    parent_arn: Optional[str] = None
    tasks: Optional[Dict[str, Any]] = None
    error: Dict[str, Any] = Field(default_factory=dict)
    original_payload: Any = None
    final_payload: Any = None
    created_at: Optional[int] = None
    timestamp: int
    updated_at: int
    duration: Optional[float] = None

    @property
    def record_id(self) -> str:
        return self.arn


class PdrStats(BaseModel):
    processing: int = 0
    completed: int = 0
    failed: int = 0
    total: int = 0


class PdrRecord(ReportRecord):
    record_type: ClassVar[RecordType] = RecordType.PDR

    pdr_name: str
    collection_id: Optional[str] = None
    status: Optional[str] = None
    provider: Optional[str] = None
    progress: float = 0
    execution: Optional[str] = None
    pan_sent: bool = Field(default=False, alias="PANSent")
    pan_message: str = Field(default="N/A", alias="PANmessage")
    stats: PdrStats = Field(default_factory=PdrStats)
    created_at: Optional[int] = None
    timestamp: int
    duration: Optional[float] = None

    @property
    def record_id(self) -> str:
        return self.pdr_name


class GranuleRecord(ReportRecord):
    record_type: ClassVar[RecordType] = RecordType.GRANULE

    granule_id: str
    pdr_name: Optional[str] = None
    collection_id: Optional[str] = None
    status: Optional[str] = None
    provider: Optional[str] = None
    execution: Optional[str] = None
    cmr_link: Optional[str] = None
    files: List[Dict[str, Any]] = Field(default_factory=list)
    published: bool = False
    error: Dict[str, Any] = Field(default_factory=dict)
    product_volume: int = 0
    time_to_preprocess: float = 0
    time_to_archive: float = 0
    processing_start_date_time: Optional[str] = None
    processing_end_date_time: Optional[str] = None
    created_at: Optional[int] = None
    timestamp: int
    updated_at: int
    duration: Optional[float] = None

    @property
    def record_id(self) -> str:
        return self.granule_id


# ---------------------------------------------------------------------------
# Publishing


class OutcomeState(str, Enum):
    SKIPPED = "skipped"
    BUILD_FAILED = "build_failed"
    UNBOUND = "unbound"
    PUBLISHED = "published"
    PUBLISH_FAILED = "publish_failed"


class PublishOutcome(BaseModel):
    """Result of building and publishing one record. Logged, never persisted."""

    record_type: RecordType
    state: OutcomeState
    record_id: Optional[str] = None
    topic: Optional[str] = None
    error: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.state is OutcomeState.PUBLISHED


class TopicEnvelope(BaseModel):
    """
    Transport envelope. ``Message`` holds the JSON of one domain record.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str = Field(alias="Message")
    message_id: str = Field(
        default_factory=lambda: str(uuid.uuid4()), alias="MessageId"
    )
    topic: Optional[str] = Field(default=None, alias="TopicArn")
    timestamp: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), alias="Timestamp"
    )

    @classmethod
    def wrap(cls, record: ReportRecord, topic: Optional[str] = None) -> "TopicEnvelope":
        return cls(message=record.to_json(), topic=topic)

    def record(self) -> Dict[str, Any]:
        """Decode the wrapped record."""
        return json.loads(self.message)

    def to_json(self) -> str:
        """Serialize envelope to JSON."""
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, data: str | bytes) -> "TopicEnvelope":
        """Deserialize envelope from JSON."""
        return cls.model_validate_json(data)
