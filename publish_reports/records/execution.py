"""Execution record builder."""

from __future__ import annotations

from typing import Any, Optional

from ..contracts import ExecutionRecord, WorkflowMessage
from ..errors import InvalidExecutionContext
from .common import (
    DEFAULT_REGION,
    as_ms,
    duration_seconds,
    execution_arn,
    execution_url,
    now_ms,
    parse_exception,
)


def _optional_str(name: str, value: Any) -> Optional[str]:
    if value is None or isinstance(value, str):
        return value
    raise InvalidExecutionContext(
        f"cumulus_meta.{name} must be a string, got {type(value).__name__}"
    )


def build_execution_record(
    message: WorkflowMessage,
    region: str = DEFAULT_REGION,
    now: Optional[int] = None,
) -> ExecutionRecord:
    """Build the execution record of ``message``.

    Raises:
        InvalidExecutionContext: If ``cumulus_meta.execution_name`` or
            ``cumulus_meta.state_machine`` is missing or not a string, or if
            a parent or async operation reference is not a string.
    """
    meta = message.cumulus_meta
    for name in ("execution_name", "state_machine"):
        value = getattr(meta, name)
        if value is not None and not isinstance(value, str):
            raise InvalidExecutionContext(
                f"cumulus_meta.{name} must be a string, got {type(value).__name__}"
            )
    arn = execution_arn(meta.state_machine, meta.execution_name)
    if arn is None:
        raise InvalidExecutionContext(
            "Could not determine execution ARN: cumulus_meta.execution_name "
            "and cumulus_meta.state_machine are required"
        )
    parent_arn = _optional_str("parentExecutionArn", meta.parent_execution_arn)
    async_operation_id = _optional_str("asyncOperationId", meta.async_operation_id)

    timestamp = now if now is not None else now_ms()
    created_at = as_ms(meta.workflow_start_time)
    status = message.execution_status
    terminal = status is not None and status.is_terminal

    tasks = message.meta.get("workflow_tasks")
    return ExecutionRecord(
        name=meta.execution_name,
        arn=arn,
        execution=execution_url(arn, region),
        status=message.record_status,
        workflow_name=message.meta.get("workflow_name"),
        collection_id=message.collection_id,
        async_operation_id=async_operation_id,
        parent_arn=parent_arn,
        tasks=tasks if isinstance(tasks, dict) else None,
        error=parse_exception(message.exception),
        original_payload=None if terminal else message.payload,
        final_payload=message.payload if terminal else None,
        created_at=created_at,
        timestamp=timestamp,
        updated_at=timestamp,
        duration=duration_seconds(created_at, timestamp),
    )
