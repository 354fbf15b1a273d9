"""PDR record builder."""

from __future__ import annotations

from typing import Any, Optional

from ..contracts import PdrRecord, PdrStats, WorkflowMessage
from ..errors import InvalidPdrRecord
from .common import (
    DEFAULT_REGION,
    as_ms,
    duration_seconds,
    execution_arn,
    execution_url,
    now_ms,
)


def _count(value: Any) -> int:
    return len(value) if isinstance(value, list) else 0


def pdr_stats(payload: dict) -> PdrStats:
    """Granule counts per processing state as reported in the payload."""
    processing = _count(payload.get("running"))
    completed = _count(payload.get("completed"))
    failed = _count(payload.get("failed"))
    return PdrStats(
        processing=processing,
        completed=completed,
        failed=failed,
        total=processing + completed + failed,
    )


def pdr_progress(stats: PdrStats) -> float:
    if stats.total == 0:
        return 0
    if stats.processing == 0:
        return 100
    return (stats.total - stats.processing) / stats.total * 100


def build_pdr_record(
    message: WorkflowMessage,
    region: str = DEFAULT_REGION,
    now: Optional[int] = None,
) -> Optional[PdrRecord]:
    """Build the PDR record of ``message``.

    Returns ``None`` when the payload carries no ``pdr``.

    Raises:
        InvalidPdrRecord: If ``payload.pdr`` is present without a name.
    """
    payload = message.payload_dict
    pdr = payload.get("pdr")
    if pdr is None:
        return None
    if not isinstance(pdr, dict):
        raise InvalidPdrRecord(f"payload.pdr must be an object, got {type(pdr).__name__}")

    name = pdr.get("name")
    if not name or not isinstance(name, str):
        raise InvalidPdrRecord("Could not find name on PDR object")

    meta = message.cumulus_meta
    arn = execution_arn(meta.state_machine, meta.execution_name)
    stats = pdr_stats(payload)
    timestamp = now if now is not None else now_ms()
    created_at = as_ms(meta.workflow_start_time)

    return PdrRecord(
        pdr_name=name,
        collection_id=message.collection_id,
        status=message.record_status,
        provider=message.provider_id,
        progress=pdr_progress(stats),
        execution=execution_url(arn, region) if arn else None,
        pan_sent=bool(pdr.get("PANSent", False)),
        pan_message=pdr.get("PANmessage") or "N/A",
        stats=stats,
        created_at=created_at,
        timestamp=timestamp,
        duration=duration_seconds(created_at, timestamp),
    )
