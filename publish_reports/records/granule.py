"""Granule record builder."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..contracts import GranuleRecord, WorkflowMessage
from ..errors import InvalidGranuleRecord
from .common import (
    DEFAULT_REGION,
    as_ms,
    duration_seconds,
    execution_arn,
    execution_url,
    now_ms,
    parse_exception,
)
from .result import BuildResult, try_build


def _iso(ms: Optional[int]) -> Optional[str]:
    if ms is None:
        return None
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def _seconds(value: Any) -> float:
    if isinstance(value, (int, float)):
        return value / 1000
    return 0


def message_granules(message: WorkflowMessage) -> Optional[Any]:
    """``payload.granules``, falling back to ``meta.input_granules``."""
    granules = message.payload_dict.get("granules")
    if granules is None:
        granules = message.meta.get("input_granules")
    return granules


def product_volume(files: List[Dict[str, Any]]) -> int:
    total = 0
    for f in files:
        size = f.get("size", f.get("fileSize"))
        if isinstance(size, (int, float)):
            total += int(size)
    return total


def build_granule_record(
    message: WorkflowMessage,
    granule: Any,
    region: str = DEFAULT_REGION,
    now: Optional[int] = None,
) -> GranuleRecord:
    """Build the record of one granule entry.

    Raises:
        InvalidGranuleRecord: If the entry is not an object or has no
            ``granuleId``.
    """
    if not isinstance(granule, dict):
        raise InvalidGranuleRecord(
            f"Granule entry must be an object, got {type(granule).__name__}"
        )
    granule_id = granule.get("granuleId")
    if not granule_id or not isinstance(granule_id, str):
        raise InvalidGranuleRecord("Could not find granuleId on granule object")

    meta = message.cumulus_meta
    arn = execution_arn(meta.state_machine, meta.execution_name)
    timestamp = now if now is not None else now_ms()
    created_at = as_ms(meta.workflow_start_time)
    status = message.execution_status

    files = [f for f in granule.get("files") or [] if isinstance(f, dict)]
    pdr = message.payload_dict.get("pdr")
    pdr_name = pdr.get("name") if isinstance(pdr, dict) else None

    end = granule.get("processingEndDateTime")
    if end is None and status is not None and status.is_terminal:
        end = _iso(timestamp)

    return GranuleRecord(
        granule_id=granule_id,
        pdr_name=pdr_name if isinstance(pdr_name, str) and pdr_name else None,
        collection_id=message.collection_id,
        status=granule.get("status") or message.record_status,
        provider=message.provider_id,
        execution=execution_url(arn, region) if arn else None,
        cmr_link=granule.get("cmrLink"),
        files=files,
        published=bool(granule.get("published", False)),
        error=parse_exception(granule.get("error") or message.exception),
        product_volume=product_volume(files),
        time_to_preprocess=_seconds(message.meta.get("sync_granule_duration")),
        time_to_archive=_seconds(message.meta.get("post_to_cmr_duration")),
        processing_start_date_time=(
            granule.get("processingStartDateTime") or _iso(created_at)
        ),
        processing_end_date_time=end,
        created_at=created_at,
        timestamp=timestamp,
        updated_at=timestamp,
        duration=duration_seconds(created_at, timestamp),
    )


def build_granule_records(
    message: WorkflowMessage,
    region: str = DEFAULT_REGION,
    now: Optional[int] = None,
) -> List[BuildResult[GranuleRecord]]:
    """Build one result per granule entry; entries fail independently."""
    granules = message_granules(message)
    if granules is None:
        return []
    if not isinstance(granules, list):
        return [
            BuildResult.failed(
                InvalidGranuleRecord(
                    f"granules must be a list, got {type(granules).__name__}"
                )
            )
        ]
    return [
        try_build(lambda g=granule: build_granule_record(message, g, region, now))
        for granule in granules
    ]
