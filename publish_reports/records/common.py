"""Helpers shared by the record builders."""

from __future__ import annotations

import json
import time
from typing import Any, Dict, Optional

DEFAULT_REGION = "us-east-1"


def now_ms() -> int:
    return int(time.time() * 1000)


def execution_arn(state_machine_arn: Any, execution_name: Any) -> Optional[str]:
    """Compose an execution ARN the way the workflow engine does.

    ``arn:aws:states:<region>:<account>:stateMachine:<name>`` plus
    ``<execution>`` becomes
    ``arn:aws:states:<region>:<account>:execution:<name>:<execution>``.
    """
    if not isinstance(state_machine_arn, str) or not isinstance(execution_name, str):
        return None
    if not state_machine_arn or not execution_name:
        return None
    return f"{state_machine_arn.replace('stateMachine', 'execution', 1)}:{execution_name}"


def execution_url(arn: str, region: str = DEFAULT_REGION) -> str:
    """Console link for an execution."""
    return (
        f"https://console.aws.amazon.com/states/home?region={region}"
        f"#/executions/details/{arn}"
    )


def parse_exception(exception: Any) -> Dict[str, Any]:
    """Normalize a workflow ``exception`` into ``{Error, Cause}``."""
    if exception is None or exception == "" or exception == {}:
        return {}
    if isinstance(exception, dict) and "Error" in exception and "Cause" in exception:
        return exception
    if isinstance(exception, str):
        return {"Error": "Unknown Error", "Cause": exception}
    return {"Error": "Unknown Error", "Cause": json.dumps(exception, default=str)}


def duration_seconds(created_at: Optional[int], timestamp: int) -> Optional[float]:
    if created_at is None:
        return None
    return (timestamp - created_at) / 1000


def as_ms(value: Any) -> Optional[int]:
    """Epoch milliseconds from a number or numeric string; anything else is None."""
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        return None
    try:
        return int(float(value))
    except (ValueError, OverflowError):
        return None
