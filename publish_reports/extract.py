"""Extraction of the workflow message from an execution status event."""

from __future__ import annotations

import json
import logging
from typing import Any, Mapping, Union

from pydantic import ValidationError

from .contracts import WorkflowExecutionEvent, WorkflowMessage
from .errors import MalformedMessage

logger = logging.getLogger(__name__)


def parse_event(
    event: Union[WorkflowExecutionEvent, Mapping[str, Any]]
) -> WorkflowExecutionEvent:
    """Validate the raw notification shape."""
    if isinstance(event, WorkflowExecutionEvent):
        return event
    try:
        return WorkflowExecutionEvent.model_validate(event)
    except ValidationError as e:
        raise MalformedMessage(f"Invalid execution event: {e}") from e


def extract_message(
    event: Union[WorkflowExecutionEvent, Mapping[str, Any]]
) -> WorkflowMessage:
    """Decode the workflow message carried by ``event``.

    Terminal executions report their final message in ``detail.output``;
    it is preferred over ``detail.input`` whenever the engine supplied one.

    Raises:
        MalformedMessage: If the event or its embedded message cannot be
            decoded into a JSON object.
    """
    parsed = parse_event(event)
    detail = parsed.detail

    raw = detail.input
    if detail.status.is_terminal and detail.output is not None:
        raw = detail.output
    if raw is None:
        raise MalformedMessage("Execution event carries no workflow message")

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise MalformedMessage(f"Workflow message is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise MalformedMessage(
            f"Workflow message must be an object, got {type(data).__name__}"
        )

    try:
        message = WorkflowMessage.model_validate(data)
    except ValidationError as e:
        raise MalformedMessage(f"Invalid workflow message: {e}") from e

    message.execution_status = detail.status
    logger.debug(
        f"Extracted workflow message for execution "
        f"{message.cumulus_meta.execution_name} with status {detail.status.value}"
    )
    return message
