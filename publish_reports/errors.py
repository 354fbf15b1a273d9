"""Error hierarchy for report publishing.

Only ``MalformedMessage`` is allowed to escape an invocation. Every
``RecordBuildError`` is caught at the scope of the record that raised it and
``PublishFailure`` is only ever carried inside a publish outcome.
"""

from __future__ import annotations

from typing import Optional


class PublishReportsError(Exception):
    """Base class for all report publishing errors."""

    def __init__(self, message: str, code: Optional[str] = None) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        super().__init__(message)


class MalformedMessage(PublishReportsError):
    """The triggering event or its embedded workflow message cannot be parsed."""


class RecordBuildError(PublishReportsError):
    """A single record could not be built from the workflow message."""


class InvalidExecutionContext(RecordBuildError):
    """Execution name or state machine missing from ``cumulus_meta``."""


class InvalidPdrRecord(RecordBuildError):
    """``payload.pdr`` is present but malformed."""


class InvalidGranuleRecord(RecordBuildError):
    """A ``payload.granules`` entry cannot be turned into a record."""


class PublishFailure(PublishReportsError):
    """The transport failed to publish a built record."""

    def __init__(self, topic: str, cause: BaseException) -> None:
        super().__init__(f"Failed to publish to {topic}: {cause}")
        self.topic = topic
        self.cause = cause
