"""Tagged outcome of running a record builder once."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Generic, Optional, TypeVar

from ..errors import RecordBuildError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT")


class BuildStatus(str, Enum):
    BUILT = "built"
    NOT_APPLICABLE = "not_applicable"
    FAILED = "failed"


@dataclass(frozen=True)
class BuildResult(Generic[RecordT]):
    """Either a built record, "not applicable", or the error that prevented it."""

    status: BuildStatus
    record: Optional[RecordT] = None
    error: Optional[BaseException] = None

    @classmethod
    def built(cls, record: RecordT) -> "BuildResult[RecordT]":
        return cls(BuildStatus.BUILT, record=record)

    @classmethod
    def not_applicable(cls) -> "BuildResult[RecordT]":
        return cls(BuildStatus.NOT_APPLICABLE)

    @classmethod
    def failed(cls, error: BaseException) -> "BuildResult[RecordT]":
        return cls(BuildStatus.FAILED, error=error)


def try_build(build: Callable[[], Optional[RecordT]]) -> BuildResult[RecordT]:
    """Run ``build`` and classify its result.

    ``None`` means the source data is absent. Declared ``RecordBuildError``s
    and unexpected errors both become ``FAILED``; the latter are logged with
    a traceback since they point at a bug rather than bad input.
    """
    try:
        record = build()
    except RecordBuildError as e:
        return BuildResult.failed(e)
    except Exception as e:
        logger.exception(f"Unexpected error while building record: {e}")
        return BuildResult.failed(e)
    if record is None:
        return BuildResult.not_applicable()
    return BuildResult.built(record)
