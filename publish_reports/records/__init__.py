"""Builders mapping a workflow message to publishable records."""

from .common import execution_arn, execution_url
from .execution import build_execution_record
from .granule import build_granule_record, build_granule_records
from .pdr import build_pdr_record
from .result import BuildResult, BuildStatus, try_build

__all__ = [
    "BuildResult",
    "BuildStatus",
    "build_execution_record",
    "build_granule_record",
    "build_granule_records",
    "build_pdr_record",
    "execution_arn",
    "execution_url",
    "try_build",
]
