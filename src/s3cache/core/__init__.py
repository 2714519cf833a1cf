"""Core domain module for s3cache.

This module contains pure Python domain models, key resolution, and port
definitions. Apart from the orchestrator's temporary archive handling it
has no I/O dependencies and can be tested in isolation.
"""

from s3cache.core.keys import candidate_locations, resolve_location
from s3cache.core.models import (
    PART_SIZE,
    ArchivePlan,
    CacheMetadata,
    CompressionMethod,
    ObjectLocation,
    RestoreResult,
    SaveOutcome,
    SaveResult,
    TransferRange,
    plan_ranges,
)
from s3cache.core.ports import (
    ArchiveCodecPort,
    ExecutorPort,
    ObjectStorePort,
    ProgressCallback,
    ProgressReporter,
)


__all__ = [
    "PART_SIZE",
    "ArchiveCodecPort",
    "ArchivePlan",
    "CacheMetadata",
    "CompressionMethod",
    "ExecutorPort",
    "ObjectLocation",
    "ObjectStorePort",
    "ProgressCallback",
    "ProgressReporter",
    "RestoreResult",
    "SaveOutcome",
    "SaveResult",
    "TransferRange",
    "candidate_locations",
    "plan_ranges",
    "resolve_location",
]
