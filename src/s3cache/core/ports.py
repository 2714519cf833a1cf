"""Ports between the cache orchestrator and its adapters.

The orchestrator talks to an object store, an archive codec, and a progress
display only through these protocols; S3, tarfile, and Rich live behind them.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable


if TYPE_CHECKING:
    from concurrent.futures import Future
    from pathlib import Path

    from s3cache.core.models import (
        ArchivePlan,
        CacheMetadata,
        CompressionMethod,
        ObjectLocation,
    )

ProgressCallback = Callable[[int, int], None]


@runtime_checkable
class ObjectStorePort(Protocol):
    """Remote object store holding cache archives.

    exists() and download() never mutate remote state; upload() is the only
    mutating operation and is never retried by the core.
    """

    def exists(self, location: ObjectLocation) -> bool:
        """Check for an object. Not-found is False, never an error.

        Raises:
            StoreError: For any failure other than a clean not-found.
        """
        ...

    def download(
        self,
        location: ObjectLocation,
        dest: Path,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Download an object to a local path.

        On failure dest may be partially written; the caller must discard it.

        Raises:
            StoreError: If the object cannot be read in full.
        """
        ...

    def upload(
        self,
        location: ObjectLocation,
        local: Path,
        metadata: CacheMetadata | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Stream a local file to the store, attaching optional metadata.

        Raises:
            StoreError: If the upload fails at any point.
        """
        ...


@runtime_checkable
class ArchiveCodecPort(Protocol):
    """Converts between a set of paths and a single compressed archive."""

    def encode(self, plan: ArchivePlan, output_path: Path) -> None:
        """Pack plan.paths into output_path.

        Raises:
            ArchiveError: If packing fails or the archive comes out empty.
            DependencyError: If the requested codec is unavailable.
        """
        ...

    def decode(
        self,
        archive_path: Path,
        method: CompressionMethod,
        destination: Path | None = None,
    ) -> None:
        """Unpack archive_path into destination (cwd when None).

        Raises:
            ArchiveError: If unpacking fails.
            DependencyError: If the requested codec is unavailable.
        """
        ...


@runtime_checkable
class ProgressReporter(Protocol):
    """Receives byte counts for archive transfers.

    The orchestrator opens one task per download or upload, named
    "download <key>" or "upload <key>", and always closes it, even when the
    transfer fails.
    """

    def start_task(self, name: str, total: int) -> ProgressCallback:
        """Open a task and return the callback the store will feed.

        Args:
            name: Task name.
            total: Size in bytes, or 0 when the store has not checked it yet.
        """
        ...

    def finish_task(self, name: str) -> None:
        """Close the task opened under name."""
        ...


class NullProgressReporter:
    """Discards all progress; the orchestrator's default."""

    def start_task(self, name: str, total: int) -> ProgressCallback:  # noqa: ARG002
        return lambda _done, _total: None

    def finish_task(self, name: str) -> None:  # noqa: ARG002
        return None


@runtime_checkable
class ExecutorPort(Protocol):
    """Bounded executor for concurrent range requests.

    Abstracts over concurrent.futures executors so the object store adapter
    can be tested with a synchronous executor. Leaving the context manager
    joins every submitted task.
    """

    def submit(
        self, fn: Callable[..., object], *args: object, **kwargs: object
    ) -> Future[object]:  # type: ignore[name-defined, unused-ignore]
        """Submit a function for execution and return its Future."""
        ...

    def __enter__(self) -> ExecutorPort:
        """Enter context manager."""
        ...

    def __exit__(
        self, exc_type: object, exc_val: object, exc_tb: object
    ) -> object | None:
        """Exit context manager, waiting for outstanding tasks."""
        ...
