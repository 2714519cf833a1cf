"""Errors raised by s3cache.

Everything derives from S3CacheError. The CLI prints ``recovery_hint``
under the message, so each subclass that knows what to do next says so.

A cache miss at the existence check is never an exception; it is reported
as ``False`` by the object store and as ``cache_hit=False`` by the
orchestrator.
"""

from __future__ import annotations

from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from pathlib import Path


class S3CacheError(Exception):
    """Base class for all s3cache exceptions.

    Catch this to handle any error from the library.
    """

    @property
    def recovery_hint(self) -> str | None:
        """Optional guidance on how to resolve this error."""
        return None


class ConfigurationError(S3CacheError):
    """Raised for malformed settings or inputs to key resolution.

    Attributes:
        setting: Name of the offending setting, if known.
    """

    def __init__(self, message: str, setting: str | None = None) -> None:
        self.setting = setting
        super().__init__(message)

    @property
    def recovery_hint(self) -> str | None:
        """Point at the input that needs fixing."""
        if self.setting:
            return f"Check the '{self.setting}' input"
        return None


class ArchiveError(S3CacheError):
    """Raised when packing, unpacking, or compressing an archive fails.

    Attributes:
        archive_path: The archive being written or read, if known.
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        archive_path: Path | None = None,
        cause: Exception | None = None,
    ) -> None:
        self.archive_path = archive_path
        self.cause = cause
        super().__init__(message)


class DependencyError(S3CacheError):
    """Raised when a required codec is not available in the environment.

    Attributes:
        dependency: Name of the missing package or tool.
    """

    def __init__(self, message: str, dependency: str) -> None:
        self.dependency = dependency
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """Suggest installing the dependency."""
        return f"Install '{self.dependency}' or switch compression-method to gzip"


class StoreError(S3CacheError):
    """Base class for object store errors.

    Raised for every remote failure except a clean not-found during an
    existence check. Never retried by s3cache itself.

    Attributes:
        location: The object key or URI involved.
        operation: The store operation that failed ("exists", "download", ...).
        cause: The underlying exception, if any.
    """

    def __init__(
        self,
        message: str,
        location: str,
        operation: str = "",
        cause: Exception | None = None,
    ) -> None:
        self.location = location
        self.operation = operation
        self.cause = cause
        super().__init__(message)

    @property
    def recovery_hint(self) -> str:
        """The whole operation may be retried by the caller."""
        return "Re-run the job; transient store failures are not retried automatically"


class StoreNotFoundError(StoreError):
    """Raised when an object disappears between probing and reading it."""

    @property
    def recovery_hint(self) -> str:
        """Suggest verifying the location."""
        return f"Verify the object exists: {self.location}"


class StoreAccessError(StoreError):
    """Raised when access to the store is denied (permissions, credentials)."""

    @property
    def recovery_hint(self) -> str:
        """Suggest checking permissions."""
        return "Check credentials and bucket permissions"


class CacheMissError(S3CacheError):
    """Raised by callers that treat a cache miss as a failure.

    Attributes:
        key: The primary cache key that missed.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Cache miss for key '{key}' and fail-on-cache-miss is enabled")

    @property
    def recovery_hint(self) -> str:
        """Explain how to tolerate misses."""
        return "Unset fail-on-cache-miss to treat a miss as a successful no-op"
