"""s3cache - Cache CI build artifacts in S3.

This library resolves cache keys to archives in an S3 bucket, downloads them
with concurrent ranged reads, and packs or unpacks local paths as gzip or
zstd tar archives.

Example:
    >>> from s3cache import (
    ...     CacheOrchestrator, CacheSettings, RepositoryContext,
    ...     S3ObjectStore, StoreCredentials, TarArchiveCodec,
    ... )
    >>> settings = CacheSettings(
    ...     key="deps-abc123",
    ...     paths=("node_modules",),
    ...     bucket="ci-cache",
    ...     credentials=StoreCredentials("AKIA...", "secret", "us-east-1"),
    ...     restore_keys=("deps-",),
    ... )
    >>> orchestrator = CacheOrchestrator(
    ...     store=S3ObjectStore.from_credentials(settings.credentials, settings.bucket),
    ...     codec=TarArchiveCodec(),
    ...     settings=settings,
    ...     context=RepositoryContext("octo-org/app", "main"),
    ... )
    >>> result = orchestrator.restore()  # doctest: +SKIP
"""

from s3cache.adapters.archive import TarArchiveCodec
from s3cache.adapters.storage import FilesystemObjectStore, S3ObjectStore
from s3cache.config import CacheSettings, RepositoryContext, StoreCredentials
from s3cache.core.exceptions import (
    ArchiveError,
    CacheMissError,
    ConfigurationError,
    DependencyError,
    S3CacheError,
    StoreAccessError,
    StoreError,
    StoreNotFoundError,
)
from s3cache.core.keys import resolve_location
from s3cache.core.models import (
    ArchivePlan,
    CacheMetadata,
    CompressionMethod,
    ObjectLocation,
    RestoreResult,
    SaveOutcome,
    SaveResult,
)
from s3cache.core.ports import (
    ArchiveCodecPort,
    NullProgressReporter,
    ObjectStorePort,
    ProgressCallback,
    ProgressReporter,
)
from s3cache.core.services import CacheOrchestrator
from s3cache.progress import RichProgressReporter


__version__ = "0.1.0"

__all__ = [
    "ArchiveCodecPort",
    "ArchiveError",
    "ArchivePlan",
    "CacheMetadata",
    "CacheMissError",
    "CacheOrchestrator",
    "CacheSettings",
    "CompressionMethod",
    "ConfigurationError",
    "DependencyError",
    "FilesystemObjectStore",
    "NullProgressReporter",
    "ObjectLocation",
    "ObjectStorePort",
    "ProgressCallback",
    "ProgressReporter",
    "RepositoryContext",
    "RestoreResult",
    "RichProgressReporter",
    "S3CacheError",
    "S3ObjectStore",
    "SaveOutcome",
    "SaveResult",
    "StoreAccessError",
    "StoreCredentials",
    "StoreError",
    "StoreNotFoundError",
    "TarArchiveCodec",
    "__version__",
    "resolve_location",
]
