"""Object store adapters."""

from s3cache.adapters.storage.filesystem import FilesystemObjectStore
from s3cache.adapters.storage.s3 import S3ObjectStore


__all__ = ["FilesystemObjectStore", "S3ObjectStore"]
