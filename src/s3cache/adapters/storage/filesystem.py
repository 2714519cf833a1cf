"""Filesystem object store adapter for local development and testing."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from s3cache.core.exceptions import StoreError, StoreNotFoundError


if TYPE_CHECKING:
    from s3cache.core.models import CacheMetadata, ObjectLocation
    from s3cache.core.ports import ProgressCallback


logger = logging.getLogger(__name__)

# Chunk size for copying files (64KB)
_CHUNK_SIZE = 64 * 1024


class FilesystemObjectStore:
    """Object store backed by a local directory.

    Implements ObjectStorePort by mapping object keys to paths under root.
    Metadata is kept in a JSON sidecar next to each object. Useful for local
    runs and tests without S3.

    Attributes:
        root: Directory standing in for the bucket.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the store.

        Args:
            root: Directory standing in for the bucket. Created on first upload.
        """
        self.root = root

    def _object_path(self, location: ObjectLocation) -> Path:
        return self.root / location.object_key

    def _meta_path(self, location: ObjectLocation) -> Path:
        return self.root / f"{location.object_key}.meta.json"

    def exists(self, location: ObjectLocation) -> bool:
        """Check whether the object file exists."""
        return self._object_path(location).is_file()

    def download(
        self,
        location: ObjectLocation,
        dest: Path,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Copy the object to dest with optional progress reporting.

        Raises:
            StoreNotFoundError: If the object does not exist.
            StoreError: If the copy fails.
        """
        source = self._object_path(location)
        try:
            total_size = source.stat().st_size
        except FileNotFoundError as e:
            raise StoreNotFoundError(
                f"Object not found: {source}",
                location=location.object_key,
                operation="download",
                cause=e,
            ) from e

        try:
            _copy(source, dest, total_size, progress)
        except OSError as e:
            raise StoreError(
                f"Failed to download object: {e}",
                location=location.object_key,
                operation="download",
                cause=e,
            ) from e

    def upload(
        self,
        location: ObjectLocation,
        local: Path,
        metadata: CacheMetadata | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Copy a local file into the store and write its metadata sidecar.

        Raises:
            StoreError: If the local file is unreadable or the copy fails.
        """
        dest = self._object_path(location)
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            _copy(local, dest, local.stat().st_size, progress)
            if metadata is not None:
                with self._meta_path(location).open("w") as f:
                    json.dump(metadata.as_dict(), f)
        except OSError as e:
            raise StoreError(
                f"Failed to upload object: {e}",
                location=location.object_key,
                operation="upload",
                cause=e,
            ) from e
        logger.info("Stored %s", dest)

    def read_metadata(self, location: ObjectLocation) -> dict[str, str] | None:
        """Return the metadata sidecar for an object, or None if absent."""
        meta_path = self._meta_path(location)
        if not meta_path.exists():
            return None
        with meta_path.open() as f:
            data: dict[str, str] = json.load(f)
        return data


def _copy(
    source: Path, dest: Path, total_size: int, progress: ProgressCallback | None
) -> None:
    copied = 0
    with source.open("rb") as src, dest.open("wb") as dst:
        for chunk in iter(lambda: src.read(_CHUNK_SIZE), b""):
            dst.write(chunk)
            copied += len(chunk)
            if progress:
                progress(copied, total_size)
