"""S3 object store adapter using boto3."""

from __future__ import annotations

import logging
import os
import threading
from typing import TYPE_CHECKING

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from s3cache.adapters.executor import create_executor
from s3cache.core.exceptions import (
    StoreAccessError,
    StoreError,
    StoreNotFoundError,
)
from s3cache.core.models import PART_SIZE, plan_ranges


if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from mypy_boto3_s3 import S3Client

    from s3cache.config import StoreCredentials
    from s3cache.core.models import CacheMetadata, ObjectLocation, TransferRange
    from s3cache.core.ports import ExecutorPort, ProgressCallback

    ExecutorFactory = Callable[[int], ExecutorPort]


logger = logging.getLogger(__name__)

DEFAULT_MAX_CONCURRENCY = 8

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_ACCESS_DENIED_CODES = frozenset({"403", "AccessDenied", "Forbidden"})


class _TransferProgress:
    """Thread-safe byte counter feeding an optional progress callback."""

    def __init__(self, total: int, callback: ProgressCallback | None) -> None:
        self._total = total
        self._callback = callback
        self._done = 0
        self._lock = threading.Lock()

    def advance(self, amount: int) -> None:
        with self._lock:
            self._done += amount
            done = self._done
        if self._callback is not None:
            self._callback(done, self._total)


class S3ObjectStore:
    """Object store adapter for S3 and S3-compatible services.

    Implements ObjectStorePort for a single bucket. Downloads are split into
    fixed-size byte ranges fetched concurrently and written in place with
    positional writes; uploads are streamed through boto3's transfer manager.
    """

    def __init__(
        self,
        bucket: str,
        client: S3Client | None = None,
        *,
        part_size: int = PART_SIZE,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
        executor_factory: ExecutorFactory | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            bucket: Bucket holding cache archives.
            client: Optional boto3 S3 client. If not provided, creates a default client.
            part_size: Byte size of each ranged read during download.
            max_concurrency: Maximum outstanding range requests.
            executor_factory: Builds the executor for one download from
                max_concurrency. Defaults to a bounded thread pool.
        """
        if part_size <= 0:
            raise ValueError(f"part_size must be > 0, got {part_size}")
        if max_concurrency < 1:
            raise ValueError(f"max_concurrency must be >= 1, got {max_concurrency}")
        self._bucket = bucket
        self._client = client or boto3.client("s3")
        self._part_size = part_size
        self._max_concurrency = max_concurrency
        self._executor_factory = executor_factory or create_executor

    @classmethod
    def from_credentials(
        cls, credentials: StoreCredentials, bucket: str, **kwargs: object
    ) -> S3ObjectStore:
        """Build a store with a client for explicit credentials.

        Args:
            credentials: Access key, secret, region, and optional endpoint.
            bucket: Bucket holding cache archives.
            **kwargs: Passed through to the constructor.
        """
        client = boto3.client(
            "s3",
            region_name=credentials.region,
            aws_access_key_id=credentials.access_key_id,
            aws_secret_access_key=credentials.secret_access_key,
            endpoint_url=credentials.endpoint_url,
        )
        return cls(bucket, client, **kwargs)  # type: ignore[arg-type]

    @property
    def bucket(self) -> str:
        """Bucket this store reads and writes."""
        return self._bucket

    def exists(self, location: ObjectLocation) -> bool:
        """Check whether an object exists with a metadata-only HEAD request.

        Args:
            location: Object to check.

        Returns:
            True if the object exists, False on a clean not-found.

        Raises:
            StoreAccessError: If access is denied.
            StoreError: For any other S3 or transport error.
        """
        key = location.object_key
        try:
            self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            if _is_not_found(e):
                logger.debug("No object at %s", location.uri(self._bucket))
                return False
            raise self._translate_client_error(e, key, "exists") from e
        except BotoCoreError as e:
            raise self._transport_error(e, key, "exists") from e
        return True

    def download(
        self,
        location: ObjectLocation,
        dest: Path,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Download an object with concurrent ranged reads.

        The destination is opened once and pre-sized to the object's length.
        Each range is written at its own offset, so ranges may complete in
        any order. The file is closed only after every range has finished.

        Args:
            location: Object to download.
            dest: Local destination path.
            progress: Optional callback function(bytes_downloaded, total_bytes).

        Raises:
            StoreNotFoundError: If the object does not exist.
            StoreAccessError: If access is denied.
            StoreError: If the size is unknown or any range fails. dest is
                left partially written and must be discarded.
        """
        key = location.object_key
        size = self._content_length(key)
        ranges = plan_ranges(size, self._part_size)
        logger.info(
            "Downloading %s (%d bytes in %d parts)",
            location.uri(self._bucket),
            size,
            len(ranges),
        )

        tracker = _TransferProgress(size, progress)
        try:
            with dest.open("wb") as f:
                f.truncate(size)
                self._download_ranges(key, ranges, f.fileno(), tracker)
        except OSError as e:
            raise StoreError(
                f"Failed to write {dest}: {e}",
                location=key,
                operation="download",
                cause=e,
            ) from e

    def _download_ranges(
        self,
        key: str,
        ranges: list[TransferRange],
        fd: int,
        tracker: _TransferProgress,
    ) -> None:
        with self._executor_factory(self._max_concurrency) as executor:
            futures = [
                executor.submit(self._download_range, key, part, fd, tracker)
                for part in ranges
            ]
        # Leaving the executor joined every range; report the first failure
        for part, future in zip(ranges, futures, strict=True):
            error = future.exception()
            if error is None:
                continue
            if isinstance(error, StoreError):
                raise error
            raise StoreError(
                f"Failed to download range {part.header} of {key}: {error}",
                location=key,
                operation="download",
                cause=error if isinstance(error, Exception) else None,
            ) from error

    def upload(
        self,
        location: ObjectLocation,
        local: Path,
        metadata: CacheMetadata | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        """Stream a local file to S3.

        boto3's transfer manager may split the stream into multipart chunks;
        that is invisible to callers. The upload is not retried here.

        Args:
            location: Destination object.
            local: Path to local file.
            metadata: Optional metadata attached as S3 user metadata.
            progress: Optional callback function(bytes_uploaded, total_bytes).

        Raises:
            StoreAccessError: If access is denied.
            StoreError: If the upload fails for any other reason, including
                an unreadable local file.
        """
        key = location.object_key
        extra_args = {"Metadata": metadata.as_dict()} if metadata else None
        try:
            tracker = _TransferProgress(local.stat().st_size, progress)
            with local.open("rb") as f:
                self._client.upload_fileobj(
                    f,
                    self._bucket,
                    key,
                    ExtraArgs=extra_args,
                    Callback=tracker.advance,
                )
        except ClientError as e:
            raise self._translate_client_error(e, key, "upload") from e
        except (BotoCoreError, S3UploadFailedError) as e:
            raise self._transport_error(e, key, "upload") from e
        except OSError as e:
            raise StoreError(
                f"Failed to upload object: {e}",
                location=key,
                operation="upload",
                cause=e,
            ) from e
        logger.info("Uploaded %s", location.uri(self._bucket))

    def _content_length(self, key: str) -> int:
        """Return the object's size from a HEAD request."""
        try:
            response = self._client.head_object(Bucket=self._bucket, Key=key)
        except ClientError as e:
            raise self._translate_client_error(e, key, "download") from e
        except BotoCoreError as e:
            raise self._transport_error(e, key, "download") from e

        size = response.get("ContentLength")
        if size is None:
            raise StoreError(
                f"Could not determine size of {key}",
                location=key,
                operation="download",
            )
        return int(size)

    def _download_range(
        self, key: str, part: TransferRange, fd: int, tracker: _TransferProgress
    ) -> int:
        """Fetch one range and write it at its offset. Runs on a worker."""
        try:
            response = self._client.get_object(
                Bucket=self._bucket, Key=key, Range=part.header
            )
            body = response["Body"].read()
        except ClientError as e:
            raise self._translate_client_error(e, key, "download") from e
        except BotoCoreError as e:
            raise self._transport_error(e, key, "download") from e

        if not body:
            raise StoreError(
                f"Empty response body for range {part.header} of {key}",
                location=key,
                operation="download",
            )
        if len(body) != part.length:
            raise StoreError(
                f"Short read for range {part.header} of {key}: "
                f"expected {part.length} bytes, got {len(body)}",
                location=key,
                operation="download",
            )

        view = memoryview(body)
        offset = part.offset
        while view:
            written = os.pwrite(fd, view, offset)
            view = view[written:]
            offset += written

        logger.debug("Wrote range %s of %s", part.header, key)
        tracker.advance(part.length)
        return part.length

    def _translate_client_error(
        self, error: ClientError, key: str, operation: str
    ) -> StoreError:
        """Translate botocore ClientError to domain exception.

        Args:
            error: The botocore ClientError.
            key: The object key for context.
            operation: The store operation that failed.

        Returns:
            Appropriate StoreError subclass.
        """
        code = error.response.get("Error", {}).get("Code", "")

        if _is_not_found(error):
            return StoreNotFoundError(
                f"Object not found: s3://{self._bucket}/{key}",
                location=key,
                operation=operation,
                cause=error,
            )

        if code in _ACCESS_DENIED_CODES:
            return StoreAccessError(
                f"Access denied during {operation}: s3://{self._bucket}/{key}",
                location=key,
                operation=operation,
                cause=error,
            )

        return StoreError(
            f"S3 error during {operation} ({code}): {error}",
            location=key,
            operation=operation,
            cause=error,
        )

    def _transport_error(
        self, error: Exception, key: str, operation: str
    ) -> StoreError:
        """Wrap a transport-level failure (network, credentials, timeouts)."""
        return StoreError(
            f"Failed to {operation} s3://{self._bucket}/{key}: {error}",
            location=key,
            operation=operation,
            cause=error,
        )


def _is_not_found(error: ClientError) -> bool:
    """True if a ClientError means the object (or bucket) is absent."""
    code = error.response.get("Error", {}).get("Code", "")
    status = error.response.get("ResponseMetadata", {}).get("HTTPStatusCode")
    return code in _NOT_FOUND_CODES or status == 404
