"""Core domain services for s3cache."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from s3cache.config import CacheSettings, RepositoryContext
from s3cache.core.keys import candidate_locations, resolve_location
from s3cache.core.models import (
    ArchivePlan,
    CacheMetadata,
    ObjectLocation,
    RestoreResult,
    SaveOutcome,
    SaveResult,
)
from s3cache.core.path_utils import validate_paths
from s3cache.core.ports import (
    ArchiveCodecPort,
    NullProgressReporter,
    ObjectStorePort,
    ProgressReporter,
)


logger = logging.getLogger(__name__)


@contextmanager
def temporary_archive(path: Path) -> Iterator[Path]:
    """Hold a local archive path for one operation and delete it afterwards.

    The file is removed whether the body succeeds, fails, or is unwound by
    an exception. A file that was never created is ignored.
    """
    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Failed to cleanup file %s: %s", path, e)


class CacheOrchestrator:
    """Restores and saves cache archives through a store and a codec."""

    def __init__(
        self,
        store: ObjectStorePort,
        codec: ArchiveCodecPort,
        settings: CacheSettings,
        context: RepositoryContext,
        work_dir: Path | None = None,
        progress: ProgressReporter | None = None,
    ) -> None:
        self._store = store
        self._codec = codec
        self._settings = settings
        self._context = context
        self._work_dir = work_dir
        self._progress = progress or NullProgressReporter()

    @property
    def settings(self) -> CacheSettings:
        """Settings this orchestrator was built with."""
        return self._settings

    @property
    def archive_path(self) -> Path:
        """Fixed local path of the temporary archive."""
        work_dir = self._work_dir if self._work_dir is not None else Path.cwd()
        return work_dir / self._settings.archive_name

    def primary_location(self) -> ObjectLocation:
        """Resolve the location of the primary key."""
        s = self._settings
        return resolve_location(
            s.prefix,
            self._context.repository,
            self._context.ref,
            s.key,
            s.compression_method,
        )

    def restore(self, destination: Path | None = None) -> RestoreResult:
        """Restore the first cache entry found among the candidate keys.

        The primary key is checked first, then each restore key in order.
        Probing stops at the first existing object, which is downloaded and
        unpacked. Later keys are never checked.

        Args:
            destination: Directory to unpack into; cwd when None.

        Returns:
            RestoreResult with cache_hit=False when every candidate missed.

        Raises:
            StoreError: If probing or downloading fails.
            ArchiveError: If unpacking fails.
            DependencyError: If the archive's codec is unavailable.
        """
        s = self._settings
        logger.info("Restoring cache with key: %s", s.key)

        candidates = candidate_locations(
            s.prefix,
            self._context.repository,
            self._context.ref,
            s.key,
            s.restore_keys,
            s.compression_method,
        )
        for candidate, location in candidates:
            logger.info("Probing %s", location.uri(s.bucket))
            if not self._store.exists(location):
                continue

            if candidate == s.key:
                logger.info("Cache hit found for exact key: %s", candidate)
            else:
                logger.info("Cache hit found for restore key: %s", candidate)
            self._download_and_decode(location, destination)
            return RestoreResult(
                cache_hit=True,
                primary_key=s.key,
                matched_key=candidate,
                location=location,
            )

        logger.info("Cache not found for key: %s", s.key)
        return RestoreResult(cache_hit=False, primary_key=s.key)

    def save(self) -> SaveResult:
        """Archive the configured paths and upload them unless already cached.

        Returns:
            SaveResult whose outcome is SAVED, or the reason the save was
            skipped (no valid paths, already cached).

        Raises:
            ArchiveError: If encoding fails.
            DependencyError: If the codec is unavailable.
            StoreError: If probing or uploading fails.
        """
        s = self._settings
        logger.info("Saving cache with key: %s", s.key)

        valid, missing = validate_paths(s.paths)
        if missing:
            logger.warning("Some cache paths do not exist: %s", ", ".join(missing))
        if not valid:
            logger.warning("No valid cache paths found, skipping cache save")
            return SaveResult(outcome=SaveOutcome.NO_VALID_PATHS, primary_key=s.key)

        location = self.primary_location()
        logger.info("S3 location: %s", location.uri(s.bucket))
        if self._store.exists(location):
            logger.info("Cache already exists for key %s, skipping save", s.key)
            return SaveResult(
                outcome=SaveOutcome.ALREADY_CACHED,
                primary_key=s.key,
                location=location,
            )

        plan = ArchivePlan(
            paths=tuple(valid),
            compression_level=s.compression_level,
            method=s.compression_method,
        )
        metadata = CacheMetadata(
            repository=self._context.repository,
            ref=self._context.ref,
            key=s.key,
        )
        with temporary_archive(self.archive_path) as archive:
            self._codec.encode(plan, archive)
            size = archive.stat().st_size

            callback = self._progress.start_task(f"upload {s.key}", size)
            try:
                self._store.upload(location, archive, metadata, callback)
            finally:
                self._progress.finish_task(f"upload {s.key}")

        logger.info("Cache saved successfully")
        return SaveResult(
            outcome=SaveOutcome.SAVED,
            primary_key=s.key,
            location=location,
            archive_size=size,
        )

    def _download_and_decode(
        self, location: ObjectLocation, destination: Path | None
    ) -> None:
        """Download an archive, then unpack it once the download is complete."""
        with temporary_archive(self.archive_path) as archive:
            task = f"download {location.cache_key}"
            # Total is unknown until the store has checked the object
            callback = self._progress.start_task(task, 0)
            try:
                self._store.download(location, archive, callback)
            finally:
                self._progress.finish_task(task)
            self._codec.decode(archive, location.method, destination)
        logger.info("Cache restored successfully")
