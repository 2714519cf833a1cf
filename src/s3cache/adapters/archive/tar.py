"""Tar archive codec with gzip or zstd compression.

gzip archives are written and read in a single pass through tarfile.
zstd archives go through an intermediate ``<archive>.tar`` file that is
compressed (or decompressed) with the zstandard package and removed on
every exit path.
"""

from __future__ import annotations

import importlib
import logging
import tarfile
from pathlib import Path
from typing import TYPE_CHECKING

from s3cache.core.exceptions import ArchiveError, DependencyError
from s3cache.core.models import CompressionMethod


if TYPE_CHECKING:
    from collections.abc import Iterable
    from types import ModuleType

    from s3cache.core.models import ArchivePlan


logger = logging.getLogger(__name__)


def _load_zstandard() -> ModuleType:
    """Import the zstandard codec.

    Raises:
        DependencyError: If zstandard is not installed.
    """
    try:
        return importlib.import_module("zstandard")
    except ImportError as e:
        raise DependencyError(
            "zstd is not installed. Please install it to use zstd compression.",
            dependency="zstandard",
        ) from e


def zstd_available() -> bool:
    """Report whether zstd compression can be used in this environment."""
    try:
        _load_zstandard()
    except DependencyError:
        return False
    return True


def _intermediate_tar(archive_path: Path) -> Path:
    return archive_path.with_name(f"{archive_path.name}.tar")


def _log_member(tarinfo: tarfile.TarInfo) -> tarfile.TarInfo:
    logger.debug("  %s (%d bytes)", tarinfo.name, tarinfo.size)
    return tarinfo


def _pack(
    paths: Iterable[str], dest: Path, mode: str, compresslevel: int | None = None
) -> None:
    """Write paths into a tar file; member names drop any leading "/"."""
    kwargs = {} if compresslevel is None else {"compresslevel": compresslevel}
    with tarfile.open(dest, mode, **kwargs) as tar:  # type: ignore[call-overload]
        for path in paths:
            tar.add(path, filter=_log_member)


def _unpack(archive: Path, destination: Path, mode: str) -> None:
    with tarfile.open(archive, mode) as tar:  # type: ignore[call-overload]
        tar.extractall(destination, filter="tar")


class TarArchiveCodec:
    """ArchiveCodecPort implementation over tarfile and zstandard."""

    def encode(self, plan: ArchivePlan, output_path: Path) -> None:
        """Pack plan.paths into a compressed archive at output_path.

        Args:
            plan: Paths, compression level, and method.
            output_path: Archive to create. Left in place on failure.

        Raises:
            ArchiveError: If there are no paths, packing fails, or the
                resulting archive is empty.
            DependencyError: If zstd is requested but unavailable. Nothing is
                written in that case.
        """
        if not plan.paths:
            raise ArchiveError("No paths provided for archive creation")

        logger.info(
            "Creating %s archive with compression level %d",
            plan.method,
            plan.compression_level,
        )
        if plan.method is CompressionMethod.ZSTD:
            self._encode_zstd(plan, output_path)
        else:
            self._encode_gzip(plan, output_path)

        try:
            size = output_path.stat().st_size
        except OSError as e:
            raise ArchiveError(
                f"Failed to create archive: {e}", archive_path=output_path, cause=e
            ) from e
        if size == 0:
            raise ArchiveError("Created archive is empty", archive_path=output_path)
        logger.info("Cache archive created (%d bytes)", size)

    def decode(
        self,
        archive_path: Path,
        method: CompressionMethod,
        destination: Path | None = None,
    ) -> None:
        """Unpack an archive.

        Args:
            archive_path: Archive to read.
            method: Compression method the archive was written with.
            destination: Directory to unpack into; the current working
                directory when None.

        Raises:
            ArchiveError: If decompressing or unpacking fails.
            DependencyError: If zstd is required but unavailable.
        """
        target = destination if destination is not None else Path.cwd()
        logger.info("Extracting cache archive into %s", target)

        if method is CompressionMethod.ZSTD:
            self._decode_zstd(archive_path, target)
        else:
            try:
                target.mkdir(parents=True, exist_ok=True)
                _unpack(archive_path, target, "r:gz")
            except (OSError, tarfile.TarError) as e:
                raise ArchiveError(
                    f"Failed to extract archive: {e}",
                    archive_path=archive_path,
                    cause=e,
                ) from e
        logger.info("Cache archive extracted successfully")

    def _encode_gzip(self, plan: ArchivePlan, output_path: Path) -> None:
        try:
            _pack(plan.paths, output_path, "w:gz", plan.compression_level)
        except (OSError, tarfile.TarError) as e:
            raise ArchiveError(
                f"Failed to create archive: {e}", archive_path=output_path, cause=e
            ) from e

    def _encode_zstd(self, plan: ArchivePlan, output_path: Path) -> None:
        zstandard = _load_zstandard()
        tar_path = _intermediate_tar(output_path)
        try:
            _pack(plan.paths, tar_path, "w")
            compressor = zstandard.ZstdCompressor(
                level=plan.compression_level, threads=-1
            )
            with tar_path.open("rb") as src, output_path.open("wb") as dst:
                compressor.copy_stream(src, dst)
        except (OSError, tarfile.TarError, zstandard.ZstdError) as e:
            raise ArchiveError(
                f"Failed to create archive: {e}", archive_path=output_path, cause=e
            ) from e
        finally:
            tar_path.unlink(missing_ok=True)

    def _decode_zstd(self, archive_path: Path, target: Path) -> None:
        zstandard = _load_zstandard()
        tar_path = _intermediate_tar(archive_path)
        try:
            with archive_path.open("rb") as src, tar_path.open("wb") as dst:
                zstandard.ZstdDecompressor().copy_stream(src, dst)
            target.mkdir(parents=True, exist_ok=True)
            _unpack(tar_path, target, "r:")
        except (OSError, tarfile.TarError, zstandard.ZstdError) as e:
            raise ArchiveError(
                f"Failed to extract archive: {e}", archive_path=archive_path, cause=e
            ) from e
        finally:
            tar_path.unlink(missing_ok=True)
