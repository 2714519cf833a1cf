"""Core domain models for s3cache.

These models are pure Python dataclasses with no I/O dependencies.
They represent the core domain concepts of the artifact cache.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from s3cache.core.exceptions import ConfigurationError


# Fixed part size for multipart ranged downloads (5 MiB)
PART_SIZE = 5 * 1024 * 1024

MIN_COMPRESSION_LEVEL = 1
MAX_COMPRESSION_LEVEL = 9


class CompressionMethod(StrEnum):
    """Compression applied on top of the tar container."""

    GZIP = "gzip"
    ZSTD = "zstd"

    @property
    def extension(self) -> str:
        """Archive file extension, without the leading dot."""
        return "tar.zst" if self is CompressionMethod.ZSTD else "tar.gz"

    @classmethod
    def parse(cls, value: str | None) -> CompressionMethod:
        """Parse a user-supplied method name; empty means gzip.

        Raises:
            ConfigurationError: If the value is not a known method.
        """
        if not value:
            return cls.GZIP
        try:
            return cls(value.strip())
        except ValueError:
            raise ConfigurationError(
                f"compression-method must be either `gzip` or `zstd`, got '{value}'",
                setting="compression-method",
            ) from None


def validate_compression_level(level: int) -> int:
    """Return level unchanged if it is within [1, 9].

    Raises:
        ConfigurationError: If level is out of range.
    """
    if not MIN_COMPRESSION_LEVEL <= level <= MAX_COMPRESSION_LEVEL:
        raise ConfigurationError(
            f"compression-level must be between {MIN_COMPRESSION_LEVEL} "
            f"and {MAX_COMPRESSION_LEVEL}, got {level}",
            setting="compression-level",
        )
    return level


@dataclass(frozen=True, slots=True)
class ObjectLocation:
    """Where a cache entry lives in the object store.

    Built by ``resolve_location``; two locations built from the same inputs
    compare equal and render the same object key.

    Attributes:
        prefix: Key prefix shared by all cache entries.
        repo_name: Short repository name (owner stripped).
        ref: Git ref the entry belongs to.
        cache_key: The caller's cache key.
        method: Compression method, which selects the extension.
    """

    prefix: str
    repo_name: str
    ref: str
    cache_key: str
    method: CompressionMethod = CompressionMethod.GZIP

    @property
    def object_key(self) -> str:
        """Object key in the form prefix/repo/ref/key.ext."""
        return (
            f"{self.prefix}/{self.repo_name}/{self.ref}/"
            f"{self.cache_key}.{self.method.extension}"
        )

    def uri(self, bucket: str) -> str:
        """Fully qualified s3:// URI for display."""
        return f"s3://{bucket}/{self.object_key}"

    def __str__(self) -> str:
        return self.object_key


@dataclass(frozen=True, slots=True)
class ArchivePlan:
    """What to pack into an archive and how to compress it.

    Attributes:
        paths: File-system paths to pack, in order.
        compression_level: Compression level in [1, 9].
        method: Compression method.
    """

    paths: tuple[str, ...]
    compression_level: int = 6
    method: CompressionMethod = CompressionMethod.GZIP

    def __post_init__(self) -> None:
        """Validate the compression level."""
        validate_compression_level(self.compression_level)


@dataclass(frozen=True, slots=True)
class TransferRange:
    """A contiguous byte range of a remote object.

    Attributes:
        offset: First byte of the range.
        length: Number of bytes in the range.
    """

    offset: int
    length: int

    def __post_init__(self) -> None:
        """Validate offset and length."""
        if self.offset < 0:
            raise ValueError(f"TransferRange offset must be >= 0, got {self.offset}")
        if self.length <= 0:
            raise ValueError(f"TransferRange length must be > 0, got {self.length}")

    @property
    def end(self) -> int:
        """Last byte of the range (inclusive)."""
        return self.offset + self.length - 1

    @property
    def header(self) -> str:
        """HTTP Range header value for this range."""
        return f"bytes={self.offset}-{self.end}"


def plan_ranges(size: int, part_size: int = PART_SIZE) -> list[TransferRange]:
    """Split [0, size) into consecutive ranges of part_size bytes.

    The last range is shorter when size is not a multiple of part_size.
    A zero-byte object yields no ranges.

    Args:
        size: Total object size in bytes.
        part_size: Size of every range but the last.

    Returns:
        Ranges ordered by offset, covering [0, size) without gaps or overlap.

    Example:
        >>> [r.header for r in plan_ranges(12, part_size=5)]
        ['bytes=0-4', 'bytes=5-9', 'bytes=10-11']
    """
    if size < 0:
        raise ValueError(f"size must be >= 0, got {size}")
    if part_size <= 0:
        raise ValueError(f"part_size must be > 0, got {part_size}")

    return [
        TransferRange(offset=offset, length=min(part_size, size - offset))
        for offset in range(0, size, part_size)
    ]


@dataclass(frozen=True, slots=True)
class CacheMetadata:
    """Informational metadata attached to an uploaded archive.

    Attributes:
        repository: Full repository identifier (owner/name).
        ref: Git ref the archive was saved from.
        key: The cache key.
        created: When the archive was created.
    """

    repository: str
    ref: str
    key: str
    created: datetime = field(default_factory=lambda: datetime.now(UTC))

    def as_dict(self) -> dict[str, str]:
        """Render as string key/value pairs for store-level metadata."""
        return {
            "repository": self.repository,
            "ref": self.ref,
            "key": self.key,
            "created": self.created.isoformat(),
        }


@dataclass(frozen=True, slots=True)
class RestoreResult:
    """Outcome of a restore.

    Attributes:
        cache_hit: Whether any candidate key was found and restored.
        primary_key: The exact key that was requested.
        matched_key: The key that was restored, or "" on a miss.
        location: Location of the restored archive, if any.
    """

    cache_hit: bool
    primary_key: str
    matched_key: str = ""
    location: ObjectLocation | None = None

    @property
    def exact_match(self) -> bool:
        """True when the primary key itself was restored."""
        return self.cache_hit and self.matched_key == self.primary_key


class SaveOutcome(StrEnum):
    """How a save finished."""

    SAVED = "saved"
    ALREADY_CACHED = "already_cached"
    NO_VALID_PATHS = "no_valid_paths"


@dataclass(frozen=True, slots=True)
class SaveResult:
    """Outcome of a save.

    Attributes:
        outcome: Saved, or the reason the save was skipped.
        primary_key: The cache key.
        location: Target location (None when no path was valid).
        archive_size: Size in bytes of the uploaded archive, when saved.
    """

    outcome: SaveOutcome
    primary_key: str
    location: ObjectLocation | None = None
    archive_size: int | None = None

    @property
    def skipped(self) -> bool:
        """True for every successful no-op outcome."""
        return self.outcome is not SaveOutcome.SAVED
