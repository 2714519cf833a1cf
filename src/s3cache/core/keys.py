"""Pure functions mapping cache keys to object locations.

These functions contain no I/O and are safe to use in the core domain.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from s3cache.core.exceptions import ConfigurationError
from s3cache.core.models import CompressionMethod, ObjectLocation


if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator


def repo_short_name(repository: str) -> str:
    """Return the repository name without its owner.

    Args:
        repository: Full identifier such as "octo-org/widgets".

    Returns:
        The text after the final "/". Falls back to the full identifier when
        there is no "/" or nothing follows it.

    Raises:
        ConfigurationError: If repository is empty.

    Examples:
        >>> repo_short_name("octo-org/widgets")
        'widgets'
        >>> repo_short_name("widgets")
        'widgets'
    """
    if not repository:
        raise ConfigurationError(
            "Repository is required to resolve a cache location",
            setting="repository",
        )
    return repository.rsplit("/", 1)[-1] or repository


def resolve_location(
    prefix: str,
    repository: str,
    ref: str,
    key: str,
    method: CompressionMethod = CompressionMethod.GZIP,
) -> ObjectLocation:
    """Resolve a cache key to its location in the object store.

    The key is used verbatim as a path segment; any "/" inside it is kept.

    Args:
        prefix: Key prefix shared by all cache entries.
        repository: Full repository identifier (owner/name).
        ref: Git ref name.
        key: Cache key.
        method: Compression method, which selects the extension.

    Returns:
        ObjectLocation rendering as "{prefix}/{repo}/{ref}/{key}.{ext}".

    Raises:
        ConfigurationError: If repository is empty.

    Example:
        >>> resolve_location("ci", "org/app", "main", "deps-1").object_key
        'ci/app/main/deps-1.tar.gz'
    """
    return ObjectLocation(
        prefix=prefix,
        repo_name=repo_short_name(repository),
        ref=ref,
        cache_key=key,
        method=method,
    )


def candidate_locations(
    prefix: str,
    repository: str,
    ref: str,
    key: str,
    restore_keys: Iterable[str] = (),
    method: CompressionMethod = CompressionMethod.GZIP,
) -> Iterator[tuple[str, ObjectLocation]]:
    """Yield (cache_key, location) for the primary key, then each restore key.

    Locations are produced lazily so a caller that stops at the first hit
    never resolves the remaining keys. Restore keys share the prefix,
    repository, ref, and compression method of the primary key.
    """
    for candidate in (key, *restore_keys):
        yield candidate, resolve_location(prefix, repository, ref, candidate, method)
