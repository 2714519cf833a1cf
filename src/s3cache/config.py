"""Configuration for s3cache.

Settings are an explicit, immutable struct passed into the orchestrator.
The ``from_env`` constructors read GitHub Actions inputs, which the runner
exposes as ``INPUT_<NAME>`` environment variables (upper-cased, hyphens kept).

Example:
    >>> settings = CacheSettings(
    ...     key="deps-abc123",
    ...     paths=("node_modules",),
    ...     bucket="ci-cache",
    ...     credentials=StoreCredentials("AKIA...", "secret", "us-east-1"),
    ... )
    >>> settings.archive_name
    'cache.tar.gz'
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from s3cache.core.exceptions import ConfigurationError
from s3cache.core.models import CompressionMethod, validate_compression_level


DEFAULT_PREFIX = "github-actions-cache"
DEFAULT_COMPRESSION_LEVEL = 6

_TRUE_VALUES = frozenset({"true", "True", "TRUE"})
_FALSE_VALUES = frozenset({"false", "False", "FALSE"})


@dataclass(frozen=True, slots=True)
class StoreCredentials:
    """Credentials and endpoint for the object store.

    Attributes:
        access_key_id: AWS access key ID.
        secret_access_key: AWS secret access key (hidden from repr).
        region: AWS region of the bucket.
        endpoint_url: Optional endpoint for S3-compatible services.
    """

    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str
    endpoint_url: str | None = None


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """Everything the orchestrator needs to restore or save one cache entry.

    Attributes:
        key: Primary cache key.
        paths: Paths to save, or to restore into (informational on restore).
        bucket: Bucket holding cache archives.
        credentials: Object store credentials.
        restore_keys: Fallback keys tried in order when key misses.
        prefix: Object key prefix.
        compression_level: Compression level in [1, 9].
        compression_method: gzip or zstd.
        fail_on_miss: Whether callers should treat a miss as a failure.
    """

    key: str
    paths: tuple[str, ...]
    bucket: str
    credentials: StoreCredentials
    restore_keys: tuple[str, ...] = ()
    prefix: str = DEFAULT_PREFIX
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    compression_method: CompressionMethod = CompressionMethod.GZIP
    fail_on_miss: bool = False

    def __post_init__(self) -> None:
        """Validate settings after initialization."""
        if not self.key.strip():
            raise ConfigurationError("Cache key cannot be empty", setting="key")
        if not self.paths:
            raise ConfigurationError(
                "At least one path must be specified", setting="path"
            )
        if not self.bucket:
            raise ConfigurationError("Bucket cannot be empty", setting="s3-bucket")
        validate_compression_level(self.compression_level)

    @property
    def archive_name(self) -> str:
        """Fixed file name of the local temporary archive."""
        return f"cache.{self.compression_method.extension}"

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> CacheSettings:
        """Build settings from GitHub Actions inputs.

        Args:
            environ: Environment to read; defaults to os.environ.

        Raises:
            ConfigurationError: If a required input is missing or malformed.
        """
        env = os.environ if environ is None else environ

        credentials = StoreCredentials(
            access_key_id=_required_input(env, "aws-access-key-id"),
            secret_access_key=_required_input(env, "aws-secret-access-key"),
            region=_required_input(env, "aws-region"),
            endpoint_url=_input(env, "s3-endpoint") or None,
        )
        return cls(
            key=_required_input(env, "key"),
            paths=tuple(_multiline_input(env, "path")),
            bucket=_required_input(env, "s3-bucket"),
            credentials=credentials,
            restore_keys=tuple(_multiline_input(env, "restore-keys")),
            prefix=_input(env, "s3-prefix") or DEFAULT_PREFIX,
            compression_level=_int_input(
                env, "compression-level", DEFAULT_COMPRESSION_LEVEL
            ),
            compression_method=CompressionMethod.parse(
                _input(env, "compression-method")
            ),
            fail_on_miss=_bool_input(env, "fail-on-cache-miss"),
        )


@dataclass(frozen=True, slots=True)
class RepositoryContext:
    """Repository and ref the cache entry belongs to.

    Attributes:
        repository: Full repository identifier (owner/name).
        ref: Branch or tag name.
    """

    repository: str
    ref: str

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> RepositoryContext:
        """Read GITHUB_REPOSITORY and GITHUB_REF_NAME.

        Raises:
            ConfigurationError: If either variable is unset or empty.
        """
        env = os.environ if environ is None else environ
        repository = env.get("GITHUB_REPOSITORY", "")
        ref = env.get("GITHUB_REF_NAME", "")
        if not repository:
            raise ConfigurationError(
                "GITHUB_REPOSITORY environment variable is not set",
                setting="GITHUB_REPOSITORY",
            )
        if not ref:
            raise ConfigurationError(
                "GITHUB_REF_NAME environment variable is not set",
                setting="GITHUB_REF_NAME",
            )
        return cls(repository=repository, ref=ref)


def log_level_from_env(environ: Mapping[str, str] | None = None) -> str:
    """Pick a log level: S3CACHE_LOG_LEVEL, then RUNNER_DEBUG, then INFO."""
    env = os.environ if environ is None else environ
    if env.get("S3CACHE_LOG_LEVEL"):
        return env["S3CACHE_LOG_LEVEL"].upper()
    if env.get("RUNNER_DEBUG") == "1":
        return "DEBUG"
    return "INFO"


def _input(env: Mapping[str, str], name: str) -> str:
    return env.get(f"INPUT_{name.upper()}", "").strip()


def _required_input(env: Mapping[str, str], name: str) -> str:
    value = _input(env, name)
    if not value:
        raise ConfigurationError(
            f"Input required and not supplied: {name}", setting=name
        )
    return value


def _multiline_input(env: Mapping[str, str], name: str) -> list[str]:
    return [line.strip() for line in _input(env, name).splitlines() if line.strip()]


def _int_input(env: Mapping[str, str], name: str, default: int) -> int:
    value = _input(env, name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"Input '{name}' must be an integer, got '{value}'", setting=name
        ) from None


def _bool_input(env: Mapping[str, str], name: str) -> bool:
    value = _input(env, name)
    if not value or value in _FALSE_VALUES:
        return False
    if value in _TRUE_VALUES:
        return True
    raise ConfigurationError(
        f"Input '{name}' must be one of: true | True | TRUE | false | False | FALSE",
        setting=name,
    )
