"""Pytest configuration and shared fixtures.

This module registers custom markers for CI job separation and provides
shared fixtures for the test suite.
"""

from __future__ import annotations

from pathlib import Path

import boto3
import pytest
from moto import mock_aws

from s3cache.config import CacheSettings, RepositoryContext, StoreCredentials
from s3cache.core.models import ArchivePlan, CacheMetadata, CompressionMethod, ObjectLocation
from s3cache.core.ports import ProgressCallback


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "core: Core models, key resolution, and services")
    config.addinivalue_line("markers", "storage: Object store adapters (s3, filesystem)")
    config.addinivalue_line("markers", "archive: Tar archive codec")
    config.addinivalue_line("markers", "executor: Executor adapters")
    config.addinivalue_line("markers", "progress: Rich progress integration")
    config.addinivalue_line("markers", "cli: CLI tests")
    config.addinivalue_line("markers", "e2e: End-to-end tests")
    config.addinivalue_line(
        "markers", "tra: Test Responsibility Anchor (TRA) - namespace.Anchor format"
    )
    config.addinivalue_line(
        "markers",
        "tier: Test tier for CI job separation (0=instant, 1=fast, 2=standard, 3=slow, 4=manual)",
    )


class FakeStore:
    """In-memory ObjectStorePort that records every call.

    Objects are keyed by object key; ``fail`` maps an operation name to an
    exception raised when that operation is called.
    """

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self.objects: dict[str, bytes] = dict(objects or {})
        self.metadata: dict[str, dict[str, str]] = {}
        self.checked: list[str] = []
        self.downloaded: list[str] = []
        self.uploaded: list[str] = []
        self.fail: dict[str, Exception] = {}

    def exists(self, location: ObjectLocation) -> bool:
        self.checked.append(location.object_key)
        if "exists" in self.fail:
            raise self.fail["exists"]
        return location.object_key in self.objects

    def download(
        self,
        location: ObjectLocation,
        dest: Path,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.downloaded.append(location.object_key)
        if "download" in self.fail:
            dest.write_bytes(b"partial")
            raise self.fail["download"]
        data = self.objects[location.object_key]
        dest.write_bytes(data)
        if progress:
            progress(len(data), len(data))

    def upload(
        self,
        location: ObjectLocation,
        local: Path,
        metadata: CacheMetadata | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.uploaded.append(location.object_key)
        if "upload" in self.fail:
            raise self.fail["upload"]
        self.objects[location.object_key] = local.read_bytes()
        if metadata is not None:
            self.metadata[location.object_key] = metadata.as_dict()


class FakeCodec:
    """ArchiveCodecPort that writes a marker file instead of a real archive."""

    def __init__(self) -> None:
        self.encoded: list[ArchivePlan] = []
        self.decoded: list[tuple[bytes, CompressionMethod, Path | None]] = []
        self.fail: dict[str, Exception] = {}

    def encode(self, plan: ArchivePlan, output_path: Path) -> None:
        self.encoded.append(plan)
        output_path.write_bytes("\n".join(plan.paths).encode())
        if "encode" in self.fail:
            raise self.fail["encode"]

    def decode(
        self,
        archive_path: Path,
        method: CompressionMethod,
        destination: Path | None = None,
    ) -> None:
        self.decoded.append((archive_path.read_bytes(), method, destination))
        if "decode" in self.fail:
            raise self.fail["decode"]


@pytest.fixture
def fake_store() -> FakeStore:
    """Empty recording store."""
    return FakeStore()


@pytest.fixture
def fake_codec() -> FakeCodec:
    """Recording codec with no real compression."""
    return FakeCodec()


@pytest.fixture
def credentials() -> StoreCredentials:
    """Static test credentials."""
    return StoreCredentials("testing", "testing", "us-east-1")


@pytest.fixture
def context() -> RepositoryContext:
    """Repository context for octo-org/widgets on main."""
    return RepositoryContext(repository="octo-org/widgets", ref="main")


@pytest.fixture
def make_settings(credentials: StoreCredentials):
    """Factory for CacheSettings with sensible defaults."""

    def _make(**overrides: object) -> CacheSettings:
        values: dict[str, object] = {
            "key": "deps-abc",
            "paths": ("build",),
            "bucket": "test-bucket",
            "credentials": credentials,
        }
        values.update(overrides)
        return CacheSettings(**values)  # type: ignore[arg-type]

    return _make


@pytest.fixture
def s3_client():
    """Create a mocked S3 client with a test bucket."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket="test-bucket")
        yield client
