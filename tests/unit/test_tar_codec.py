"""Unit tests for TarArchiveCodec."""

from __future__ import annotations

import sys
import tarfile
from pathlib import Path

import pytest

from s3cache.core.exceptions import ArchiveError, DependencyError
from s3cache.core.models import ArchivePlan, CompressionMethod


@pytest.fixture
def workspace(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """A working directory holding a small tree to archive."""
    src = tmp_path / "src"
    src.mkdir()
    monkeypatch.chdir(src)
    (src / "build").mkdir()
    (src / "build" / "app.bin").write_bytes(b"\x00\x01" * 1000)
    (src / "build" / "nested").mkdir()
    (src / "build" / "nested" / "notes.txt").write_text("hello")
    (src / "top.txt").write_text("top level")
    return src


@pytest.mark.archive
class TestRoundTrip:
    """Encoding then decoding restores the original tree."""

    @pytest.mark.parametrize("method", list(CompressionMethod))
    def test_round_trip(self, workspace: Path, method: CompressionMethod) -> None:
        """Files, directories, and contents survive a round trip."""
        from s3cache.adapters.archive import TarArchiveCodec

        codec = TarArchiveCodec()
        archive = workspace.parent / f"cache.{method.extension}"
        plan = ArchivePlan(paths=("build", "top.txt"), compression_level=3, method=method)

        codec.encode(plan, archive)
        dest = workspace.parent / "restored"
        codec.decode(archive, method, dest)

        assert (dest / "build" / "app.bin").read_bytes() == b"\x00\x01" * 1000
        assert (dest / "build" / "nested" / "notes.txt").read_text() == "hello"
        assert (dest / "top.txt").read_text() == "top level"

    def test_decode_defaults_to_cwd(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Without a destination the archive unpacks into the cwd."""
        from s3cache.adapters.archive import TarArchiveCodec

        codec = TarArchiveCodec()
        archive = workspace.parent / "cache.tar.gz"
        codec.encode(ArchivePlan(paths=("top.txt",)), archive)

        target = workspace.parent / "elsewhere"
        target.mkdir()
        monkeypatch.chdir(target)
        codec.decode(archive, CompressionMethod.GZIP)

        assert (target / "top.txt").read_text() == "top level"

    def test_gzip_archive_is_standard_tar_gz(self, workspace: Path) -> None:
        """gzip archives are readable by plain tarfile."""
        from s3cache.adapters.archive import TarArchiveCodec

        archive = workspace.parent / "cache.tar.gz"
        TarArchiveCodec().encode(ArchivePlan(paths=("build",)), archive)

        with tarfile.open(archive, "r:gz") as tar:
            names = tar.getnames()
        assert "build/nested/notes.txt" in names

    def test_zstd_intermediate_removed_after_encode(self, workspace: Path) -> None:
        """The intermediate .tar is gone after a zstd encode."""
        from s3cache.adapters.archive import TarArchiveCodec

        archive = workspace.parent / "cache.tar.zst"
        TarArchiveCodec().encode(
            ArchivePlan(paths=("build",), method=CompressionMethod.ZSTD), archive
        )

        assert archive.exists()
        assert not (workspace.parent / "cache.tar.zst.tar").exists()


@pytest.mark.archive
class TestEncodeErrors:
    """Failure modes of encode()."""

    def test_empty_paths_raise_before_packing(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """No paths is an ArchiveError and nothing is packed."""
        from s3cache.adapters.archive import TarArchiveCodec, tar

        calls: list[object] = []
        monkeypatch.setattr(tar, "_pack", lambda *args, **kwargs: calls.append(args))

        with pytest.raises(ArchiveError, match="No paths provided"):
            TarArchiveCodec().encode(ArchivePlan(paths=()), tmp_path / "cache.tar.gz")

        assert calls == []
        assert not (tmp_path / "cache.tar.gz").exists()

    def test_zero_byte_archive_raises(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """An archive that comes out empty is rejected."""
        from s3cache.adapters.archive import TarArchiveCodec, tar

        def write_nothing(paths: object, dest: Path, mode: str, compresslevel: object = None) -> None:
            dest.touch()

        monkeypatch.setattr(tar, "_pack", write_nothing)

        with pytest.raises(ArchiveError, match="empty"):
            TarArchiveCodec().encode(ArchivePlan(paths=("x",)), tmp_path / "cache.tar.gz")

    def test_missing_path_raises_archive_error(self, workspace: Path) -> None:
        """A path that vanished before packing is wrapped as ArchiveError."""
        from s3cache.adapters.archive import TarArchiveCodec

        with pytest.raises(ArchiveError, match="Failed to create archive") as exc_info:
            TarArchiveCodec().encode(
                ArchivePlan(paths=("does-not-exist",)),
                workspace.parent / "cache.tar.gz",
            )
        assert isinstance(exc_info.value.cause, OSError)

    def test_zstd_unavailable_raises_dependency_error(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Missing zstandard is a DependencyError and nothing is written."""
        from s3cache.adapters.archive import TarArchiveCodec, zstd_available

        monkeypatch.setitem(sys.modules, "zstandard", None)
        archive = workspace.parent / "cache.tar.zst"

        assert zstd_available() is False
        with pytest.raises(DependencyError) as exc_info:
            TarArchiveCodec().encode(
                ArchivePlan(paths=("build",), method=CompressionMethod.ZSTD), archive
            )

        assert exc_info.value.dependency == "zstandard"
        assert not archive.exists()
        assert not (workspace.parent / "cache.tar.zst.tar").exists()


@pytest.mark.archive
class TestDecodeErrors:
    """Failure modes of decode()."""

    def test_corrupt_gzip_raises_archive_error(self, tmp_path: Path) -> None:
        """Garbage input is an ArchiveError."""
        from s3cache.adapters.archive import TarArchiveCodec

        archive = tmp_path / "cache.tar.gz"
        archive.write_bytes(b"not a tarball")

        with pytest.raises(ArchiveError, match="Failed to extract archive"):
            TarArchiveCodec().decode(archive, CompressionMethod.GZIP, tmp_path / "out")

    def test_corrupt_zstd_removes_intermediate(self, tmp_path: Path) -> None:
        """A failed zstd decode still removes the intermediate .tar."""
        from s3cache.adapters.archive import TarArchiveCodec

        archive = tmp_path / "cache.tar.zst"
        archive.write_bytes(b"not zstd either")

        with pytest.raises(ArchiveError):
            TarArchiveCodec().decode(archive, CompressionMethod.ZSTD, tmp_path / "out")

        assert not (tmp_path / "cache.tar.zst.tar").exists()

    def test_zstd_unpack_failure_removes_intermediate(
        self, workspace: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """The intermediate is removed when unpacking fails after decompression."""
        from s3cache.adapters.archive import TarArchiveCodec, tar

        codec = TarArchiveCodec()
        archive = workspace.parent / "cache.tar.zst"
        codec.encode(ArchivePlan(paths=("build",), method=CompressionMethod.ZSTD), archive)

        def fail_unpack(archive: Path, destination: Path, mode: str) -> None:
            assert archive.exists()
            raise tarfile.ReadError("truncated")

        monkeypatch.setattr(tar, "_unpack", fail_unpack)

        with pytest.raises(ArchiveError):
            codec.decode(archive, CompressionMethod.ZSTD, workspace.parent / "out")

        assert not (workspace.parent / "cache.tar.zst.tar").exists()

    def test_zstd_decode_unavailable(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Decoding zstd without zstandard is a DependencyError."""
        from s3cache.adapters.archive import TarArchiveCodec

        monkeypatch.setitem(sys.modules, "zstandard", None)
        archive = tmp_path / "cache.tar.zst"
        archive.write_bytes(b"x")

        with pytest.raises(DependencyError):
            TarArchiveCodec().decode(archive, CompressionMethod.ZSTD, tmp_path)
