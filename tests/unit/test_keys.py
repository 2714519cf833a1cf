"""Unit tests for cache key resolution."""

from __future__ import annotations

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from s3cache.core.exceptions import ConfigurationError
from s3cache.core.keys import candidate_locations, repo_short_name, resolve_location
from s3cache.core.models import CompressionMethod


@pytest.mark.core
@pytest.mark.tier(0)
class TestRepoShortName:
    """Tests for repo_short_name()."""

    def test_strips_owner(self) -> None:
        """Owner is dropped from owner/name."""
        assert repo_short_name("octo-org/widgets") == "widgets"

    def test_without_owner(self) -> None:
        """A bare name is returned unchanged."""
        assert repo_short_name("widgets") == "widgets"

    def test_trailing_slash_falls_back_to_full_identifier(self) -> None:
        """Nothing after the last slash means the full identifier is used."""
        assert repo_short_name("octo-org/") == "octo-org/"

    def test_empty_raises(self) -> None:
        """An empty repository is a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            repo_short_name("")
        assert exc_info.value.setting == "repository"


@pytest.mark.core
@pytest.mark.tier(0)
class TestResolveLocation:
    """Tests for resolve_location()."""

    def test_layout(self) -> None:
        """prefix/repo/ref/key.tar.gz by default."""
        location = resolve_location("ci", "octo-org/widgets", "main", "deps-1")
        assert location.object_key == "ci/widgets/main/deps-1.tar.gz"

    def test_zstd(self) -> None:
        """zstd selects the .tar.zst extension."""
        location = resolve_location(
            "ci", "octo-org/widgets", "main", "deps-1", CompressionMethod.ZSTD
        )
        assert location.object_key == "ci/widgets/main/deps-1.tar.zst"

    def test_key_slashes_are_kept(self) -> None:
        """Slashes inside the key become extra path segments."""
        location = resolve_location("ci", "org/app", "main", "linux/deps")
        assert location.object_key == "ci/app/main/linux/deps.tar.gz"

    @settings(database=None, deadline=None)
    @given(
        prefix=st.text(min_size=1, max_size=20),
        repository=st.text(min_size=1, max_size=40),
        ref=st.text(min_size=1, max_size=20),
        key=st.text(min_size=1, max_size=40),
        method=st.sampled_from(list(CompressionMethod)),
    )
    def test_deterministic(
        self,
        prefix: str,
        repository: str,
        ref: str,
        key: str,
        method: CompressionMethod,
    ) -> None:
        """Equal inputs always resolve to equal locations and keys."""
        first = resolve_location(prefix, repository, ref, key, method)
        second = resolve_location(prefix, repository, ref, key, method)

        assert first == second
        assert first.object_key == second.object_key
        assert first.object_key.endswith(f"{key}.{method.extension}")


@pytest.mark.core
@pytest.mark.tier(0)
class TestCandidateLocations:
    """Tests for candidate_locations()."""

    def test_primary_key_first_then_restore_keys(self) -> None:
        """The primary key is yielded first, restore keys in order."""
        candidates = list(
            candidate_locations("ci", "org/app", "main", "k1", ["k2", "k3"])
        )
        assert [c for c, _ in candidates] == ["k1", "k2", "k3"]
        assert candidates[1][1].object_key == "ci/app/main/k2.tar.gz"

    def test_restore_keys_share_compression_method(self) -> None:
        """Restore keys use the primary key's method."""
        candidates = candidate_locations(
            "ci", "org/app", "main", "k1", ["k2"], CompressionMethod.ZSTD
        )
        assert all(
            loc.object_key.endswith(".tar.zst") for _, loc in candidates
        )

    def test_lazy(self) -> None:
        """Locations are produced on demand."""
        candidates = candidate_locations("ci", "org/app", "main", "k1", ["k2"])
        first = next(candidates)
        assert first[0] == "k1"
