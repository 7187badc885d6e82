"""Tests for resolution domain entities and helpers."""

from __future__ import annotations

import pytest

from manifestarr.domain.entities.resolution import (
    CacheEntry,
    ResolutionAttempt,
    ResolutionOutcome,
    ResolvedManifest,
    build_embed_url,
    is_manifest_url,
)
from manifestarr.domain.exceptions import (
    BrowserDriverError,
    ClientInputError,
    ManifestarrError,
    ManifestNotFoundError,
    ResolutionTimeoutError,
)


class TestBuildEmbedUrl:
    def test_concatenates_domain_and_identifier(self) -> None:
        assert build_embed_url("short.icu", "abc123") == "https://short.icu/abc123"

    def test_is_deterministic(self) -> None:
        assert build_embed_url("a.b", "x") == build_embed_url("a.b", "x")


class TestIsManifestUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example/abc123/master.m3u8",
            "https://cdn.example/hls/index.m3u8",
        ],
    )
    def test_matches_manifest_suffix(self, url: str) -> None:
        assert is_manifest_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example/seg-001.ts",
            "https://cdn.example/master.m3u8?token=abc",
            "https://cdn.example/player.js",
        ],
    )
    def test_rejects_other_urls(self, url: str) -> None:
        assert is_manifest_url(url) is False

    def test_custom_suffix(self) -> None:
        assert is_manifest_url("https://cdn.example/a.mpd", ".mpd") is True


class TestCacheEntry:
    def test_fresh_below_ttl(self) -> None:
        entry = CacheEntry("abc", "https://x/a.m3u8", observed_at=100.0)
        assert entry.is_fresh(now=100.0 + 7199.9, ttl_seconds=7200) is True

    def test_stale_at_exact_ttl(self) -> None:
        entry = CacheEntry("abc", "https://x/a.m3u8", observed_at=100.0)
        assert entry.is_fresh(now=100.0 + 7200, ttl_seconds=7200) is False

    def test_age(self) -> None:
        entry = CacheEntry("abc", "https://x/a.m3u8", observed_at=10.0)
        assert entry.age(25.0) == 15.0


class TestResolutionAttempt:
    def test_found_property(self) -> None:
        attempt = ResolutionAttempt(
            identifier="abc",
            target_url="https://short.icu/abc",
            timeout_seconds=20.0,
            outcome=ResolutionOutcome.FOUND,
            url="https://x/a.m3u8",
        )
        assert attempt.found is True

    def test_timeout_is_not_found(self) -> None:
        attempt = ResolutionAttempt(
            identifier="abc",
            target_url="https://short.icu/abc",
            timeout_seconds=20.0,
            outcome=ResolutionOutcome.TIMEOUT,
        )
        assert attempt.found is False
        assert attempt.url is None


class TestResolvedManifest:
    def test_is_frozen(self) -> None:
        result = ResolvedManifest(url="https://x/a.m3u8", source="live")
        with pytest.raises(AttributeError):
            result.url = "other"  # type: ignore[misc]


class TestExceptions:
    def test_not_found_subclasses(self) -> None:
        assert issubclass(ResolutionTimeoutError, ManifestNotFoundError)
        assert issubclass(BrowserDriverError, ManifestNotFoundError)
        assert issubclass(ManifestNotFoundError, ManifestarrError)
        assert issubclass(ClientInputError, ManifestarrError)
        assert not issubclass(ClientInputError, ManifestNotFoundError)

    def test_timeout_carries_identifier_and_deadline(self) -> None:
        err = ResolutionTimeoutError("deadlink", 20.0)
        assert err.identifier == "deadlink"
        assert err.timeout_seconds == 20.0
        assert "deadlink" in str(err)

    def test_default_not_found_message(self) -> None:
        err = BrowserDriverError("abc")
        assert str(err) == "no manifest found for 'abc'"
