"""Tests for BrowserLinkResolver: race, timeout and cleanup behaviour."""

from __future__ import annotations

import asyncio

import pytest
from fakes import FakeBrowserDriver, FakeBrowserSession
from structlog.testing import capture_logs

from manifestarr.domain.exceptions import (
    BrowserDriverError,
    ManifestNotFoundError,
    ResolutionTimeoutError,
)
from manifestarr.domain.ports.link_resolver import LinkResolverPort
from manifestarr.infrastructure.resolvers.link_resolver import (
    DEFAULT_USER_AGENT,
    PLAY_BUTTON_SCRIPT,
    BrowserLinkResolver,
)

MANIFEST = "https://cdn.example/abc123/master.m3u8"
SHORT_TIMEOUT = 0.05


def _resolver(driver: FakeBrowserDriver, **kwargs: object) -> BrowserLinkResolver:
    kwargs.setdefault("timeout_seconds", SHORT_TIMEOUT)
    return BrowserLinkResolver(driver, embed_domain="short.icu", **kwargs)  # type: ignore[arg-type]


# ------------------------------------------------------------------
# Success paths
# ------------------------------------------------------------------


class TestFound:
    async def test_manifest_during_navigation(self) -> None:
        session = FakeBrowserSession(
            requests_on_navigate=["https://short.icu/player.js", MANIFEST],
        )
        driver = FakeBrowserDriver(session)

        url = await _resolver(driver).resolve("abc123")

        assert url == MANIFEST
        assert session.navigated_to == ["https://short.icu/abc123"]
        assert session.closed

    async def test_manifest_after_play_click(self) -> None:
        session = FakeBrowserSession(requests_on_click=[MANIFEST])
        driver = FakeBrowserDriver(session)

        url = await _resolver(driver).resolve("abc123")

        assert url == MANIFEST
        assert session.evaluated == [PLAY_BUTTON_SCRIPT]

    async def test_manifest_arriving_later_within_deadline(self) -> None:
        session = FakeBrowserSession(delayed_requests=[(0.01, MANIFEST)])
        driver = FakeBrowserDriver(session)

        url = await _resolver(driver, timeout_seconds=1.0).resolve("abc123")

        assert url == MANIFEST

    async def test_first_match_wins(self) -> None:
        second = "https://cdn.example/abc123/other.m3u8"
        session = FakeBrowserSession(requests_on_navigate=[MANIFEST, second])
        driver = FakeBrowserDriver(session)

        url = await _resolver(driver).resolve("abc123")

        assert url == MANIFEST

    async def test_non_manifest_requests_are_ignored(self) -> None:
        session = FakeBrowserSession(
            requests_on_navigate=[
                "https://cdn.example/seg-1.ts",
                "https://cdn.example/master.m3u8?token=x",
            ],
        )
        driver = FakeBrowserDriver(session)

        with pytest.raises(ResolutionTimeoutError):
            await _resolver(driver).resolve("abc123")

    async def test_sets_user_agent(self) -> None:
        session = FakeBrowserSession(requests_on_navigate=[MANIFEST])
        await _resolver(FakeBrowserDriver(session)).resolve("abc123")
        assert session.user_agent == DEFAULT_USER_AGENT

    async def test_passes_navigation_options(self) -> None:
        session = FakeBrowserSession(requests_on_navigate=[MANIFEST])
        resolver = _resolver(
            FakeBrowserDriver(session),
            wait_until="domcontentloaded",
            navigation_timeout_ms=5000,
        )
        await resolver.resolve("abc123")
        assert session.navigate_kwargs == {
            "wait_until": "domcontentloaded",
            "timeout_ms": 5000,
        }

    async def test_custom_manifest_suffix(self) -> None:
        dash = "https://cdn.example/abc123/manifest.mpd"
        session = FakeBrowserSession(requests_on_navigate=[MANIFEST, dash])
        resolver = _resolver(FakeBrowserDriver(session), manifest_suffix=".mpd")
        assert await resolver.resolve("abc123") == dash


# ------------------------------------------------------------------
# Timeout
# ------------------------------------------------------------------


class TestTimeout:
    async def test_no_manifest_raises_timeout(self) -> None:
        session = FakeBrowserSession()
        driver = FakeBrowserDriver(session)

        with pytest.raises(ResolutionTimeoutError) as exc_info:
            await _resolver(driver).resolve("deadlink")

        assert exc_info.value.identifier == "deadlink"
        assert exc_info.value.timeout_seconds == SHORT_TIMEOUT
        assert session.closed

    async def test_timeout_is_a_not_found(self) -> None:
        driver = FakeBrowserDriver(FakeBrowserSession())
        with pytest.raises(ManifestNotFoundError):
            await _resolver(driver).resolve("deadlink")

    async def test_late_match_after_deadline_is_dropped(self) -> None:
        session = FakeBrowserSession(delayed_requests=[(0.2, MANIFEST)])
        driver = FakeBrowserDriver(session)

        with pytest.raises(ResolutionTimeoutError):
            await _resolver(driver, timeout_seconds=0.02).resolve("abc123")

        # The late request still reaches the listener; it must not raise.
        session.emit(MANIFEST)

    async def test_close_error_after_timeout_does_not_propagate(self) -> None:
        session = FakeBrowserSession(close_error=RuntimeError("browser gone"))
        driver = FakeBrowserDriver(session)

        with pytest.raises(ResolutionTimeoutError):
            await _resolver(driver).resolve("deadlink")

        assert session.close_calls == 1


# ------------------------------------------------------------------
# Driver failures
# ------------------------------------------------------------------


class TestDriverErrors:
    async def test_launch_failure_is_normalized(self) -> None:
        driver = FakeBrowserDriver(launch_error=RuntimeError("no chromium"))

        with pytest.raises(BrowserDriverError) as exc_info:
            await _resolver(driver).resolve("abc123")

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        assert driver.launch_count == 0

    async def test_navigation_failure_is_normalized_and_closes(self) -> None:
        session = FakeBrowserSession(navigate_error=TimeoutError("goto timeout"))
        driver = FakeBrowserDriver(session)

        with pytest.raises(BrowserDriverError):
            await _resolver(driver).resolve("abc123")

        assert session.closed

    async def test_driver_error_detail_not_in_message(self) -> None:
        session = FakeBrowserSession(navigate_error=RuntimeError("secret detail"))

        with pytest.raises(BrowserDriverError) as exc_info:
            await _resolver(FakeBrowserDriver(session)).resolve("abc123")

        assert "secret detail" not in str(exc_info.value)

    async def test_close_error_does_not_mask_success(self) -> None:
        session = FakeBrowserSession(
            requests_on_navigate=[MANIFEST],
            close_error=RuntimeError("close failed"),
        )
        url = await _resolver(FakeBrowserDriver(session)).resolve("abc123")
        assert url == MANIFEST


# ------------------------------------------------------------------
# Best-effort play click
# ------------------------------------------------------------------


class TestPlayClick:
    async def test_evaluate_failure_is_swallowed(self) -> None:
        session = FakeBrowserSession(
            requests_on_navigate=[MANIFEST],
            evaluate_error=RuntimeError("Execution context was destroyed"),
        )
        url = await _resolver(FakeBrowserDriver(session)).resolve("abc123")
        assert url == MANIFEST

    async def test_evaluate_failure_then_timeout(self) -> None:
        session = FakeBrowserSession(evaluate_error=RuntimeError("no page"))
        with pytest.raises(ResolutionTimeoutError):
            await _resolver(FakeBrowserDriver(session)).resolve("abc123")
        assert session.closed

    def test_script_targets_known_play_buttons(self) -> None:
        assert ".vjs-big-play-button" in PLAY_BUTTON_SCRIPT
        assert 'button[title="Play Video"]' in PLAY_BUTTON_SCRIPT


# ------------------------------------------------------------------
# Concurrency
# ------------------------------------------------------------------


class TestConcurrency:
    async def test_concurrent_calls_use_independent_sessions(self) -> None:
        s1 = FakeBrowserSession(delayed_requests=[(0.01, MANIFEST)])
        s2 = FakeBrowserSession(delayed_requests=[(0.01, MANIFEST)])
        driver = FakeBrowserDriver(s1, s2)
        resolver = _resolver(driver, timeout_seconds=1.0)

        results = await asyncio.gather(
            resolver.resolve("abc123"), resolver.resolve("abc123")
        )

        assert results == [MANIFEST, MANIFEST]
        assert driver.launch_count == 2
        assert s1.closed and s2.closed

    async def test_cancellation_still_closes_session(self) -> None:
        session = FakeBrowserSession()
        resolver = _resolver(FakeBrowserDriver(session), timeout_seconds=5.0)

        task = asyncio.create_task(resolver.resolve("abc123"))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.closed


# ------------------------------------------------------------------
# Outcome logging
# ------------------------------------------------------------------


def _finished(logs: list[dict[str, object]]) -> dict[str, object]:
    (event,) = [e for e in logs if e["event"] == "resolve_finished"]
    return event


class TestResolveFinishedLog:
    async def test_found_logs_url_and_target(self) -> None:
        driver = FakeBrowserDriver(FakeBrowserSession(requests_on_navigate=[MANIFEST]))

        with capture_logs() as logs:
            await _resolver(driver).resolve("abc123")

        event = _finished(logs)
        assert event["outcome"] == "found"
        assert event["url"] == MANIFEST
        assert event["target_url"] == "https://short.icu/abc123"
        assert event["timeout_seconds"] == SHORT_TIMEOUT
        assert event["duration_ms"] >= 0

    async def test_timeout_logs_without_url(self) -> None:
        driver = FakeBrowserDriver(FakeBrowserSession())

        with capture_logs() as logs, pytest.raises(ResolutionTimeoutError):
            await _resolver(driver).resolve("deadlink")

        event = _finished(logs)
        assert event["outcome"] == "timeout"
        assert event["url"] is None
        assert event["identifier"] == "deadlink"

    async def test_driver_error_logged_once(self) -> None:
        driver = FakeBrowserDriver(launch_error=RuntimeError("no chromium"))

        with capture_logs() as logs, pytest.raises(BrowserDriverError):
            await _resolver(driver).resolve("abc123")

        assert _finished(logs)["outcome"] == "driver_error"


class TestProperties:
    def test_satisfies_port(self) -> None:
        assert isinstance(_resolver(FakeBrowserDriver()), LinkResolverPort)

    def test_exposes_domain_and_timeout(self) -> None:
        resolver = _resolver(FakeBrowserDriver(), timeout_seconds=20.0)
        assert resolver.embed_domain == "short.icu"
        assert resolver.timeout_seconds == 20.0
