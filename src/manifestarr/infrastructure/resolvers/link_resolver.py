"""Browser-driven manifest resolver.

Loads the embed page for an identifier in a fresh browser session and
listens to its outgoing requests. The first request ending in the
manifest suffix wins; if none shows up before the deadline the attempt
fails. Every failure is reported as ``ManifestNotFoundError``.
"""

from __future__ import annotations

import asyncio
import time

import structlog

from manifestarr.domain.entities.resolution import (
    MANIFEST_SUFFIX,
    ResolutionAttempt,
    ResolutionOutcome,
    build_embed_url,
    is_manifest_url,
)
from manifestarr.domain.exceptions import (
    BrowserDriverError,
    ResolutionTimeoutError,
)
from manifestarr.domain.ports.browser import BrowserDriverPort, BrowserSessionPort

log = structlog.get_logger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/116.0.0.0 Safari/537.36"
)

# Returns true when a play button was found and clicked.
PLAY_BUTTON_SCRIPT = """() => {
    const button = document.querySelector('.vjs-big-play-button')
        || document.querySelector('button[title="Play Video"]');
    if (button) {
        button.click();
        return true;
    }
    return false;
}"""


class BrowserLinkResolver:
    """Resolves identifiers on one embed domain to ``.m3u8`` URLs.

    Concurrent calls are independent: each gets its own browser session
    and its own deadline.
    """

    def __init__(
        self,
        driver: BrowserDriverPort,
        *,
        embed_domain: str,
        timeout_seconds: float = 20.0,
        user_agent: str = DEFAULT_USER_AGENT,
        manifest_suffix: str = MANIFEST_SUFFIX,
        wait_until: str = "networkidle",
        navigation_timeout_ms: int | None = None,
        play_script: str = PLAY_BUTTON_SCRIPT,
    ) -> None:
        self._driver = driver
        self._embed_domain = embed_domain
        self._timeout = timeout_seconds
        self._user_agent = user_agent
        self._suffix = manifest_suffix
        self._wait_until = wait_until
        self._navigation_timeout_ms = navigation_timeout_ms
        self._play_script = play_script

    @property
    def embed_domain(self) -> str:
        return self._embed_domain

    @property
    def timeout_seconds(self) -> float:
        return self._timeout

    async def resolve(self, identifier: str) -> str:
        """Return the first manifest URL the embed page requests.

        Raises ``ResolutionTimeoutError`` when nothing matched in time and
        ``BrowserDriverError`` when the browser itself failed.
        """
        target_url = build_embed_url(self._embed_domain, identifier)
        start = time.perf_counter()
        log.info("resolve_started", identifier=identifier, target_url=target_url)

        session: BrowserSessionPort | None = None
        try:
            session = await self._driver.launch()
            await session.set_user_agent(self._user_agent)

            found: asyncio.Future[str] = asyncio.get_running_loop().create_future()

            def _on_request(url: str) -> None:
                # Future is cancelled once the deadline passes; late hits drop.
                if found.done() or not is_manifest_url(url, self._suffix):
                    return
                log.info("manifest_found", identifier=identifier, url=url)
                found.set_result(url)

            session.on_request(_on_request)

            log.debug("navigating", identifier=identifier, url=target_url)
            await session.navigate(
                target_url,
                wait_until=self._wait_until,
                timeout_ms=self._navigation_timeout_ms,
            )

            await self._trigger_playback(session, identifier)

            try:
                url = await asyncio.wait_for(found, timeout=self._timeout)
            except TimeoutError:
                self._record(identifier, target_url, ResolutionOutcome.TIMEOUT, start)
                log.warning(
                    "resolution_timeout",
                    identifier=identifier,
                    timeout_seconds=self._timeout,
                )
                raise ResolutionTimeoutError(identifier, self._timeout) from None

            self._record(identifier, target_url, ResolutionOutcome.FOUND, start, url)
            return url
        except ResolutionTimeoutError:
            raise
        except Exception as e:
            self._record(identifier, target_url, ResolutionOutcome.DRIVER_ERROR, start)
            log.error(
                "resolution_driver_error",
                identifier=identifier,
                error=str(e),
                exc_info=True,
            )
            raise BrowserDriverError(identifier) from e
        finally:
            if session is not None:
                await self._close_session(session, identifier)

    async def _trigger_playback(
        self, session: BrowserSessionPort, identifier: str
    ) -> None:
        """Click the player's play button if there is one (best-effort)."""
        try:
            clicked = await session.evaluate(self._play_script)
        except Exception as e:  # noqa: BLE001
            log.debug("play_button_not_clicked", identifier=identifier, error=str(e))
            return
        log.debug("play_button_checked", identifier=identifier, clicked=bool(clicked))

    async def _close_session(
        self, session: BrowserSessionPort, identifier: str
    ) -> None:
        try:
            await session.close()
            log.debug("browser_session_closed", identifier=identifier)
        except Exception:  # noqa: BLE001
            log.warning(
                "browser_session_close_failed", identifier=identifier, exc_info=True
            )

    def _record(
        self,
        identifier: str,
        target_url: str,
        outcome: ResolutionOutcome,
        start: float,
        url: str | None = None,
    ) -> None:
        """Log the finished attempt as one ``resolve_finished`` event."""
        attempt = ResolutionAttempt(
            identifier=identifier,
            target_url=target_url,
            timeout_seconds=self._timeout,
            outcome=outcome,
            url=url,
            duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
        )
        log.info(
            "resolve_finished",
            identifier=attempt.identifier,
            target_url=attempt.target_url,
            timeout_seconds=attempt.timeout_seconds,
            outcome=attempt.outcome.value,
            url=attempt.url,
            duration_ms=attempt.duration_ms,
        )
