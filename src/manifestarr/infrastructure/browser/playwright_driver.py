"""Playwright-backed browser driver.

Every ``launch()`` starts its own Playwright instance, Chromium process,
context, and page so that sessions share nothing and a crashed page
cannot affect concurrent resolutions.
"""

from __future__ import annotations

from typing import Any

import structlog
from playwright.async_api import (
    Browser,
    BrowserContext,
    Page,
    Playwright,
    Request,
    async_playwright,
)

from manifestarr.domain.ports.browser import RequestListener

log = structlog.get_logger(__name__)

DEFAULT_LAUNCH_ARGS: tuple[str, ...] = ("--no-sandbox", "--disable-setuid-sandbox")


class PlaywrightBrowserSession:
    """One Chromium page plus the resources that own it."""

    def __init__(
        self,
        playwright: Playwright,
        browser: Browser,
        context: BrowserContext,
        page: Page,
    ) -> None:
        self._playwright: Playwright | None = playwright
        self._browser: Browser | None = browser
        self._context: BrowserContext | None = context
        self._page = page

    async def set_user_agent(self, user_agent: str) -> None:
        await self._page.set_extra_http_headers({"User-Agent": user_agent})

    def on_request(self, listener: RequestListener) -> None:
        def _forward(request: Request) -> None:
            listener(request.url)

        self._page.on("request", _forward)

    async def navigate(
        self,
        url: str,
        *,
        wait_until: str = "networkidle",
        timeout_ms: int | None = None,
    ) -> None:
        resp = await self._page.goto(url, wait_until=wait_until, timeout=timeout_ms)
        if resp is not None and resp.status >= 400:
            # Embed pages sometimes answer 4xx but still boot the player.
            log.warning("browser_navigate_status", url=url, status=resp.status)

    async def evaluate(self, script: str) -> Any:
        return await self._page.evaluate(script)

    async def close(self) -> None:
        """Release the context, browser and Playwright driver. Idempotent.

        Every step runs even if an earlier one raises; the error propagates
        once all handles are released.
        """
        context, self._context = self._context, None
        browser, self._browser = self._browser, None
        playwright, self._playwright = self._playwright, None
        try:
            if context is not None:
                await context.close()
        finally:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if playwright is not None:
                    await playwright.stop()


class PlaywrightBrowserDriver:
    """Launches isolated Chromium sessions.

    Usage::

        driver = PlaywrightBrowserDriver(headless=True)
        session = await driver.launch()
        try:
            await session.navigate("https://example.com/embed/abc")
        finally:
            await session.close()
    """

    def __init__(
        self,
        *,
        headless: bool = True,
        launch_args: tuple[str, ...] | list[str] = DEFAULT_LAUNCH_ARGS,
        user_agent: str | None = None,
        stealth: bool = False,
    ) -> None:
        self._headless = headless
        self._launch_args = list(launch_args)
        self._user_agent = user_agent
        self._stealth = stealth

    async def launch(self) -> PlaywrightBrowserSession:
        """Start Chromium and open a fresh page.

        If any step fails, whatever was already started is torn down
        before the error propagates.
        """
        pw = await async_playwright().start()
        browser: Browser | None = None
        try:
            browser = await pw.chromium.launch(
                headless=self._headless,
                args=self._launch_args,
            )
            context = await browser.new_context(user_agent=self._user_agent)
            if self._stealth:
                from playwright_stealth import Stealth

                await Stealth().apply_stealth_async(context)
            page = await context.new_page()
        except BaseException:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                await pw.stop()
            raise

        log.debug(
            "browser_session_launched",
            headless=self._headless,
            stealth=self._stealth,
        )
        return PlaywrightBrowserSession(pw, browser, context, page)
