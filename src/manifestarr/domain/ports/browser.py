"""Browser Port - Interface for a scriptable browser session capability."""

from __future__ import annotations

from typing import Any, Callable, Protocol, runtime_checkable

RequestListener = Callable[[str], None]


@runtime_checkable
class BrowserSessionPort(Protocol):
    """One isolated browsing context (its own cookies, cache, and page).

    Implementations:
      - PlaywrightBrowserSession (Chromium via playwright.async_api)
    """

    async def set_user_agent(self, user_agent: str) -> None:
        """Present *user_agent* on every request the session makes."""
        ...

    def on_request(self, listener: RequestListener) -> None:
        """Call *listener* with the URL of every outgoing request."""
        ...

    async def navigate(
        self,
        url: str,
        *,
        wait_until: str = "networkidle",
        timeout_ms: int | None = None,
    ) -> None:
        """Load *url* and return once *wait_until* is reached.

        Raises on navigation failure (DNS error, timeout, crashed page).
        """
        ...

    async def evaluate(self, script: str) -> Any:
        """Run *script* in the page and return its result."""
        ...

    async def close(self) -> None:
        """Release all resources. Idempotent, best-effort."""
        ...


@runtime_checkable
class BrowserDriverPort(Protocol):
    """Factory for browser sessions."""

    async def launch(self) -> BrowserSessionPort:
        """Start a fresh session. May raise a driver-level error."""
        ...
