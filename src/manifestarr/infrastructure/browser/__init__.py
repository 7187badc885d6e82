from .playwright_driver import PlaywrightBrowserDriver, PlaywrightBrowserSession

__all__ = ["PlaywrightBrowserDriver", "PlaywrightBrowserSession"]
