from .browser import BrowserDriverPort, BrowserSessionPort, RequestListener
from .link_resolver import LinkResolverPort
from .resolution_cache import ResolutionCachePort

__all__ = [
    "BrowserDriverPort",
    "BrowserSessionPort",
    "LinkResolverPort",
    "RequestListener",
    "ResolutionCachePort",
]
