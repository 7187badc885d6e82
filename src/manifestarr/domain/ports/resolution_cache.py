"""Port for the identifier -> manifest URL cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from manifestarr.domain.entities.resolution import CacheEntry


@runtime_checkable
class ResolutionCachePort(Protocol):
    """Async TTL store for resolved manifest URLs.

    Expired entries read as absent; there is no explicit invalidation.
    """

    async def lookup(self, identifier: str) -> str | None:
        """Return the cached URL if present and fresh, else None."""
        ...

    async def store(self, identifier: str, url: str) -> CacheEntry:
        """Insert or overwrite the entry for *identifier* (timestamped now)."""
        ...
