"""In-process resolution cache with lazy TTL expiry."""

from __future__ import annotations

import time
from typing import Callable

import structlog

from manifestarr.domain.entities.resolution import CacheEntry

log = structlog.get_logger(__name__)

Clock = Callable[[], float]


class InMemoryResolutionCache:
    """Maps identifier -> newest CacheEntry for the lifetime of the process.

    Staleness is checked on lookup only; stale entries stay in the map
    until the next successful store for the same identifier overwrites
    them. All mutation happens on the event loop thread, so no lock.
    """

    def __init__(self, ttl_seconds: float = 7200, clock: Clock = time.monotonic) -> None:
        self.ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}

    async def lookup(self, identifier: str) -> str | None:
        """Return the cached URL if the entry is younger than the TTL."""
        entry = self._entries.get(identifier)
        if entry is None:
            log.debug("cache_miss", identifier=identifier, reason="absent")
            return None

        now = self._clock()
        if not entry.is_fresh(now, self.ttl):
            log.debug(
                "cache_miss",
                identifier=identifier,
                reason="stale",
                age_seconds=round(entry.age(now), 1),
            )
            return None

        log.debug("cache_hit", identifier=identifier)
        return entry.resolved_url

    async def store(self, identifier: str, url: str) -> CacheEntry:
        """Insert or overwrite the entry for *identifier*."""
        entry = CacheEntry(
            identifier=identifier,
            resolved_url=url,
            observed_at=self._clock(),
        )
        self._entries[identifier] = entry
        log.debug("cache_stored", identifier=identifier, ttl=self.ttl)
        return entry

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary (for the metrics endpoint)."""
        now = self._clock()
        fresh = sum(1 for e in self._entries.values() if e.is_fresh(now, self.ttl))
        return {
            "entries": len(self._entries),
            "fresh": fresh,
            "stale": len(self._entries) - fresh,
            "ttl_seconds": self.ttl,
        }
