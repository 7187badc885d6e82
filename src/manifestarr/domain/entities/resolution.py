"""Domain entities for manifest resolution.

Pure value objects, no framework dependencies, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Literal

ManifestSource = Literal["cache", "live"]

MANIFEST_SUFFIX = ".m3u8"


class ResolutionOutcome(str, Enum):
    """How a single browser-driven resolution attempt ended."""

    FOUND = "found"
    TIMEOUT = "timeout"
    DRIVER_ERROR = "driver_error"


@dataclass(frozen=True)
class CacheEntry:
    """A manifest URL observed for an identifier at a point in time."""

    identifier: str
    resolved_url: str
    observed_at: float  # clock reading in seconds (monotonic by default)

    def age(self, now: float) -> float:
        return now - self.observed_at

    def is_fresh(self, now: float, ttl_seconds: float) -> bool:
        """True while the entry is younger than *ttl_seconds*."""
        return self.age(now) < ttl_seconds


@dataclass(frozen=True)
class ResolutionAttempt:
    """Summary of one live resolution attempt (ephemeral, never stored)."""

    identifier: str
    target_url: str
    timeout_seconds: float
    outcome: ResolutionOutcome
    url: str | None = None
    duration_ms: float = 0.0

    @property
    def found(self) -> bool:
        return self.outcome is ResolutionOutcome.FOUND


@dataclass(frozen=True)
class ResolvedManifest:
    """Result handed back to the HTTP layer."""

    url: str
    source: ManifestSource


def build_embed_url(embed_domain: str, identifier: str) -> str:
    """Target page for *identifier* on the embed domain.

    >>> build_embed_url("short.icu", "abc123")
    'https://short.icu/abc123'
    """
    return f"https://{embed_domain}/{identifier}"


def is_manifest_url(url: str, suffix: str = MANIFEST_SUFFIX) -> bool:
    """True when *url* points at a streaming manifest (suffix match only)."""
    return url.endswith(suffix)
