"""Zero-impact in-memory resolution metrics.

All counters are plain Python integers manipulated inside the single-threaded
async event loop: no locks, no I/O, no external dependencies.

``time.perf_counter_ns()`` is used for timing (monotonic, nanosecond
resolution, near-zero overhead).
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field


@dataclass
class ResolutionStats:
    """Accumulated outcomes of live browser resolutions."""

    attempts: int = 0
    found: int = 0
    timeouts: int = 0
    driver_errors: int = 0
    total_duration_ns: int = 0

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable summary."""
        avg_ms = (
            round(self.total_duration_ns / self.attempts / 1_000_000, 1)
            if self.attempts
            else 0.0
        )
        return {
            "attempts": self.attempts,
            "found": self.found,
            "timeouts": self.timeouts,
            "driver_errors": self.driver_errors,
            "avg_duration_ms": avg_ms,
        }


@dataclass
class MetricsCollector:
    """Central in-memory metrics collector.

    Thread-safety is not required; the async event loop is
    single-threaded, so plain integer increments are atomic enough.
    """

    cache_hits: int = 0
    cache_misses: int = 0
    rejected_requests: int = 0
    _resolutions: ResolutionStats = field(default_factory=ResolutionStats)
    _start_ns: int = field(default_factory=time.perf_counter_ns)

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------

    def record_cache_hit(self) -> None:
        self.cache_hits += 1

    def record_cache_miss(self) -> None:
        self.cache_misses += 1

    def record_rejected(self) -> None:
        """Request rejected before any lookup (bad identifier)."""
        self.rejected_requests += 1

    def record_resolution(self, outcome: str, duration_ns: int) -> None:
        """Record one live resolution (``found``/``timeout``/``driver_error``)."""
        stats = self._resolutions
        stats.attempts += 1
        stats.total_duration_ns += duration_ns
        if outcome == "found":
            stats.found += 1
        elif outcome == "timeout":
            stats.timeouts += 1
        else:
            stats.driver_errors += 1

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, object]:
        """Return a JSON-serializable snapshot of all metrics."""
        uptime_ns = time.perf_counter_ns() - self._start_ns
        uptime_s = round(uptime_ns / 1_000_000_000, 1)

        lookups = self.cache_hits + self.cache_misses
        hit_ratio = round(self.cache_hits / lookups, 3) if lookups else 0.0

        return {
            "uptime_seconds": uptime_s,
            "cache": {
                "hits": self.cache_hits,
                "misses": self.cache_misses,
                "hit_ratio": hit_ratio,
            },
            "rejected_requests": self.rejected_requests,
            "resolutions": self._resolutions.snapshot(),
        }
