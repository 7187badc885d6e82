"""Shared test fixtures for Manifestarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from fakes import FakeBrowserDriver, FakeBrowserSession, FakeClock

from manifestarr.infrastructure.metrics import MetricsCollector
from manifestarr.infrastructure.persistence.memory_resolution_cache import (
    InMemoryResolutionCache,
)

MANIFEST_URL = "https://cdn.example/abc123/master.m3u8"

# ---------------------------------------------------------------------------
# Infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def resolution_cache(clock: FakeClock) -> InMemoryResolutionCache:
    """Real in-memory cache driven by the fake clock (TTL 2h)."""
    return InMemoryResolutionCache(ttl_seconds=7200, clock=clock)


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()


# ---------------------------------------------------------------------------
# Fake browser fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def fake_session() -> FakeBrowserSession:
    return FakeBrowserSession()


@pytest.fixture()
def fake_driver(fake_session: FakeBrowserSession) -> FakeBrowserDriver:
    return FakeBrowserDriver(fake_session)


# ---------------------------------------------------------------------------
# Mock port fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock ResolutionCachePort."""
    cache = AsyncMock()
    cache.lookup = AsyncMock(return_value=None)
    cache.store = AsyncMock()
    return cache


@pytest.fixture()
def mock_resolver() -> AsyncMock:
    """Mock LinkResolverPort."""
    resolver = AsyncMock()
    resolver.resolve = AsyncMock(return_value=MANIFEST_URL)
    return resolver
