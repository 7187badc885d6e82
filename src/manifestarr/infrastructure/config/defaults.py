"""Hardcoded default configuration values."""

from __future__ import annotations

from typing import Any

DEFAULT_CONFIG: dict[str, Any] = {
    "app_name": "manifestarr",
    "environment": "dev",
    "resolver": {
        "embed_domain": "short.icu",
        "timeout_seconds": 20.0,
        "manifest_suffix": ".m3u8",
        "single_flight": False,
    },
    "browser": {
        "headless": True,
        "navigation_timeout_ms": 30_000,
        "wait_until": "networkidle",
        "stealth": False,
    },
    "cache": {
        "ttl_seconds": 7200,
    },
    "server": {
        "shutdown_drain_seconds": 25.0,
    },
    "logging": {
        "level": "INFO",
        "format": None,  # Derived from environment in schema.py
    },
}
