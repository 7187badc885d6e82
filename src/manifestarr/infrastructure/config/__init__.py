from __future__ import annotations

from .load import load_config
from .schema import AppConfig, BrowserConfig, CacheConfig, EnvOverrides, ResolverConfig

__all__ = [
    "AppConfig",
    "BrowserConfig",
    "CacheConfig",
    "EnvOverrides",
    "ResolverConfig",
    "load_config",
]
