from .resolution import (
    MANIFEST_SUFFIX,
    CacheEntry,
    ManifestSource,
    ResolutionAttempt,
    ResolutionOutcome,
    ResolvedManifest,
    build_embed_url,
    is_manifest_url,
)

__all__ = [
    "MANIFEST_SUFFIX",
    "CacheEntry",
    "ManifestSource",
    "ResolutionAttempt",
    "ResolutionOutcome",
    "ResolvedManifest",
    "build_embed_url",
    "is_manifest_url",
]
