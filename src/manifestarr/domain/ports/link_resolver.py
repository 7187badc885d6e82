"""Port for resolving an identifier to a manifest URL."""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class LinkResolverPort(Protocol):
    """Performs one live discovery attempt for an identifier.

    Implementations handle the browser side (navigation, request
    observation, timeouts) and collapse every failure into
    ``ManifestNotFoundError``.
    """

    async def resolve(self, identifier: str) -> str:
        """Return the manifest URL or raise ManifestNotFoundError."""
        ...
