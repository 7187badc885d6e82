"""Resolution error taxonomy."""

from __future__ import annotations


class ManifestarrError(Exception):
    """Base class for all Manifestarr errors."""


class ClientInputError(ManifestarrError):
    """Raised when the caller supplied a missing or unusable identifier."""


class ManifestNotFoundError(ManifestarrError):
    """Raised when no manifest URL could be resolved for an identifier."""

    def __init__(self, identifier: str, message: str | None = None) -> None:
        self.identifier = identifier
        super().__init__(message or f"no manifest found for {identifier!r}")


class ResolutionTimeoutError(ManifestNotFoundError):
    """No manifest request was observed before the deadline."""

    def __init__(self, identifier: str, timeout_seconds: float) -> None:
        self.timeout_seconds = timeout_seconds
        super().__init__(
            identifier,
            f"no manifest request for {identifier!r} within {timeout_seconds}s",
        )


class BrowserDriverError(ManifestNotFoundError):
    """The browser failed to launch, navigate, or observe requests."""
