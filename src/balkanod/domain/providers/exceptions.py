"""Stream provider and content lookup exceptions."""

from __future__ import annotations


class ContentNotFoundError(LookupError):
    """Raised when an identifier is not present in the content snapshot."""

    def __init__(self, identifier: str) -> None:
        super().__init__(f"Unknown content id: {identifier!r}")
        self.identifier = identifier


class ProviderError(Exception):
    """Base class for all stream provider failures."""

    def __init__(self, provider: str, message: str) -> None:
        super().__init__(f"{provider}: {message}")
        self.provider = provider


class ProviderUnavailable(ProviderError):
    """Raised when an upstream refuses the connection or answers with an error status."""


class ProviderTimeout(ProviderError):
    """Raised when an upstream does not answer within its time budget."""


class MalformedUpstreamResponse(ProviderError):
    """Raised when an upstream answers with a body that fails validation."""
