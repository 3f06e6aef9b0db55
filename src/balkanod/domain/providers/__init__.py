from .exceptions import (
    ContentNotFoundError,
    MalformedUpstreamResponse,
    ProviderError,
    ProviderTimeout,
    ProviderUnavailable,
)

__all__ = [
    "ContentNotFoundError",
    "MalformedUpstreamResponse",
    "ProviderError",
    "ProviderTimeout",
    "ProviderUnavailable",
]
