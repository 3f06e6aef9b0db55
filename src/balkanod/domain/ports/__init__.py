from .cache import CachePort
from .content_repository import ContentRepositoryPort
from .metadata import MetadataSearchPort
from .resolution_cache import ResolutionCachePort
from .stream_provider import StreamProviderPort

__all__ = [
    "CachePort",
    "ContentRepositoryPort",
    "MetadataSearchPort",
    "ResolutionCachePort",
    "StreamProviderPort",
]
