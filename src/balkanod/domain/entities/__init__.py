from .catalog import (
    CatalogFilters,
    ContentItem,
    ContentKind,
    DirectSource,
    Episode,
    MetaDetail,
    MetaEnrichment,
    MetaPreview,
)
from .stremio import (
    ProviderQuery,
    SourceKind,
    StreamCandidate,
    StremioStreamRequest,
)

__all__ = [
    "CatalogFilters",
    "ContentItem",
    "ContentKind",
    "DirectSource",
    "Episode",
    "MetaDetail",
    "MetaEnrichment",
    "MetaPreview",
    "ProviderQuery",
    "SourceKind",
    "StreamCandidate",
    "StremioStreamRequest",
]
