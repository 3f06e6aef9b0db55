"""Cache encoding for MetaEnrichment lookups."""

from __future__ import annotations

from typing import Any

from balkanod.domain.entities.catalog import MetaEnrichment

# Stored for "searched, nothing found" so misses are cached too.
MISS: dict[str, Any] = {"_miss": True}


def enrichment_to_dict(e: MetaEnrichment) -> dict[str, Any]:
    return {
        "imdb_id": e.imdb_id,
        "poster": e.poster,
        "background": e.background,
        "logo": e.logo,
        "description": e.description,
        "genres": list(e.genres),
        "cast": list(e.cast),
        "director": e.director,
        "runtime": e.runtime,
        "imdb_rating": e.imdb_rating,
    }


def enrichment_from_dict(d: dict[str, Any]) -> MetaEnrichment:
    return MetaEnrichment(
        imdb_id=d.get("imdb_id"),
        poster=d.get("poster"),
        background=d.get("background"),
        logo=d.get("logo"),
        description=d.get("description"),
        genres=tuple(d.get("genres") or ()),
        cast=tuple(d.get("cast") or ()),
        director=d.get("director"),
        runtime=d.get("runtime"),
        imdb_rating=d.get("imdb_rating"),
    )
