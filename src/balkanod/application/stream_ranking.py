"""Deduplication and ordering of stream candidates."""

from __future__ import annotations

import re
from collections.abc import Iterable
from itertools import groupby

from balkanod.domain.entities.stremio import StreamCandidate

_RESOLUTION_RE = re.compile(r"(\d{3,4})\s*[pP](?![a-zA-Z])")
_NAMED_RANKS: tuple[tuple[re.Pattern[str], int], ...] = (
    (re.compile(r"\b8k\b", re.IGNORECASE), 4320),
    (re.compile(r"\b(4k|uhd|2160)\b", re.IGNORECASE), 2160),
    (re.compile(r"\b(qhd|1440)\b", re.IGNORECASE), 1440),
    (re.compile(r"\b(fhd|full\s*hd)\b", re.IGNORECASE), 1080),
)


def quality_rank(label: str) -> int | None:
    """Numeric vertical resolution of a quality label, or None if unknown.

    >>> quality_rank("1080p60"), quality_rank("4K UHD"), quality_rank("HD")
    (1080, 2160, None)
    """
    if not label:
        return None
    match = _RESOLUTION_RE.search(label)
    if match:
        return int(match.group(1))
    for pattern, rank in _NAMED_RANKS:
        if pattern.search(label):
            return rank
    return None


def dedupe_by_locator(candidates: Iterable[StreamCandidate]) -> list[StreamCandidate]:
    """Keep the first candidate per exact locator, dropping empty locators."""
    seen: set[str] = set()
    out: list[StreamCandidate] = []
    for candidate in candidates:
        locator = candidate.locator.strip() if candidate.locator else ""
        if not locator or candidate.locator in seen:
            continue
        seen.add(candidate.locator)
        out.append(candidate)
    return out


def _sort_key(candidate: StreamCandidate) -> tuple[int, int, int]:
    rank = quality_rank(candidate.quality)
    # unknown quality sorts after every numeric one
    return (candidate.tier, 0 if rank is not None else 1, -(rank or 0))


def sort_within_provider_groups(
    candidates: Iterable[StreamCandidate],
) -> list[StreamCandidate]:
    """Order each run of same-provider candidates by tier, then quality.

    Provider order itself is preserved; the sort is stable, so candidates
    with equal keys keep their original order.
    """
    out: list[StreamCandidate] = []
    for _, group in groupby(candidates, key=lambda c: c.provider):
        out.extend(sorted(group, key=_sort_key))
    return out
