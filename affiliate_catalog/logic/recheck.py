"""Staleness recheck selection."""

from __future__ import annotations

from typing import Iterable

from affiliate_catalog.ingest.models import ProductRecord


def select_for_recheck(
    records: Iterable[ProductRecord],
    limit: int,
    *,
    exclude: Iterable[str] = (),
) -> list[ProductRecord]:
    """Return up to ``limit`` records, least recently updated first."""
    if limit <= 0:
        return []
    skip = set(exclude)
    pool = [record for record in records if record.id not in skip]
    pool.sort(key=lambda record: (record.updated_at, record.id))
    return pool[:limit]
