"""Keyword classification into storefront categories."""

from __future__ import annotations

from typing import Sequence

from affiliate_catalog.ingest.models import CategoryRule

FALLBACK_SLUG = "room-decor"


def classify(categories: Sequence[CategoryRule], title: str, preferred_slug: str | None = None) -> str:
    if preferred_slug and any(category.slug == preferred_slug for category in categories):
        return preferred_slug
    lowered = (title or "").lower()
    for category in categories:
        if any(keyword in lowered for keyword in category.keywords):
            return category.slug
    if categories:
        return categories[0].slug
    return FALLBACK_SLUG
