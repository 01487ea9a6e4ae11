"""Ingestion helpers."""

from __future__ import annotations

import logging
import pathlib

import yaml

from affiliate_catalog.ingest.models import CategoryRule

logger = logging.getLogger(__name__)


def load_categories(path: pathlib.Path) -> list[CategoryRule]:
    """Load the ordered category list; JSON files parse as YAML too."""
    if not path.exists():
        logger.warning("Category config %s not found; using fallback category", path)
        return []
    data = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    categories: list[CategoryRule] = []
    for item in data:
        slug = str(item.get("slug") or "").strip()
        if not slug:
            continue
        keywords = frozenset(str(k).strip().lower() for k in item.get("keywords") or [] if str(k).strip())
        categories.append(CategoryRule(slug=slug, title=str(item.get("title") or slug), keywords=keywords))
    return categories
