"""Ingestion data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(slots=True)
class SourceRow:
    url: str
    preferred_category: str | None = None


@dataclass(slots=True)
class CategoryRule:
    slug: str
    title: str
    keywords: frozenset[str] = frozenset()


@dataclass(slots=True)
class Resolution:
    product_id: str
    tier: str


@dataclass(slots=True)
class ProductMetadata:
    title: str = ""
    price: str = ""
    images: list[str] = field(default_factory=list)
    available: bool = False


@dataclass(slots=True)
class ProductRecord:
    id: str
    title: str
    slug: str
    category_slug: str
    price: str
    images: list[str]
    outbound_url: str
    available: bool
    added_at: int
    updated_at: int
    check_count: int

    def to_dict(self) -> dict[str, Any]:
        # Key names are read directly by the storefront and the pin export.
        return {
            "id": self.id,
            "title": self.title,
            "slug": self.slug,
            "category": self.category_slug,
            "price": self.price,
            "images": list(self.images),
            "out_url": self.outbound_url,
            "available": self.available,
            "added_at": self.added_at,
            "updated_at": self.updated_at,
            "checks": self.check_count,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProductRecord":
        return cls(
            id=str(data["id"]),
            title=data.get("title") or "",
            slug=data.get("slug") or "",
            category_slug=data.get("category") or "",
            price=str(data.get("price") or ""),
            images=[str(src) for src in data.get("images") or []],
            outbound_url=data.get("out_url") or "",
            available=_stored_flag(data.get("available", True)),
            added_at=int(data.get("added_at") or 0),
            updated_at=int(data.get("updated_at") or 0),
            check_count=int(data.get("checks") or 0),
        )


def _stored_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in {"", "0", "false", "no"}
    return bool(value)
