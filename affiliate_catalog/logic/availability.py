"""Pure helpers that turn a product page snapshot into metadata."""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from affiliate_catalog.ingest.models import ProductMetadata

MAX_IMAGES = 5
SOLD_OUT_RE = re.compile(r"sold\s*out|out\s*of\s*stock|unavailable", re.IGNORECASE)
_PRICE_JUNK_RE = re.compile(r"[^0-9.,]")


def clean_price(raw: str | None) -> str:
    if not raw:
        return ""
    return _PRICE_JUNK_RE.sub("", raw)


def pick_images(sources: Iterable[str | None], limit: int = MAX_IMAGES) -> list[str]:
    images: list[str] = []
    for src in sources:
        if not src or src in images:
            continue
        images.append(src)
        if len(images) >= limit:
            break
    return images


def is_sold_out(page_text: str) -> bool:
    return bool(SOLD_OUT_RE.search(page_text or ""))


def is_available(
    page_text: str,
    price: str,
    *,
    has_buy_control: bool,
    has_disabled_buy_control: bool,
) -> bool:
    return (
        not is_sold_out(page_text)
        and (has_buy_control or price != "")
        and not has_disabled_buy_control
    )


def metadata_from_snapshot(snapshot: Mapping[str, Any]) -> ProductMetadata:
    price = clean_price(snapshot.get("price"))
    return ProductMetadata(
        title=(snapshot.get("title") or "").strip(),
        price=price,
        images=pick_images(snapshot.get("images") or []),
        available=is_available(
            snapshot.get("html") or "",
            price,
            has_buy_control=bool(snapshot.get("hasBuy")),
            has_disabled_buy_control=bool(snapshot.get("hasDisabledBuy")),
        ),
    )
