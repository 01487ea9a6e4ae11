"""URL shape helpers."""

from __future__ import annotations

import re

HTTP_URL_RE = re.compile(r"^https?://", re.IGNORECASE)
GOODS_ID_RE = re.compile(r"goods_id=(\d{10,})", re.IGNORECASE)
GOODS_URL_RE = re.compile(r"temu\.com/goods\.html\?", re.IGNORECASE)

GOODS_URL_TEMPLATE = "https://www.temu.com/goods.html?goods_id={product_id}"


def is_http_url(value: str | None) -> bool:
    return bool(value) and bool(HTTP_URL_RE.match(value.strip()))


def is_goods_url(url: str) -> bool:
    return bool(GOODS_URL_RE.search(url))


def find_goods_id(text: str | None) -> str | None:
    if not text:
        return None
    match = GOODS_ID_RE.search(text)
    return match.group(1) if match else None


def goods_url(product_id: str) -> str:
    return GOODS_URL_TEMPLATE.format(product_id=product_id)


def outbound_url_for(source_url: str, product_id: str) -> str:
    """Link shown to shoppers: the sheet's own tracked link unless it was already canonical."""
    if is_goods_url(source_url):
        return goods_url(product_id)
    return source_url
