"""Resolve affiliate links to Temu goods ids.

Tiers run cheapest first and stop at the first id found:

1. ``DirectMatchTier`` reads the id straight from a canonical goods URL.
2. ``HttpScanTier`` follows redirects with a plain HTTP client and scans the
   final URL and body.
3. ``RenderedScanTier`` opens the link in the shared browser session and scans
   the rendered document.

Each attempt has its own timeout. Errors and timeouts fall through to the next
tier; running out of tiers yields ``None``.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Protocol, Sequence

import httpx

from affiliate_catalog.ingest.browser import BrowserSession
from affiliate_catalog.ingest.models import Resolution
from affiliate_catalog.utils.urls import find_goods_id, is_goods_url

logger = logging.getLogger(__name__)

UA_MOBILE = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 16_0 like Mac OS X) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/16.0 Mobile/15E148 Safari/604.1"
)


class ResolverTier(Protocol):
    name: str
    timeout: float

    async def attempt(self, url: str) -> str | None:
        ...


class DirectMatchTier:
    name = "direct"
    timeout = 1.0

    async def attempt(self, url: str) -> str | None:
        if not is_goods_url(url):
            return None
        return find_goods_id(url)


class HttpScanTier:
    name = "http"

    def __init__(
        self,
        *,
        timeout: float = 10.0,
        max_redirects: int = 5,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.timeout = timeout
        self._owns_session = session is None
        self._session = session or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            max_redirects=max_redirects,
            headers={"User-Agent": UA_MOBILE, "Accept-Language": "en-US,en;q=0.9"},
        )

    async def close(self) -> None:
        if self._owns_session:
            await self._session.aclose()

    async def attempt(self, url: str) -> str | None:
        response = await self._session.get(url)
        return find_goods_id(str(response.url)) or find_goods_id(response.text)


class RenderedScanTier:
    name = "rendered"

    def __init__(self, session: BrowserSession, *, timeout: float = 15.0) -> None:
        self.session = session
        self.timeout = timeout

    async def attempt(self, url: str) -> str | None:
        async with self.session.page() as page:
            await page.goto(url, timeout=self.timeout * 1000, wait_until="domcontentloaded")
            return find_goods_id(page.url) or find_goods_id(await page.content())


class UrlResolver:
    def __init__(self, tiers: Sequence[ResolverTier]) -> None:
        self.tiers = list(tiers)

    async def resolve(self, url: str) -> Resolution | None:
        for tier in self.tiers:
            try:
                product_id = await asyncio.wait_for(tier.attempt(url), timeout=tier.timeout)
            except asyncio.TimeoutError:
                logger.debug("Tier %s timed out for %s", tier.name, url)
                continue
            except Exception as exc:
                logger.debug("Tier %s failed for %s: %s", tier.name, url, exc)
                continue
            if product_id:
                logger.debug("Tier %s resolved %s -> %s", tier.name, url, product_id)
                return Resolution(product_id=product_id, tier=tier.name)
        return None


def build_resolver(
    session: BrowserSession,
    *,
    http_timeout: float = 10.0,
    render_timeout: float = 15.0,
    max_redirects: int = 5,
    http_session: httpx.AsyncClient | None = None,
) -> tuple[UrlResolver, HttpScanTier]:
    """Standard tier order. The HTTP tier is returned so the caller can close it."""
    http_tier = HttpScanTier(timeout=http_timeout, max_redirects=max_redirects, session=http_session)
    resolver = UrlResolver(
        [
            DirectMatchTier(),
            http_tier,
            RenderedScanTier(session, timeout=render_timeout),
        ]
    )
    return resolver, http_tier
