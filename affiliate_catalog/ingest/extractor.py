"""Product page extraction through the shared browser session."""

from __future__ import annotations

import asyncio
import logging

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from affiliate_catalog.errors import ExtractionFailure
from affiliate_catalog.ingest.browser import BrowserSession
from affiliate_catalog.ingest.models import ProductMetadata
from affiliate_catalog.logic.availability import metadata_from_snapshot

logger = logging.getLogger(__name__)

SNAPSHOT_JS = """
() => {
  const text = (sel) => document.querySelector(sel)?.textContent?.trim() || '';
  const buy = '[data-test-id*="buy"],[data-test-id*="cart"]';
  const disabledBuy = [
    '[data-test-id*="buy"][disabled]', '[data-test-id*="buy"][aria-disabled="true"]',
    '[data-test-id*="cart"][disabled]', '[data-test-id*="cart"][aria-disabled="true"]',
  ].join(',');
  return {
    title: text('h1,[data-test-id="product-title"],title'),
    price: text('[data-test-id="price"],.price,.product-price'),
    images: [...document.querySelectorAll('img[src*="media"]')].map((img) => img.src),
    html: document.documentElement.innerHTML,
    hasBuy: !!document.querySelector(buy),
    hasDisabledBuy: !!document.querySelector(disabledBuy),
  };
}
"""


class ProductExtractor:
    grace = 5.0

    def __init__(self, session: BrowserSession, *, timeout: float = 20.0, settle_ms: int = 400) -> None:
        self.session = session
        self.timeout = timeout
        self.settle_ms = settle_ms

    async def extract(self, url: str) -> ProductMetadata:
        # Navigation has its own timeout; the outer bound also covers settle and evaluate.
        budget = self.timeout + self.settle_ms / 1000 + self.grace
        try:
            return await asyncio.wait_for(self._extract(url), timeout=budget)
        except asyncio.TimeoutError as exc:
            raise ExtractionFailure(url, "extraction timed out") from exc

    async def _extract(self, url: str) -> ProductMetadata:
        async with self.session.page() as page:
            try:
                await page.goto(url, timeout=self.timeout * 1000, wait_until="domcontentloaded")
            except PlaywrightTimeoutError as exc:
                raise ExtractionFailure(url, "page load timed out") from exc
            except PlaywrightError as exc:
                raise ExtractionFailure(url, str(exc)) from exc
            await page.wait_for_timeout(self.settle_ms)
            try:
                snapshot = await page.evaluate(SNAPSHOT_JS)
            except PlaywrightError as exc:
                raise ExtractionFailure(url, str(exc)) from exc
        metadata = metadata_from_snapshot(snapshot or {})
        logger.debug("Extracted %s: %r price=%r available=%s", url, metadata.title, metadata.price, metadata.available)
        return metadata
