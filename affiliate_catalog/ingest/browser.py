"""Shared headless browser session."""

from __future__ import annotations

import logging
import re
from contextlib import asynccontextmanager
from typing import AsyncIterator

from playwright.async_api import Browser, BrowserContext, Page, Playwright, Route, async_playwright

logger = logging.getLogger(__name__)

DEVICE = "iPhone 12"
BLOCKED_REQUEST_RE = re.compile(r"install|app-redirect|umeng|byteoversea|gtm|analytics", re.IGNORECASE)


class BrowserSession:
    """One Chromium context for the whole run; each operation gets its own page."""

    def __init__(self, *, headless: bool = True, device: str = DEVICE) -> None:
        self.headless = headless
        self.device = device
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def start(self) -> None:
        self._pw = await async_playwright().start()
        try:
            self._browser = await self._pw.chromium.launch(headless=self.headless)
            self._context = await self._browser.new_context(**self._pw.devices[self.device])
            await self._context.route("**/*", _block_trackers)
        except BaseException:
            await self.close()
            raise
        logger.info("Browser session started (%s)", self.device)

    async def close(self) -> None:
        context, browser, pw = self._context, self._browser, self._pw
        self._pw = self._browser = self._context = None
        try:
            if context is not None:
                await context.close()
        finally:
            try:
                if browser is not None:
                    await browser.close()
            finally:
                if pw is not None:
                    await pw.stop()

    @asynccontextmanager
    async def page(self) -> AsyncIterator[Page]:
        if self._context is None:
            raise RuntimeError("Browser session is not started")
        page = await self._context.new_page()
        try:
            yield page
        finally:
            await page.close()


async def _block_trackers(route: Route) -> None:
    if BLOCKED_REQUEST_RE.search(route.request.url):
        await route.abort()
    else:
        await route.continue_()
