"""Catalog refresh job: sheet rows in, products.json out."""

from __future__ import annotations

import asyncio
import logging
import os

from dotenv import load_dotenv

from affiliate_catalog.config import ScrapeSettings
from affiliate_catalog.db.catalog import CatalogStore
from affiliate_catalog.errors import FatalIngestionError, PersistenceFailure
from affiliate_catalog.ingest import load_categories
from affiliate_catalog.ingest.browser import BrowserSession
from affiliate_catalog.ingest.extractor import ProductExtractor
from affiliate_catalog.ingest.resolver import build_resolver
from affiliate_catalog.ingest.sheet import SheetClient
from affiliate_catalog.jobs.scheduler import BatchScheduler, RunSummary

logger = logging.getLogger(__name__)


async def run_scrape(settings: ScrapeSettings | None = None) -> RunSummary:
    load_dotenv()
    settings = settings or ScrapeSettings.from_env()
    if not settings.sheet_csv_url:
        raise FatalIngestionError("SHEET_CSV_URL is not configured")

    store = CatalogStore.load(settings.products_path)
    categories = load_categories(settings.categories_path)

    sheet = SheetClient(
        settings.sheet_csv_url,
        max_rows=settings.max_rows,
        timeout=settings.http_timeout_ms / 1000,
    )
    try:
        rows = await sheet.fetch_rows()
    finally:
        await sheet.close()

    async with BrowserSession(headless=settings.headless) as session:
        resolver, http_tier = build_resolver(
            session,
            http_timeout=settings.http_timeout_ms / 1000,
            render_timeout=settings.redirect_timeout_ms / 1000,
            max_redirects=settings.max_redirects,
        )
        extractor = ProductExtractor(
            session,
            timeout=settings.fetch_timeout_ms / 1000,
            settle_ms=settings.settle_delay_ms,
        )
        scheduler = BatchScheduler(
            store,
            resolver,
            extractor,
            categories,
            concurrency=settings.concurrency,
        )
        try:
            summary = await scheduler.run(rows, recheck_limit=settings.recheck_existing)
        finally:
            await http_tier.close()

    store.save()
    return summary


def main() -> int:
    load_dotenv()
    logging.basicConfig(
        level=os.environ.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        summary = asyncio.run(run_scrape())
    except FatalIngestionError:
        logger.exception("Sheet ingestion failed; catalog left untouched")
        return 1
    except PersistenceFailure:
        logger.exception("Catalog could not be persisted; previous snapshot kept")
        return 1
    for line in summary.lines():
        print(line)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
