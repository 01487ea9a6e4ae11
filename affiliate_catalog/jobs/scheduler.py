"""Concurrency-bounded passes over sheet rows and stale catalog records."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from typing import Protocol, Sequence, TypeVar

from affiliate_catalog.db.catalog import CatalogStore, merge_record
from affiliate_catalog.errors import ExtractionFailure, ResolutionFailure
from affiliate_catalog.ingest.models import CategoryRule, ProductMetadata, ProductRecord, Resolution, SourceRow
from affiliate_catalog.logic.classify import classify
from affiliate_catalog.logic.recheck import select_for_recheck
from affiliate_catalog.utils.dates import format_ms, now_ms
from affiliate_catalog.utils.urls import goods_url, outbound_url_for

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Resolver(Protocol):
    async def resolve(self, url: str) -> Resolution | None:
        ...


class Extractor(Protocol):
    async def extract(self, url: str) -> ProductMetadata:
        ...


@dataclass(slots=True)
class RunSummary:
    rows: int = 0
    resolved: int = 0
    merged: int = 0
    failed: int = 0
    duplicates: int = 0
    rechecked: int = 0
    recheck_failed: int = 0
    catalog_size: int = 0

    def lines(self) -> list[str]:
        return [
            f"[scrape] rows in sheet: {self.rows}",
            f"[scrape] resolved: {self.resolved}, added/updated: {self.merged}, failed: {self.failed}, duplicates: {self.duplicates}",
            f"[scrape] rechecked: {self.rechecked}, recheck failed: {self.recheck_failed}",
            f"[scrape] total in JSON: {self.catalog_size}",
        ]


async def run_bounded(items: Iterable[T], worker: Callable[[T], Awaitable[None]], concurrency: int) -> None:
    """Run ``worker`` for every item with at most ``concurrency`` in flight."""
    semaphore = asyncio.Semaphore(concurrency)

    async def guarded(item: T) -> None:
        async with semaphore:
            await worker(item)

    await asyncio.gather(*(guarded(item) for item in items))


class BatchScheduler:
    def __init__(
        self,
        store: CatalogStore,
        resolver: Resolver,
        extractor: Extractor,
        categories: Sequence[CategoryRule],
        *,
        concurrency: int = 6,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self.store = store
        self.resolver = resolver
        self.extractor = extractor
        self.categories = list(categories)
        self.concurrency = concurrency
        self.clock = clock
        self._claimed: set[str] = set()

    async def run(self, rows: Sequence[SourceRow], *, recheck_limit: int) -> RunSummary:
        summary = RunSummary(rows=len(rows))
        await self.process_rows(rows, summary)
        await self.recheck_stale(recheck_limit, summary)
        summary.catalog_size = len(self.store)
        return summary

    async def process_rows(self, rows: Sequence[SourceRow], summary: RunSummary) -> None:
        async def worker(row: SourceRow) -> None:
            try:
                await self._process_row(row, summary)
            except ResolutionFailure as exc:
                summary.failed += 1
                logger.warning("[resolve] FAIL: %s", exc.url)
            except ExtractionFailure as exc:
                summary.failed += 1
                logger.warning("[extract] FAIL %s: %s", row.url, exc.reason)
            except Exception as exc:
                summary.failed += 1
                logger.warning("[resolve] ERROR for %s: %s", row.url, exc)

        await run_bounded(rows, worker, self.concurrency)

    async def _process_row(self, row: SourceRow, summary: RunSummary) -> None:
        resolution = await self.resolver.resolve(row.url)
        if resolution is None:
            raise ResolutionFailure(row.url)
        summary.resolved += 1
        product_id = resolution.product_id
        if product_id in self._claimed:
            summary.duplicates += 1
            logger.info("[resolve] DUP %s <- %s", product_id, row.url)
            return
        self._claimed.add(product_id)

        fresh = await self.extractor.extract(goods_url(product_id))
        existing = self.store.get(product_id)
        title_hint = fresh.title or (existing.title if existing else "")
        record = merge_record(
            existing,
            fresh,
            product_id=product_id,
            category_slug=classify(self.categories, title_hint, row.preferred_category),
            outbound_url=outbound_url_for(row.url, product_id),
            now=self.clock(),
        )
        self.store.apply(record)
        summary.merged += 1
        logger.info("[resolve] OK %s <- %s (via %s)", product_id, row.url, resolution.tier)

    async def recheck_stale(self, limit: int, summary: RunSummary) -> None:
        # Selection happens only after every row above has been merged.
        pool = select_for_recheck(self.store.records(), limit, exclude=self._claimed)
        if not pool:
            return
        logger.info("Rechecking %s records, oldest last updated %s", len(pool), format_ms(pool[0].updated_at))

        async def worker(record: ProductRecord) -> None:
            try:
                await self._recheck(record)
            except ExtractionFailure as exc:
                summary.recheck_failed += 1
                logger.warning("[recheck] FAIL %s: %s", record.id, exc.reason)
            except Exception as exc:
                summary.recheck_failed += 1
                logger.warning("[recheck] ERROR for %s: %s", record.id, exc)
            else:
                summary.rechecked += 1

        await run_bounded(pool, worker, self.concurrency)

    async def _recheck(self, record: ProductRecord) -> None:
        self._claimed.add(record.id)
        fresh = await self.extractor.extract(goods_url(record.id))
        title_hint = fresh.title or record.title
        updated = merge_record(
            record,
            fresh,
            product_id=record.id,
            category_slug=classify(self.categories, title_hint, record.category_slug),
            outbound_url=record.outbound_url or goods_url(record.id),
            now=self.clock(),
        )
        self.store.apply(updated)
        logger.debug("[recheck] OK %s available=%s", record.id, updated.available)
