"""Google Sheets CSV ingestion."""

from __future__ import annotations

import csv
import io
import logging

import httpx

from affiliate_catalog.errors import FatalIngestionError
from affiliate_catalog.ingest.models import SourceRow
from affiliate_catalog.utils.retry import retry_async
from affiliate_catalog.utils.urls import is_http_url

logger = logging.getLogger(__name__)

URL_HEADERS = ("affiliate_url", "url", "link", "temu_url", "affiliate link")
CATEGORY_HEADERS = ("category", "cat", "niche", "slug")


class SheetClient:
    def __init__(
        self,
        csv_url: str,
        *,
        max_rows: int = 80,
        timeout: float = 10.0,
        session: httpx.AsyncClient | None = None,
    ) -> None:
        self.csv_url = csv_url
        self.max_rows = max_rows
        self._owns_session = session is None
        self._session = session or httpx.AsyncClient(timeout=timeout, follow_redirects=True)

    async def close(self) -> None:
        if self._owns_session:
            await self._session.aclose()

    async def fetch_rows(self) -> list[SourceRow]:
        try:
            response = await retry_async(self._session.get)(self.csv_url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise FatalIngestionError(f"Sheet fetch failed for {self.csv_url}: {exc}") from exc
        try:
            rows = parse_rows(response.text, max_rows=self.max_rows)
        except csv.Error as exc:
            raise FatalIngestionError(f"Sheet parse failed for {self.csv_url}: {exc}") from exc
        logger.info("Loaded %s rows from sheet", len(rows))
        return rows


def parse_rows(text: str, *, max_rows: int) -> list[SourceRow]:
    """Turn a CSV export into ordered source rows.

    Column 0 is the URL and column 1 an optional category slug. When the first
    row is a recognised header, the named columns are used instead. Rows whose
    URL cell does not look like an http(s) link are skipped.
    """
    records = [row for row in csv.reader(io.StringIO(text)) if any(cell.strip() for cell in row)]
    if not records:
        return []

    url_col, cat_col = 0, 1
    header = _header_columns(records[0])
    if header is not None:
        url_col, cat_col = header
        records = records[1:]

    rows: list[SourceRow] = []
    seen: set[str] = set()
    for record in records:
        if len(rows) >= max_rows:
            break
        url = _cell(record, url_col)
        if not is_http_url(url) or url in seen:
            continue
        seen.add(url)
        category = _cell(record, cat_col) if cat_col is not None else ""
        rows.append(SourceRow(url=url, preferred_category=category or None))
    return rows


def _header_columns(first_row: list[str]) -> tuple[int, int | None] | None:
    names = [cell.strip().lower() for cell in first_row]
    url_col = next((idx for idx, name in enumerate(names) if name in URL_HEADERS), None)
    if url_col is None:
        return None
    cat_col = next((idx for idx, name in enumerate(names) if name in CATEGORY_HEADERS), None)
    return url_col, cat_col


def _cell(record: list[str], index: int) -> str:
    if index >= len(record):
        return ""
    return record[index].strip()
