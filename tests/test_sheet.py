from pathlib import Path

import httpx
import pytest
import respx

from affiliate_catalog.errors import FatalIngestionError
from affiliate_catalog.ingest.models import SourceRow
from affiliate_catalog.ingest.sheet import SheetClient, parse_rows

FIXTURES = Path(__file__).parent / "fixtures"
SHEET_URL = "https://docs.google.com/spreadsheets/d/e/abc/pub?output=csv"


def load_fixture(path: str) -> str:
    return (FIXTURES / path).read_text()


def test_parse_rows_positional_columns():
    rows = parse_rows(load_fixture("http/sheet.csv"), max_rows=80)
    assert rows == [
        SourceRow(url="https://temu.to/k/abc123", preferred_category="kitchen"),
        SourceRow(url="https://www.temu.com/goods.html?goods_id=601099512345678&_x_ads=1", preferred_category=None),
        SourceRow(url="https://example.com/track?u=https%3A%2F%2Ftemu.to%2Fk%2Fzzz", preferred_category=None),
    ]


def test_parse_rows_respects_max_rows():
    rows = parse_rows(load_fixture("http/sheet.csv"), max_rows=2)
    assert [row.url for row in rows] == [
        "https://temu.to/k/abc123",
        "https://www.temu.com/goods.html?goods_id=601099512345678&_x_ads=1",
    ]


def test_parse_rows_uses_named_header_columns():
    rows = parse_rows(load_fixture("http/sheet_with_header.csv"), max_rows=80)
    assert rows == [
        SourceRow(url="https://temu.to/k/lamp01", preferred_category="room-decor"),
        SourceRow(url="https://temu.to/k/pan002", preferred_category=None),
    ]


def test_parse_rows_empty_sheet():
    assert parse_rows("", max_rows=10) == []
    assert parse_rows("\n,\n", max_rows=10) == []


@pytest.mark.asyncio
async def test_sheet_client_fetches_rows():
    async with respx.mock(assert_all_called=True) as router:
        router.get(SHEET_URL).mock(return_value=httpx.Response(200, text=load_fixture("http/sheet.csv")))
        async with httpx.AsyncClient() as session:
            client = SheetClient(SHEET_URL, max_rows=80, session=session)
            rows = await client.fetch_rows()
    assert len(rows) == 3
    assert rows[0].preferred_category == "kitchen"


@pytest.mark.asyncio
async def test_sheet_client_http_error_is_fatal():
    async with respx.mock(assert_all_called=True) as router:
        router.get(SHEET_URL).mock(return_value=httpx.Response(500, text="oops"))
        async with httpx.AsyncClient() as session:
            client = SheetClient(SHEET_URL, session=session)
            with pytest.raises(FatalIngestionError):
                await client.fetch_rows()
