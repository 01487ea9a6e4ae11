import json
from pathlib import Path

import httpx
import pytest
import respx

from affiliate_catalog.config import ScrapeSettings
from affiliate_catalog.errors import FatalIngestionError
from affiliate_catalog.ingest.models import ProductMetadata
from affiliate_catalog.jobs import scrape
from tests.fakes import FakeExtractor, FakeResolver, make_record

FIXTURES = Path(__file__).parent / "fixtures"
SHEET_URL = "https://docs.google.com/spreadsheets/d/e/abc/pub?output=csv"
SHEET = (
    "https://temu.to/k/lamp01,\n"
    "https://www.temu.com/goods.html?goods_id=601099512345678,kitchen\n"
    "https://temu.to/k/dead00,\n"
)


class FakeBrowserSession:
    started = 0

    def __init__(self, *, headless=True):
        self.headless = headless

    async def __aenter__(self):
        FakeBrowserSession.started += 1
        return self

    async def __aexit__(self, *exc_info):
        return None


class ClosableTier:
    closed = False

    async def close(self):
        ClosableTier.closed = True


@pytest.fixture()
def settings(tmp_path):
    return ScrapeSettings(
        sheet_csv_url=SHEET_URL,
        products_path=tmp_path / "public" / "data" / "products.json",
        categories_path=FIXTURES / "categories.json",
        recheck_existing=5,
    )


@pytest.fixture()
def fake_browser(monkeypatch):
    extractor = FakeExtractor(
        {
            "601099512340001": ProductMetadata(title="Cozy Lamp", price="12.99", images=["https://img/media/1.jpg"], available=True),
            "601099512345678": ProductMetadata(title="Frying Pan", price="20", images=[], available=False),
        }
    )
    resolver = FakeResolver({"https://temu.to/k/lamp01": "601099512340001"})
    monkeypatch.setattr(scrape, "BrowserSession", FakeBrowserSession)
    monkeypatch.setattr(scrape, "build_resolver", lambda session, **kwargs: (resolver, ClosableTier()))
    monkeypatch.setattr(scrape, "ProductExtractor", lambda session, **kwargs: extractor)
    return resolver, extractor


@pytest.mark.asyncio
async def test_run_scrape_end_to_end(settings, fake_browser):
    settings.products_path.parent.mkdir(parents=True)
    settings.products_path.write_text(json.dumps([make_record("555555555555", updated_at=1).to_dict()]))

    async with respx.mock(assert_all_called=True) as router:
        router.get(SHEET_URL).mock(return_value=httpx.Response(200, text=SHEET))
        summary = await scrape.run_scrape(settings)

    assert summary.rows == 3
    assert summary.resolved == 2
    assert summary.failed == 1
    assert summary.rechecked == 1
    assert summary.catalog_size == 3
    assert ClosableTier.closed

    data = json.loads(settings.products_path.read_text())
    by_id = {item["id"]: item for item in data}
    assert by_id["601099512340001"]["out_url"] == "https://temu.to/k/lamp01"
    assert by_id["601099512340001"]["category"] == "room-decor"
    assert by_id["601099512345678"]["category"] == "kitchen"
    assert by_id["601099512345678"]["available"] is False
    assert by_id["555555555555"]["checks"] == 2
    updated = [item["updated_at"] for item in data]
    assert updated == sorted(updated, reverse=True)


@pytest.mark.asyncio
async def test_sheet_failure_aborts_before_touching_catalog(settings, fake_browser):
    settings.products_path.parent.mkdir(parents=True)
    snapshot_before = json.dumps([make_record("555555555555").to_dict()])
    settings.products_path.write_text(snapshot_before)
    started = FakeBrowserSession.started

    async with respx.mock() as router:
        router.get(SHEET_URL).mock(return_value=httpx.Response(404, text="not published"))
        with pytest.raises(FatalIngestionError):
            await scrape.run_scrape(settings)

    assert settings.products_path.read_text() == snapshot_before
    assert FakeBrowserSession.started == started


@pytest.mark.asyncio
async def test_missing_sheet_url_is_fatal(settings):
    settings.sheet_csv_url = None
    with pytest.raises(FatalIngestionError):
        await scrape.run_scrape(settings)


def test_main_returns_non_zero_on_fatal_error(monkeypatch):
    async def failing_run():
        raise FatalIngestionError("sheet down")

    monkeypatch.setattr(scrape, "run_scrape", failing_run)
    assert scrape.main() == 1


def test_main_prints_summary(monkeypatch, capsys):
    async def ok_run():
        return scrape.RunSummary(rows=4, resolved=3, merged=3, failed=1, catalog_size=12)

    monkeypatch.setattr(scrape, "run_scrape", ok_run)
    assert scrape.main() == 0
    out = capsys.readouterr().out
    assert "[scrape] rows in sheet: 4" in out
    assert "[scrape] total in JSON: 12" in out


def test_main_reads_log_level_from_dotenv(monkeypatch):
    async def ok_run():
        return scrape.RunSummary()

    levels = []
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setattr(scrape, "load_dotenv", lambda: monkeypatch.setenv("LOG_LEVEL", "DEBUG"))
    monkeypatch.setattr(scrape.logging, "basicConfig", lambda **kwargs: levels.append(kwargs["level"]))
    monkeypatch.setattr(scrape, "run_scrape", ok_run)

    assert scrape.main() == 0
    assert levels == ["DEBUG"]
