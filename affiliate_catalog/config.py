"""Runtime settings read from the environment."""

from __future__ import annotations

import os
import pathlib
from dataclasses import dataclass

DEFAULT_PRODUCTS_PATH = "public/data/products.json"
DEFAULT_CATEGORIES_PATH = "public/config/categories.json"


def _int_env(name: str, default: int) -> int:
    return int(os.environ.get(name, default))


@dataclass(slots=True)
class ScrapeSettings:
    sheet_csv_url: str | None = None
    max_rows: int = 80
    recheck_existing: int = 40
    concurrency: int = 6
    redirect_timeout_ms: int = 15000
    fetch_timeout_ms: int = 20000
    http_timeout_ms: int = 10000
    max_redirects: int = 5
    settle_delay_ms: int = 400
    products_path: pathlib.Path = pathlib.Path(DEFAULT_PRODUCTS_PATH)
    categories_path: pathlib.Path = pathlib.Path(DEFAULT_CATEGORIES_PATH)
    headless: bool = True

    @classmethod
    def from_env(cls) -> "ScrapeSettings":
        settings = cls(
            sheet_csv_url=os.environ.get("SHEET_CSV_URL") or None,
            max_rows=_int_env("MAX_ROWS", 80),
            recheck_existing=_int_env("RECHECK_EXISTING", 40),
            concurrency=_int_env("CONCURRENCY", 6),
            redirect_timeout_ms=_int_env("REDIRECT_TIMEOUT", 15000),
            fetch_timeout_ms=_int_env("FETCH_TIMEOUT", 20000),
            http_timeout_ms=_int_env("HTTP_TIMEOUT", 10000),
            max_redirects=_int_env("MAX_REDIRECTS", 5),
            settle_delay_ms=_int_env("SETTLE_DELAY", 400),
            products_path=pathlib.Path(os.environ.get("PRODUCTS_PATH", DEFAULT_PRODUCTS_PATH)),
            categories_path=pathlib.Path(os.environ.get("CATEGORIES_PATH", DEFAULT_CATEGORIES_PATH)),
            headless=os.environ.get("HEADLESS", "1").lower() not in {"0", "false", "no"},
        )
        if settings.concurrency < 1:
            raise ValueError("CONCURRENCY must be at least 1")
        return settings
