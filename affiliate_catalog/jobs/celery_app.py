"""Celery configuration for the periodic catalog refresh."""

from __future__ import annotations

import os

from celery import Celery
from celery.schedules import crontab

broker_url = os.environ.get("REDIS_URL", "redis://redis:6379/0")
backend_url = os.environ.get("REDIS_URL", "redis://redis:6379/0")

SCRAPE_EVERY_HOURS = int(os.environ.get("SCRAPE_EVERY_HOURS", "6"))

celery_app = Celery("affiliate_catalog", broker=broker_url, backend=backend_url, include=["affiliate_catalog.jobs.scrape"])
celery_app.conf.timezone = "UTC"
celery_app.conf.beat_schedule = {
    "catalog-refresh": {
        "task": "affiliate_catalog.jobs.scrape.run_scrape",
        "schedule": crontab(minute=int(os.environ.get("SCRAPE_MINUTE", "15")), hour=f"*/{SCRAPE_EVERY_HOURS}"),
    },
}


@celery_app.task(name="affiliate_catalog.jobs.scrape.run_scrape")
def run_scrape_task() -> dict[str, int]:  # pragma: no cover - executed by worker
    import asyncio
    from dataclasses import asdict

    from affiliate_catalog.jobs.scrape import run_scrape

    return asdict(asyncio.run(run_scrape()))
