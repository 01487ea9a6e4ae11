"""Datetime helpers."""

from __future__ import annotations

import pendulum


def now_ms() -> int:
    """Current UTC time as integer epoch milliseconds."""
    return int(pendulum.now("UTC").timestamp() * 1000)


def from_ms(value: int) -> pendulum.DateTime:
    return pendulum.from_timestamp(value / 1000, tz="UTC")


def format_ms(value: int) -> str:
    if not value:
        return "never"
    return from_ms(value).to_datetime_string()
