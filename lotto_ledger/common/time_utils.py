"""UTC-focused helpers for deterministic run metadata."""

from __future__ import annotations

from datetime import date, datetime, timedelta, timezone


def utc_timestamp_iso() -> str:
    return datetime.now(tz=timezone.utc).isoformat(timespec="milliseconds")


def parse_day(value: str) -> date:
    return date.fromisoformat(value)


def days_before(value: str, days: int) -> str:
    return (parse_day(value) - timedelta(days=days)).isoformat()
