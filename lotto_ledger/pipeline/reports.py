"""Statistics document assembly."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping, Sequence

from lotto_ledger.common.constants import STATS_SCHEMA_VERSION
from lotto_ledger.common.fs import write_json
from lotto_ledger.common.models import DrawRecord, HealthReport
from lotto_ledger.common.time_utils import utc_timestamp_iso
from lotto_ledger.pipeline.ledger import latest_record
from lotto_ledger.pipeline.stats import DEFAULT_DECAY, DEFAULT_WINDOW_DAYS, aggregate


def build_stats_payload(
    ledger: Mapping[int, DrawRecord],
    health: HealthReport,
    *,
    run_id: str,
    sources: Sequence[dict] = (),
    window_days: Sequence[int] = DEFAULT_WINDOW_DAYS,
    decay: float = DEFAULT_DECAY,
    updated_at: str | None = None,
) -> dict:
    stats = aggregate(ledger.values(), window_days=window_days, decay=decay)
    last = latest_record(ledger)
    return {
        "schema_version": STATS_SCHEMA_VERSION,
        "updated_at": updated_at or utc_timestamp_iso(),
        "run_id": run_id,
        "health": health.to_dict(),
        "sources": [
            {"name": source["name"], "endpoints": dict(source.get("endpoints") or {})}
            for source in sources
        ],
        "last_draw": last.to_dict() if last is not None else None,
        "total_draws": len(ledger),
        "overall": stats["overall"],
        "recent": stats["recent"],
    }


def write_stats(path: Path, payload: dict) -> Path:
    write_json(path, payload)
    return path
