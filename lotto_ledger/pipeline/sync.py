"""Synchronise the local ledger with the draw mirrors.

One run walks a fixed sequence of steps:

1. take the ledger loaded by the caller;
2. ask every source for its latest draw and settle on a target by consensus;
3. bootstrap from a bulk listing when the ledger is empty or far behind;
4. retry a bounded number of interior gaps, then fill the remaining numbers
   one draw at a time;
5. merge the consensus record for the target draw;
6. re-check the newest draws against every source;
7. flag the run as degraded if the ledger is still short of the target.

Only step 2 can abort the run, and only when no source answered and there is
no local ledger to fall back on. Everything else is recorded on the run's
``HealthReport``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Sequence

from lotto_ledger.common.constants import MODE_BOOTSTRAP, MODE_INCREMENTAL, MODE_LOCAL_ONLY
from lotto_ledger.common.errors import FatalSyncError
from lotto_ledger.common.logging import log_event
from lotto_ledger.common.models import ConsensusOutcome, HealthReport
from lotto_ledger.pipeline.consensus import MIN_AGREEING_SOURCES, record_signature, resolve_latest, resolve_signature
from lotto_ledger.pipeline.ledger import Ledger, highest_draw_no, merge_records, missing_draw_numbers
from lotto_ledger.sources.http_source import DrawSource
from lotto_ledger.sources.runner import fan_out, first_success

REASON_LATEST_UNAVAILABLE = "LATEST_UNAVAILABLE_USING_LOCAL_CACHE"
REASON_LATEST_NOT_AGREED = "LATEST_NOT_AGREED"
REASON_BOOTSTRAP_FAILED = "BOOTSTRAP_FAILED"
REASON_INCREMENTAL_STALLED = "INCREMENTAL_STALLED"
REASON_TAIL_PATCHED = "TAIL_PATCHED"
REASON_TAIL_DISAGREE = "TAIL_SOURCES_DISAGREE"
REASON_BEHIND_TARGET = "BEHIND_TARGET"
REASON_GAPS_PRESENT = "LEDGER_GAPS_PRESENT"

# Only the lowest missing numbers are kept on the health report.
GAP_REPORT_LIMIT = 50


@dataclass(frozen=True)
class SyncSettings:
    bootstrap_threshold: int = 120
    tail_window: int = 5
    max_workers: int = 8
    gap_repair_limit: int = 20

    @classmethod
    def from_config(cls, sync_config: dict) -> "SyncSettings":
        cfg = sync_config["sync"]
        return cls(
            bootstrap_threshold=int(cfg["bootstrap_threshold"]),
            tail_window=int(cfg["tail_window"]),
            max_workers=int(cfg["max_workers"]),
            gap_repair_limit=int(cfg.get("gap_repair_limit", cls.gap_repair_limit)),
        )


@dataclass
class SyncResult:
    ledger: Ledger
    health: HealthReport
    consensus: ConsensusOutcome | None


class SyncController:
    def __init__(
        self,
        sources: Sequence[DrawSource],
        settings: SyncSettings | None = None,
        *,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        self.sources = list(sources)
        self.settings = settings or SyncSettings()
        self.logger = logger or logging.getLogger(__name__)
        self.run_id = run_id

    def _log(self, message: str, *, level: int = logging.INFO, **fields) -> None:
        log_event(self.logger, message, level=level, run_id=self.run_id, stage="sync", **fields)

    def _record_failures(self, health: HealthReport, operation: str, failures: dict[str, Exception], **fields) -> None:
        for source_name, exc in failures.items():
            health.record_source_error(source_name, operation, exc)
            self._log(
                f"{operation} failed on {source_name}: {exc}",
                level=logging.WARNING,
                source=source_name,
                event="SOURCE_FAIL",
                status="error",
                error_code=getattr(exc, "error_code", type(exc).__name__),
                **fields,
            )

    def run(self, ledger: Ledger) -> SyncResult:
        health = HealthReport()
        started = time.monotonic()
        ledger = merge_records({}, ledger.values())
        rows_in = len(ledger)
        self._log("sync start", event="SYNC_START", status="ok", rows_in=rows_in)

        consensus = self._determine_target(ledger, health)

        if consensus is not None:
            target = consensus.draw_no
            ledger = self._choose_strategy(ledger, target, health)
            ledger = self._repair_gaps(ledger, health)
            ledger = self._incremental_fill(ledger, target, health)
            ledger = merge_records(ledger, [consensus.record])
            self._log("consensus record merged", event="CONSENSUS_PATCH", status="ok", draw_no=target)
        else:
            health.mode = MODE_LOCAL_ONLY

        ledger = self._validate_tail(ledger, health)
        self._finalize(ledger, consensus, health)

        self._log(
            f"sync end ({health.status})",
            event="SYNC_END",
            status=health.status,
            rows_in=rows_in,
            rows_out=len(ledger),
            duration_ms=int((time.monotonic() - started) * 1000),
        )
        return SyncResult(ledger=ledger, health=health, consensus=consensus)

    def _determine_target(self, ledger: Ledger, health: HealthReport) -> ConsensusOutcome | None:
        after = highest_draw_no(ledger)
        fetched = fan_out(
            self.sources,
            lambda source: source.fetch_latest(after=after),
            max_workers=self.settings.max_workers,
        )
        self._record_failures(health, "fetch_latest", fetched.failures)

        consensus = resolve_latest(fetched.results)
        if consensus is None:
            if not ledger:
                raise FatalSyncError("No source returned a latest draw and the local ledger is empty")
            health.add_reason(REASON_LATEST_UNAVAILABLE)
            self._log(
                "latest draw unavailable from every source; using local ledger",
                level=logging.WARNING,
                event="LATEST_UNAVAILABLE",
                status="degraded",
            )
            return None

        health.target_draw_no = consensus.draw_no
        health.consensus = consensus.to_dict()
        if not consensus.agreed:
            health.add_reason(REASON_LATEST_NOT_AGREED)
        self._log(
            f"target draw {consensus.draw_no} (support={consensus.support})",
            event="TARGET",
            status="ok" if consensus.agreed else "degraded",
            draw_no=consensus.draw_no,
        )
        return consensus

    def _choose_strategy(self, ledger: Ledger, target: int, health: HealthReport) -> Ledger:
        gap = target - highest_draw_no(ledger)
        if ledger and gap <= self.settings.bootstrap_threshold:
            health.mode = MODE_INCREMENTAL
            return ledger

        winner, failures = first_success(self.sources, lambda source: source.fetch_all())
        self._record_failures(health, "fetch_all", failures)
        if winner is None:
            health.mode = MODE_INCREMENTAL
            health.add_reason(REASON_BOOTSTRAP_FAILED)
            self._log("bulk bootstrap failed on every source", level=logging.WARNING, event="BOOTSTRAP_FAIL", status="degraded")
            return ledger

        health.mode = MODE_BOOTSTRAP
        health.bootstrap_source = winner.source
        self._log(
            f"bootstrapped {len(winner.value)} draws from {winner.source}",
            event="BOOTSTRAP",
            status="ok",
            source=winner.source,
            rows_in=len(winner.value),
        )
        return merge_records(ledger, winner.value)

    def _repair_gaps(self, ledger: Ledger, health: HealthReport) -> Ledger:
        missing = missing_draw_numbers(ledger)[: self.settings.gap_repair_limit]
        repaired = []
        for draw_no in missing:
            found, failures = first_success(self.sources, lambda source: source.fetch_one(draw_no))
            self._record_failures(health, "fetch_one", failures, draw_no=draw_no)
            if found is not None:
                repaired.append(found.value)
        if repaired:
            self._log(f"repaired {len(repaired)} interior gaps", event="GAP_REPAIR", status="ok", rows_out=len(repaired))
        return merge_records(ledger, repaired)

    def _incremental_fill(self, ledger: Ledger, target: int, health: HealthReport) -> Ledger:
        # The target itself is supplied by the consensus record afterwards.
        for draw_no in range(highest_draw_no(ledger) + 1, target):
            found, failures = first_success(self.sources, lambda source: source.fetch_one(draw_no))
            self._record_failures(health, "fetch_one", failures, draw_no=draw_no)
            if found is None:
                health.add_reason(REASON_INCREMENTAL_STALLED)
                self._log(
                    f"no source could supply draw {draw_no}; stopping fill",
                    level=logging.WARNING,
                    event="FILL_STALLED",
                    status="degraded",
                    draw_no=draw_no,
                )
                break
            ledger = merge_records(ledger, [found.value])
        return ledger

    def _validate_tail(self, ledger: Ledger, health: HealthReport) -> Ledger:
        counters = health.tail_validation
        for draw_no in sorted(ledger)[-self.settings.tail_window :]:
            counters.attempted += 1
            fetched = fan_out(
                self.sources,
                lambda source: source.fetch_one(draw_no),
                max_workers=self.settings.max_workers,
            )
            self._record_failures(health, "fetch_one", fetched.failures, draw_no=draw_no)

            usable = [result for result in fetched.results if result.value.draw_no == draw_no]
            if len({result.source for result in usable}) < MIN_AGREEING_SOURCES:
                counters.skipped += 1
                continue

            counters.validated += 1
            outcome = resolve_signature(usable)
            if outcome is None or not outcome.agreed:
                counters.mismatched += 1
                health.add_reason(REASON_TAIL_DISAGREE, degrade=False)
                continue

            if record_signature(ledger[draw_no]) != outcome.signature:
                ledger = merge_records(ledger, [outcome.record])
                counters.patched += 1
                counters.patched_draws.append(draw_no)
                health.add_reason(REASON_TAIL_PATCHED, degrade=False)
                self._log(
                    f"draw {draw_no} replaced by majority value from {', '.join(outcome.sources)}",
                    event="TAIL_PATCH",
                    status="ok",
                    draw_no=draw_no,
                )
        return ledger

    def _finalize(self, ledger: Ledger, consensus: ConsensusOutcome | None, health: HealthReport) -> None:
        missing = missing_draw_numbers(ledger)
        health.gap = missing[:GAP_REPORT_LIMIT]
        health.gap_count = len(missing)
        if consensus is not None:
            target = consensus.draw_no
            if highest_draw_no(ledger) < target or any(draw_no <= target for draw_no in missing):
                health.add_reason(REASON_BEHIND_TARGET)
                return
        if missing:
            health.add_reason(REASON_GAPS_PRESENT)
