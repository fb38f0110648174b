"""CLI entrypoint for the lotto draw ledger updater."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from lotto_ledger.common.config_loader import ConfigBundle, enabled_sources, load_all_configs
from lotto_ledger.common.constants import COMMANDS, EXIT_HARD_FAIL, EXIT_SUCCESS, MODE_OFFLINE
from lotto_ledger.common.errors import FatalSyncError, PipelineError
from lotto_ledger.common.ids import generate_run_id
from lotto_ledger.common.logging import build_logger, close_logger, log_event
from lotto_ledger.common.models import HealthReport
from lotto_ledger.pipeline.ledger import Ledger, load_ledger, save_ledger
from lotto_ledger.pipeline.reports import build_stats_payload, write_stats
from lotto_ledger.pipeline.sync import SyncController, SyncSettings
from lotto_ledger.sources.registry import build_http_client, build_sources

REASON_OFFLINE_STATS = "OFFLINE_STATS_ONLY"
REASON_LEDGER_ROWS_DROPPED = "LEDGER_ROWS_DROPPED"


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("command", choices=COMMANDS)
    parser.add_argument("--run-id", default=None)
    parser.add_argument("--config-dir", default="./config")
    parser.add_argument("--overlay-config-dir", default=None)
    parser.add_argument("--data-dir", default="./data")
    parser.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARN", "ERROR"])
    return parser.parse_args(argv)


def run_sync(bundle: ConfigBundle, ledger: Ledger, logger: logging.Logger, run_id: str) -> tuple[Ledger, HealthReport]:
    with build_http_client(bundle.sync) as client:
        sources = build_sources(bundle, client)
        controller = SyncController(
            sources,
            SyncSettings.from_config(bundle.sync),
            logger=logger,
            run_id=run_id,
        )
        result = controller.run(ledger)
    return result.ledger, result.health


def run_offline_stats(ledger: Ledger) -> HealthReport:
    if not ledger:
        raise FatalSyncError("Local ledger is empty; nothing to aggregate")
    health = HealthReport(mode=MODE_OFFLINE)
    health.add_reason(REASON_OFFLINE_STATS)
    return health


def execute(command: str, bundle: ConfigBundle, data_dir: Path, logger: logging.Logger, run_id: str) -> HealthReport:
    output_cfg = bundle.sync["output"]
    stats_cfg = bundle.sync["stats"]
    ledger_path = data_dir / output_cfg["ledger_filename"]
    stats_path = data_dir / output_cfg["stats_filename"]

    ledger, dropped = load_ledger(ledger_path)
    log_event(logger, f"loaded {len(ledger)} draws", run_id=run_id, stage="load", event="LEDGER_LOAD", status="ok", rows_out=len(ledger))

    if command == "sync":
        ledger, health = run_sync(bundle, ledger, logger, run_id)
        save_ledger(ledger_path, ledger)
    elif command == "stats":
        health = run_offline_stats(ledger)
    else:
        raise ValueError(f"Unknown command: {command}")

    if dropped:
        health.add_reason(REASON_LEDGER_ROWS_DROPPED)
        log_event(
            logger,
            f"dropped {dropped} unreadable ledger rows",
            level=logging.WARNING,
            run_id=run_id,
            stage="load",
            event="LEDGER_ROWS_DROPPED",
            status="degraded",
            rows_in=dropped,
        )

    payload = build_stats_payload(
        ledger,
        health,
        run_id=run_id,
        sources=enabled_sources(bundle),
        window_days=stats_cfg["window_days"],
        decay=float(stats_cfg["decay"]),
    )
    write_stats(stats_path, payload)
    log_event(logger, "statistics written", run_id=run_id, stage="stats", event="STATS_WRITE", status=health.status, rows_out=len(ledger))
    return health


def run_command(args: argparse.Namespace) -> int:
    run_id = args.run_id or generate_run_id()
    data_dir = Path(args.data_dir)
    config_dir = Path(args.config_dir)
    overlay_config_dir = Path(args.overlay_config_dir) if args.overlay_config_dir else None

    logger = build_logger(run_id, data_dir=data_dir, level=args.log_level)
    try:
        bundle = load_all_configs(config_dir, overlay_config_dir=overlay_config_dir)
        log_event(logger, "run start", run_id=run_id, stage=args.command, event="RUN_START", status="ok")
        health = execute(args.command, bundle, data_dir, logger, run_id)
        # Degraded runs still wrote a ledger and statistics, so they exit 0.
        log_event(logger, "run end", run_id=run_id, stage=args.command, event="RUN_END", status=health.status)
        return EXIT_SUCCESS
    except PipelineError as exc:
        log_event(
            logger,
            f"run failed: {exc}",
            level=logging.ERROR,
            run_id=run_id,
            stage=args.command,
            event="RUN_FAIL",
            status="error",
            error_code=exc.error_code,
        )
        return EXIT_HARD_FAIL
    except Exception:
        logger.exception(
            "unexpected failure",
            extra={"run_id": run_id, "stage": args.command, "event": "RUN_FAIL", "status": "error", "error_code": "UNEXPECTED_ERROR"},
        )
        return EXIT_HARD_FAIL
    finally:
        close_logger(logger)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    return run_command(args)


if __name__ == "__main__":
    raise SystemExit(main())
