"""Persisted draw ledger: keyed merge plus file round-trip."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, Mapping

from lotto_ledger.common.draw import normalise_draw
from lotto_ledger.common.errors import LedgerError
from lotto_ledger.common.fs import read_json, write_json
from lotto_ledger.common.models import DrawRecord

Ledger = dict[int, DrawRecord]


def merge_records(current: Mapping[int, DrawRecord], incoming: Iterable[DrawRecord]) -> Ledger:
    """Return a new ledger where incoming records replace same-numbered current ones.

    Draw numbers only ever get added or overwritten, never dropped.
    """
    merged = dict(current)
    for record in incoming:
        merged[record.draw_no] = record
    return {draw_no: merged[draw_no] for draw_no in sorted(merged)}


def highest_draw_no(ledger: Mapping[int, DrawRecord]) -> int:
    return max(ledger) if ledger else 0


def missing_draw_numbers(ledger: Mapping[int, DrawRecord]) -> list[int]:
    top = highest_draw_no(ledger)
    return [draw_no for draw_no in range(1, top + 1) if draw_no not in ledger]


def ledger_from_rows(rows: Iterable[object]) -> tuple[Ledger, int]:
    records = []
    invalid = 0
    for row in rows:
        record = normalise_draw(row)
        if record is None:
            invalid += 1
            continue
        records.append(record)
    return merge_records({}, records), invalid


def load_ledger(path: Path) -> tuple[Ledger, int]:
    """Read the ledger file, returning the ledger and the count of dropped rows.

    A missing file is an empty ledger. A file that exists but cannot be read
    raises so that the next save never overwrites it.
    """
    if not path.exists():
        return {}, 0
    try:
        payload = read_json(path)
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise LedgerError(f"Cannot read ledger file {path}: {exc}") from exc
    if not isinstance(payload, list):
        raise LedgerError(f"Ledger file {path} must hold a JSON list")
    return ledger_from_rows(payload)


def save_ledger(path: Path, ledger: Mapping[int, DrawRecord]) -> Path:
    write_json(path, [ledger[draw_no].to_dict() for draw_no in sorted(ledger)])
    return path


def latest_record(ledger: Mapping[int, DrawRecord]) -> DrawRecord | None:
    if not ledger:
        return None
    return ledger[highest_draw_no(ledger)]
