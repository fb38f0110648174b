"""Majority agreement across independently fetched draws."""

from __future__ import annotations

from collections import defaultdict
from typing import Sequence

from lotto_ledger.common.models import ConsensusOutcome, DrawRecord, SourceResult

MIN_AGREEING_SOURCES = 2


def record_signature(record: DrawRecord) -> str:
    numbers = "-".join(str(n) for n in record.numbers)
    return f"{record.draw_no}|{numbers}|{record.bonus}|{record.date}"


def resolve_signature(results: Sequence[SourceResult[DrawRecord]]) -> ConsensusOutcome | None:
    """Pick the record most sources agree on byte for byte.

    Support counts distinct sources. Equal support keeps the signature that
    was seen first, so callers control tie-breaks through input order.
    """
    supporters: dict[str, list[str]] = {}
    records: dict[str, DrawRecord] = {}
    for result in results:
        signature = record_signature(result.value)
        if signature not in supporters:
            supporters[signature] = []
            records[signature] = result.value
        if result.source not in supporters[signature]:
            supporters[signature].append(result.source)

    if not supporters:
        return None

    winner = None
    for signature, names in supporters.items():
        if winner is None or len(names) > len(supporters[winner]):
            winner = signature

    record = records[winner]
    return ConsensusOutcome(
        draw_no=record.draw_no,
        signature=winner,
        record=record,
        support=len(supporters[winner]),
        sources=tuple(supporters[winner]),
        candidates=len(supporters),
    )


def resolve_latest(results: Sequence[SourceResult[DrawRecord]]) -> ConsensusOutcome | None:
    """Choose the newest draw at least two sources know about, then its majority value.

    Falls back to the newest draw any source reported when no draw number
    reaches the threshold; the outcome is then not agreed.
    """
    by_draw: dict[int, list[SourceResult[DrawRecord]]] = defaultdict(list)
    for result in results:
        by_draw[result.value.draw_no].append(result)

    if not by_draw:
        return None

    shared = [
        draw_no
        for draw_no, group in by_draw.items()
        if len({result.source for result in group}) >= MIN_AGREEING_SOURCES
    ]
    target = max(shared) if shared else max(by_draw)
    return resolve_signature(by_draw[target])
