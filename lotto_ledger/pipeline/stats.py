"""Number frequency statistics over the ledger.

Recency windows are calendar windows counted back from the date of the
latest draw in the ledger (not the wall clock), so re-running on the same
ledger gives the same numbers. A draw belongs to an N-day window when its
date is on or after ``latest_date - N days``.

Each window also carries a decay-weighted variant: draws are ordered newest
first and the k-th newest (k starting at 0) contributes ``decay ** k``.
"""

from __future__ import annotations

from typing import Iterable, Sequence

from lotto_ledger.common.constants import NUMBER_MAX, NUMBER_MIN
from lotto_ledger.common.models import DrawRecord
from lotto_ledger.common.time_utils import days_before

DEFAULT_WINDOW_DAYS = (30, 60, 90)
DEFAULT_DECAY = 0.9
WEIGHT_DIGITS = 6


def init_counter(zero: float | int = 0) -> dict[int, float | int]:
    return {n: zero for n in range(NUMBER_MIN, NUMBER_MAX + 1)}


def _add(counter: dict, number: int, weight: float | int = 1) -> None:
    if number in counter:
        counter[number] += weight


def count_numbers(draws: Iterable[DrawRecord]) -> dict[str, dict[int, int]]:
    main = init_counter()
    bonus = init_counter()
    for draw in draws:
        for number in draw.numbers:
            _add(main, number)
        _add(bonus, draw.bonus)
    return {"main": main, "bonus": bonus}


def weighted_counts(draws: Sequence[DrawRecord], decay: float) -> dict[str, object]:
    main = init_counter(0.0)
    bonus = init_counter(0.0)
    newest_first = sorted(draws, key=lambda draw: draw.draw_no, reverse=True)
    for k, draw in enumerate(newest_first):
        weight = decay**k
        for number in draw.numbers:
            _add(main, number, weight)
        _add(bonus, draw.bonus, weight)
    return {
        "decay": decay,
        "main": {n: round(v, WEIGHT_DIGITS) for n, v in main.items()},
        "bonus": {n: round(v, WEIGHT_DIGITS) for n, v in bonus.items()},
    }


def window_stats(draws: Sequence[DrawRecord], days: int, reference_date: str | None, decay: float) -> dict:
    if reference_date is None:
        in_window: list[DrawRecord] = []
    else:
        cutoff = days_before(reference_date, days)
        in_window = [draw for draw in draws if draw.date >= cutoff]

    counts = count_numbers(in_window)
    return {
        "days": days,
        "from": min((draw.date for draw in in_window), default=None),
        "to": max((draw.date for draw in in_window), default=None),
        "draw_count": len(in_window),
        "main": counts["main"],
        "bonus": counts["bonus"],
        "weighted": weighted_counts(in_window, decay),
    }


def aggregate(
    draws: Iterable[DrawRecord],
    *,
    window_days: Sequence[int] = DEFAULT_WINDOW_DAYS,
    decay: float = DEFAULT_DECAY,
) -> dict:
    ordered = sorted(draws, key=lambda draw: draw.draw_no)
    reference_date = ordered[-1].date if ordered else None

    return {
        "overall": count_numbers(ordered),
        "recent": {
            str(days): window_stats(ordered, days, reference_date, decay)
            for days in window_days
        },
    }
