import pytest

from lotto_ledger.common.models import DrawRecord
from lotto_ledger.pipeline.stats import aggregate, count_numbers, weighted_counts


def _draw(draw_no: int, date: str, numbers, bonus: int) -> DrawRecord:
    return DrawRecord(draw_no=draw_no, date=date, numbers=tuple(sorted(numbers)), bonus=bonus)


def test_aggregate_empty_ledger_is_all_zero_with_null_bounds():
    stats = aggregate([])

    assert set(stats["overall"]["main"]) == set(range(1, 46))
    assert all(v == 0 for v in stats["overall"]["main"].values())
    assert all(v == 0 for v in stats["overall"]["bonus"].values())
    for days in ("30", "60", "90"):
        window = stats["recent"][days]
        assert window["from"] is None
        assert window["to"] is None
        assert window["draw_count"] == 0
        assert all(v == 0 for v in window["main"].values())
        assert all(v == 0.0 for v in window["weighted"]["main"].values())


def test_overall_main_frequency_counts_occurrences():
    draws = [
        _draw(n, f"2024-01-{n:02d}", [7, 10 + n, 20 + n, 30 + n, 40, 1 + n], bonus=45)
        for n in range(1, 6)
    ]
    draws += [_draw(6, "2024-01-06", [1, 2, 3, 4, 5, 6], bonus=7)]

    stats = aggregate(draws)

    assert stats["overall"]["main"][7] == 5
    assert stats["overall"]["main"][40] == 5
    assert stats["overall"]["bonus"][45] == 5
    assert stats["overall"]["bonus"][7] == 1


def test_windows_count_calendar_days_back_from_latest_draw():
    draws = [
        _draw(1, "2024-01-01", [1, 2, 3, 4, 5, 6], bonus=7),
        _draw(2, "2024-02-10", [1, 2, 3, 4, 5, 8], bonus=9),
        _draw(3, "2024-03-02", [1, 2, 3, 4, 5, 10], bonus=11),
    ]

    stats = aggregate(draws, window_days=(30, 60, 90))

    thirty = stats["recent"]["30"]
    assert thirty["draw_count"] == 2
    assert thirty["from"] == "2024-02-10"
    assert thirty["to"] == "2024-03-02"
    assert thirty["main"][6] == 0
    assert thirty["main"][1] == 2

    assert stats["recent"]["60"]["draw_count"] == 2
    assert stats["recent"]["90"]["draw_count"] == 3
    assert stats["recent"]["90"]["from"] == "2024-01-01"


def test_window_cutoff_is_inclusive():
    draws = [
        _draw(1, "2024-01-01", [1, 2, 3, 4, 5, 6], bonus=7),
        _draw(2, "2024-01-31", [1, 2, 3, 4, 5, 8], bonus=9),
    ]

    assert aggregate(draws, window_days=(30,))["recent"]["30"]["draw_count"] == 2


def test_weighted_counts_decay_newest_first():
    draws = [
        _draw(1, "2024-01-01", [1, 2, 3, 4, 5, 6], bonus=7),
        _draw(2, "2024-01-08", [1, 2, 3, 4, 5, 8], bonus=7),
        _draw(3, "2024-01-15", [1, 2, 3, 4, 5, 10], bonus=9),
    ]

    weighted = weighted_counts(draws, decay=0.5)

    assert weighted["decay"] == 0.5
    assert weighted["main"][10] == pytest.approx(1.0)
    assert weighted["main"][8] == pytest.approx(0.5)
    assert weighted["main"][6] == pytest.approx(0.25)
    assert weighted["main"][1] == pytest.approx(1.75)
    assert weighted["bonus"][7] == pytest.approx(0.75)


def test_count_numbers_ignores_nothing_in_range():
    counts = count_numbers([_draw(1, "2024-01-01", [1, 2, 3, 4, 5, 45], bonus=45)])
    assert counts["main"][45] == 1
    assert counts["bonus"][45] == 1
    assert sum(counts["main"].values()) == 6
