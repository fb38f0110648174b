from lotto_ledger.common.models import DrawRecord, SourceResult
from lotto_ledger.pipeline.consensus import record_signature, resolve_latest, resolve_signature


def _draw(draw_no: int, numbers=(1, 2, 3, 4, 5, 6), bonus: int = 7, date: str = "2024-01-06") -> DrawRecord:
    return DrawRecord(draw_no=draw_no, date=date, numbers=tuple(numbers), bonus=bonus)


def test_record_signature_is_exact():
    assert record_signature(_draw(101)) == "101|1-2-3-4-5-6|7|2024-01-06"
    assert record_signature(_draw(101)) != record_signature(_draw(101, bonus=8))


def test_three_identical_records_agree_with_full_support():
    results = [SourceResult(source=name, value=_draw(101)) for name in ("a", "b", "c")]

    outcome = resolve_signature(results)

    assert outcome.agreed is True
    assert outcome.support == 3
    assert outcome.sources == ("a", "b", "c")
    assert outcome.candidates == 1


def test_two_of_three_majority_wins():
    majority = _draw(101)
    results = [
        SourceResult(source="a", value=_draw(101, bonus=9)),
        SourceResult(source="b", value=majority),
        SourceResult(source="c", value=majority),
    ]

    outcome = resolve_signature(results)

    assert outcome.record == majority
    assert outcome.support == 2
    assert outcome.agreed is True
    assert outcome.candidates == 2


def test_all_distinct_takes_first_seen_and_is_not_agreed():
    first = _draw(101, bonus=8)
    results = [
        SourceResult(source="a", value=first),
        SourceResult(source="b", value=_draw(101, bonus=9)),
        SourceResult(source="c", value=_draw(101, bonus=10)),
    ]

    outcome = resolve_signature(results)

    assert outcome.record == first
    assert outcome.support == 1
    assert outcome.agreed is False


def test_repeated_source_counts_once():
    results = [
        SourceResult(source="a", value=_draw(101)),
        SourceResult(source="a", value=_draw(101)),
        SourceResult(source="b", value=_draw(101, bonus=9)),
    ]

    outcome = resolve_signature(results)

    assert outcome.support == 1
    assert outcome.agreed is False
    assert outcome.record.bonus == 7


def test_resolve_signature_empty_input():
    assert resolve_signature([]) is None
    assert resolve_latest([]) is None


def test_resolve_latest_prefers_highest_shared_draw_number():
    results = [
        SourceResult(source="a", value=_draw(102)),
        SourceResult(source="b", value=_draw(101)),
        SourceResult(source="c", value=_draw(101)),
    ]

    outcome = resolve_latest(results)

    assert outcome.draw_no == 101
    assert outcome.agreed is True


def test_resolve_latest_falls_back_to_highest_seen():
    results = [
        SourceResult(source="a", value=_draw(100)),
        SourceResult(source="b", value=_draw(102)),
    ]

    outcome = resolve_latest(results)

    assert outcome.draw_no == 102
    assert outcome.support == 1
    assert outcome.agreed is False


def test_resolve_latest_shared_number_with_split_values_is_not_agreed():
    results = [
        SourceResult(source="a", value=_draw(101, bonus=8)),
        SourceResult(source="b", value=_draw(101, bonus=9)),
    ]

    outcome = resolve_latest(results)

    assert outcome.draw_no == 101
    assert outcome.record.bonus == 8
    assert outcome.agreed is False
