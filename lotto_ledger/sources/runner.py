"""Fail-soft fan-out across draw sources."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, Generic, Sequence, TypeVar

from lotto_ledger.common.models import SourceResult
from lotto_ledger.sources.http_source import DrawSource

T = TypeVar("T")


@dataclass
class FanOutResult(Generic[T]):
    results: list[SourceResult[T]] = field(default_factory=list)
    failures: dict[str, Exception] = field(default_factory=dict)


def fan_out(
    sources: Sequence[DrawSource],
    call: Callable[[DrawSource], T],
    *,
    max_workers: int = 8,
) -> FanOutResult[T]:
    """Run ``call`` against every source concurrently.

    One source raising never affects the others. Results keep source priority
    order so that ties downstream break the same way on every run.
    """
    outcome: FanOutResult[T] = FanOutResult()
    if not sources:
        return outcome

    order = {source.name: idx for idx, source in enumerate(sources)}
    collected: list[SourceResult[T]] = []
    workers = max(1, min(max_workers, len(sources)))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="draw-source") as pool:
        futures = {pool.submit(call, source): source for source in sources}
        for future in as_completed(futures):
            source = futures[future]
            try:
                collected.append(SourceResult(source=source.name, value=future.result()))
            except Exception as exc:
                outcome.failures[source.name] = exc

    outcome.results = sorted(collected, key=lambda result: order[result.source])
    return outcome


def first_success(
    sources: Sequence[DrawSource],
    call: Callable[[DrawSource], T],
) -> tuple[SourceResult[T] | None, dict[str, Exception]]:
    """Try sources one after another in priority order; the first answer wins."""
    failures: dict[str, Exception] = {}
    for source in sources:
        try:
            return SourceResult(source=source.name, value=call(source)), failures
        except Exception as exc:
            failures[source.name] = exc
    return None, failures
