"""Data models used across the pipeline."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Generic, TypeVar

from lotto_ledger.common.constants import STATUS_DEGRADED, STATUS_NOMINAL

T = TypeVar("T")


@dataclass(frozen=True)
class DrawRecord:
    draw_no: int
    date: str
    numbers: tuple[int, ...]
    bonus: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "draw_no": self.draw_no,
            "date": self.date,
            "numbers": list(self.numbers),
            "bonus": self.bonus,
        }


@dataclass(frozen=True)
class SourceResult(Generic[T]):
    source: str
    value: T


@dataclass(frozen=True)
class ConsensusOutcome:
    draw_no: int
    signature: str
    record: DrawRecord
    support: int
    sources: tuple[str, ...]
    candidates: int

    @property
    def agreed(self) -> bool:
        return self.support >= 2

    def to_dict(self) -> dict[str, Any]:
        return {
            "draw_no": self.draw_no,
            "signature": self.signature,
            "support": self.support,
            "sources": list(self.sources),
            "candidates": self.candidates,
            "agreed": self.agreed,
        }


@dataclass
class TailValidation:
    attempted: int = 0
    validated: int = 0
    skipped: int = 0
    patched: int = 0
    mismatched: int = 0
    patched_draws: list[int] = field(default_factory=list)


@dataclass
class HealthReport:
    """Run-scoped accumulator of everything an operator needs to judge a run."""

    status: str = STATUS_NOMINAL
    reasons: list[str] = field(default_factory=list)
    mode: str | None = None
    bootstrap_source: str | None = None
    target_draw_no: int | None = None
    consensus: dict[str, Any] | None = None
    source_errors: dict[str, list[str]] = field(default_factory=dict)
    tail_validation: TailValidation = field(default_factory=TailValidation)
    gap: list[int] = field(default_factory=list)
    gap_count: int = 0

    def add_reason(self, code: str, *, degrade: bool = True) -> None:
        if code not in self.reasons:
            self.reasons.append(code)
        if degrade:
            self.status = STATUS_DEGRADED

    def record_source_error(self, source: str, operation: str, exc: BaseException) -> None:
        error_code = getattr(exc, "error_code", type(exc).__name__)
        self.source_errors.setdefault(source, []).append(f"{operation}:{error_code}")

    @property
    def degraded(self) -> bool:
        return self.status == STATUS_DEGRADED

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
