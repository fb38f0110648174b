"""Lotto 6/45 draw normalisation and validation.

Mirrors name their fields differently and disagree on date formats, so each
canonical field is looked up through an ordered list of candidate keys.
Anything that cannot be turned into a well-formed draw yields ``None``.
"""

from __future__ import annotations

import math
import re
from datetime import date
from typing import Any, Mapping

from lotto_ledger.common.constants import DEFAULT_FIELD_CANDIDATES, MAIN_NUMBER_COUNT, NUMBER_MAX, NUMBER_MIN
from lotto_ledger.common.models import DrawRecord

_ISO_DAY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def _lookup_first(payload: Mapping[str, Any], candidates: list[str]) -> object | None:
    for key in candidates:
        if key in payload and payload[key] not in (None, ""):
            return payload[key]
    return None


def _as_int(value: object) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def _in_range(value: int) -> bool:
    return NUMBER_MIN <= value <= NUMBER_MAX


def normalise_day(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    day = value.strip()[:10]
    if not _ISO_DAY_RE.match(day):
        return None
    try:
        return date.fromisoformat(day).isoformat()
    except ValueError:
        return None


def _main_numbers(payload: Mapping[str, Any], fields: Mapping[str, list[str]]) -> list[object] | None:
    listed = _lookup_first(payload, fields.get("numbers", []))
    if listed is not None:
        if isinstance(listed, (str, bytes)) or not isinstance(listed, (list, tuple)):
            return None
        return list(listed)

    split_fields = fields.get("number_fields", [])
    if not split_fields:
        return None
    return [payload.get(key) for key in split_fields]


def resolve_fields(overrides: Mapping[str, list[str]] | None = None) -> dict[str, list[str]]:
    fields = {key: list(value) for key, value in DEFAULT_FIELD_CANDIDATES.items()}
    if overrides:
        for key, value in overrides.items():
            fields[key] = list(value)
    return fields


def normalise_draw(
    raw: object,
    fields: Mapping[str, list[str]] | None = None,
    *,
    require: Mapping[str, object] | None = None,
) -> DrawRecord | None:
    if not isinstance(raw, Mapping):
        return None
    fields = fields or DEFAULT_FIELD_CANDIDATES

    for key, expected in (require or {}).items():
        if raw.get(key) != expected:
            return None

    draw_no = _as_int(_lookup_first(raw, fields.get("draw_no", [])))
    if draw_no is None or draw_no < 1:
        return None

    raw_numbers = _main_numbers(raw, fields)
    if raw_numbers is None or len(raw_numbers) != MAIN_NUMBER_COUNT:
        return None
    numbers = [_as_int(value) for value in raw_numbers]
    if any(value is None or not _in_range(value) for value in numbers):
        return None
    if len(set(numbers)) != MAIN_NUMBER_COUNT:
        return None

    day = normalise_day(_lookup_first(raw, fields.get("date", [])))
    if day is None:
        return None

    bonus = _as_int(_lookup_first(raw, fields.get("bonus", [])))
    if bonus is None or not _in_range(bonus):
        return None

    return DrawRecord(draw_no=draw_no, date=day, numbers=tuple(sorted(numbers)), bonus=bonus)
