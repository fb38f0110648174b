"""Minimal strict schemas for YAML config validation."""

from __future__ import annotations

from lotto_ledger.common.errors import ConfigError

SOURCE_ENDPOINTS = {"all", "latest", "one"}
FIELD_KEYS = {"draw_no", "date", "numbers", "number_fields", "bonus"}


def _assert_mapping(obj: object, ctx: str) -> dict:
    if not isinstance(obj, dict):
        raise ConfigError(f"{ctx} must be a mapping")
    return obj


def _assert_required_keys(obj: dict, required: set[str], ctx: str) -> None:
    missing = required - set(obj)
    if missing:
        missing_str = ", ".join(sorted(missing))
        raise ConfigError(f"Missing keys in {ctx}: {missing_str}")


def _assert_no_unknown_keys(obj: dict, known: set[str], ctx: str, allow_unknown: bool) -> None:
    if allow_unknown:
        return
    unknown = set(obj) - known
    if unknown:
        unknown_str = ", ".join(sorted(unknown))
        raise ConfigError(f"Unknown keys in {ctx}: {unknown_str}")


def _assert_positive_number(value: object, ctx: str) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigError(f"{ctx} must be a positive number")


def _validate_source(source: object, idx: int, allow_unknown: bool) -> dict:
    ctx = f"sources[{idx}]"
    source = _assert_mapping(source, ctx)
    _assert_required_keys(source, {"name", "endpoints"}, ctx)
    _assert_no_unknown_keys(
        source,
        {"name", "enabled", "endpoints", "bulk_items_key", "require", "fields", "rate_per_sec"},
        ctx,
        allow_unknown,
    )

    endpoints = _assert_mapping(source["endpoints"], f"{ctx}.endpoints")
    _assert_no_unknown_keys(endpoints, SOURCE_ENDPOINTS, f"{ctx}.endpoints", allow_unknown=False)
    if not endpoints:
        raise ConfigError(f"{ctx}.endpoints must configure at least one of: all, latest, one")
    if "one" in endpoints and "{draw_no}" not in str(endpoints["one"]):
        raise ConfigError(f"{ctx}.endpoints.one must contain a {{draw_no}} placeholder")

    fields = _assert_mapping(source.get("fields") or {}, f"{ctx}.fields")
    _assert_no_unknown_keys(fields, FIELD_KEYS, f"{ctx}.fields", allow_unknown=False)
    for key, candidates in fields.items():
        if not isinstance(candidates, list) or not all(isinstance(c, str) for c in candidates):
            raise ConfigError(f"{ctx}.fields.{key} must be a list of strings")

    if "rate_per_sec" in source:
        _assert_positive_number(source["rate_per_sec"], f"{ctx}.rate_per_sec")
    return source


def validate_sources_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "sources config")
    _assert_required_keys(cfg, {"sources"}, "sources config")
    _assert_no_unknown_keys(cfg, {"sources"}, "sources config", allow_unknown)

    sources = cfg["sources"]
    if not isinstance(sources, list) or not sources:
        raise ConfigError("sources must be a non-empty list")

    names: list[str] = []
    for idx, source in enumerate(sources):
        names.append(_validate_source(source, idx, allow_unknown)["name"])

    dupes = {name for name in names if names.count(name) > 1}
    if dupes:
        raise ConfigError(f"Duplicate source names: {', '.join(sorted(dupes))}")

    return cfg


def validate_sync_config(cfg: dict, *, allow_unknown: bool = False) -> dict:
    cfg = _assert_mapping(cfg, "sync config")
    top_required = {"sync", "http", "stats", "output"}
    _assert_required_keys(cfg, top_required, "sync config")
    _assert_no_unknown_keys(cfg, top_required, "sync config", allow_unknown)

    _assert_required_keys(
        _assert_mapping(cfg["sync"], "sync"),
        {"bootstrap_threshold", "tail_window", "max_workers"},
        "sync",
    )
    for key in ("bootstrap_threshold", "tail_window", "max_workers"):
        _assert_positive_number(cfg["sync"][key], f"sync.{key}")

    http = _assert_mapping(cfg["http"], "http")
    _assert_required_keys(http, {"timeout", "retry"}, "http")
    _assert_required_keys(_assert_mapping(http["timeout"], "http.timeout"), {"connect", "read"}, "http.timeout")
    _assert_required_keys(_assert_mapping(http["retry"], "http.retry"), {"max_attempts"}, "http.retry")

    stats = _assert_mapping(cfg["stats"], "stats")
    _assert_required_keys(stats, {"window_days", "decay"}, "stats")
    windows = stats["window_days"]
    if not isinstance(windows, list) or not windows:
        raise ConfigError("stats.window_days must be a non-empty list")
    for days in windows:
        if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
            raise ConfigError("stats.window_days entries must be positive integers")
    decay = stats["decay"]
    if isinstance(decay, bool) or not isinstance(decay, (int, float)) or not 0 < decay < 1:
        raise ConfigError("stats.decay must be within (0, 1)")

    _assert_required_keys(
        _assert_mapping(cfg["output"], "output"),
        {"ledger_filename", "stats_filename"},
        "output",
    )
    return cfg
