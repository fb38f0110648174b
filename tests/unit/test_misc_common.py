from pathlib import Path

from lotto_ledger.common.fs import read_json, write_json
from lotto_ledger.common.ids import generate_run_id
from lotto_ledger.common.models import HealthReport
from lotto_ledger.common.errors import InvalidPayloadError
from lotto_ledger.common.time_utils import days_before, utc_timestamp_iso


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")


def test_days_before_crosses_leap_day():
    assert days_before("2024-03-01", 1) == "2024-02-29"
    assert days_before("2024-03-02", 30) == "2024-02-01"


def test_utc_timestamp_is_iso_with_offset():
    assert utc_timestamp_iso().endswith("+00:00")


def test_write_json_replaces_atomically_and_leaves_no_temp_files(tmp_path: Path):
    path = tmp_path / "nested" / "doc.json"
    write_json(path, {"b": 1, "a": [1, 2]})
    write_json(path, {"c": 3})

    assert read_json(path) == {"c": 3}
    assert [p.name for p in path.parent.iterdir()] == ["doc.json"]


def test_health_report_reasons_are_ordered_and_unique():
    health = HealthReport()
    health.add_reason("TAIL_PATCHED", degrade=False)
    assert health.status == "nominal"

    health.add_reason("BEHIND_TARGET")
    health.add_reason("TAIL_PATCHED", degrade=False)

    assert health.status == "degraded"
    assert health.reasons == ["TAIL_PATCHED", "BEHIND_TARGET"]


def test_health_report_records_error_codes_per_source():
    health = HealthReport()
    health.record_source_error("mirror", "fetch_one", InvalidPayloadError("bad"))
    health.record_source_error("mirror", "fetch_latest", RuntimeError("boom"))

    assert health.source_errors == {"mirror": ["fetch_one:INVALID_PAYLOAD", "fetch_latest:RuntimeError"]}
    assert health.to_dict()["tail_validation"]["attempted"] == 0
