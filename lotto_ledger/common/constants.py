"""Application constants."""

USER_AGENT = "lotto-ledger/1.0 (+draw-mirror-sync; contact: configured-email)"
COMMANDS = (
    "sync",
    "stats",
)
EXIT_SUCCESS = 0
EXIT_HARD_FAIL = 20

NUMBER_MIN = 1
NUMBER_MAX = 45
MAIN_NUMBER_COUNT = 6
STATS_SCHEMA_VERSION = 2

STATUS_NOMINAL = "nominal"
STATUS_DEGRADED = "degraded"

MODE_BOOTSTRAP = "bootstrap"
MODE_INCREMENTAL = "incremental"
MODE_LOCAL_ONLY = "local-only"
MODE_OFFLINE = "offline"

DEFAULT_FIELD_CANDIDATES = {
    "draw_no": ["draw_no", "drwNo", "drawNo", "round"],
    "date": ["date", "drwNoDate", "draw_date"],
    "numbers": ["numbers", "nums", "winning_numbers"],
    "number_fields": ["drwtNo1", "drwtNo2", "drwtNo3", "drwtNo4", "drwtNo5", "drwtNo6"],
    "bonus": ["bonus", "bnusNo", "bonus_no"],
}

JSON_LOG_FIELDS = (
    "timestamp",
    "run_id",
    "stage",
    "source",
    "event",
    "status",
    "attempt",
    "draw_no",
    "duration_ms",
    "rows_in",
    "rows_out",
    "error_code",
    "message",
)
