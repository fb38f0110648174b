"""Domain errors and failure typing."""


class PipelineError(Exception):
    """Base class for pipeline failures."""

    error_code = "PIPELINE_ERROR"


class ConfigError(PipelineError):
    """Raised for invalid or missing configuration."""

    error_code = "CONFIG_ERROR"


class ContractError(PipelineError):
    """Raised when strict output contracts are broken."""

    error_code = "CONTRACT_ERROR"


class LedgerError(ContractError):
    """Raised when the persisted ledger cannot be read back."""

    error_code = "LEDGER_ERROR"


class StageError(PipelineError):
    """Raised for recoverable failures inside one run step."""

    error_code = "STAGE_ERROR"


class SourceError(StageError):
    """Raised when a draw source cannot produce usable data for one call."""

    error_code = "SOURCE_ERROR"


class InvalidPayloadError(SourceError):
    """Raised when a payload parses but does not normalise to a draw."""

    error_code = "INVALID_PAYLOAD"


class UnsupportedOperationError(SourceError):
    """Raised when a source has no endpoint for the requested operation."""

    error_code = "UNSUPPORTED"


class FatalSyncError(PipelineError):
    """Raised when no source answered and there is no local ledger to fall back on."""

    error_code = "NO_DATA"
