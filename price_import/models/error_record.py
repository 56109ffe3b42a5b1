from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

One record per failed file. The record layout is fixed (see
``price_import/logging/error_log_schema.json``); no extra keys are written.
"""

__all__ = [
    "ErrorRecord",
    "STAGE_READ",
    "STAGE_ANALYZE",
    "STAGE_MERGE",
]

STAGE_READ = "read"
STAGE_ANALYZE = "analyze"
STAGE_MERGE = "merge"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: supplier file name being imported
        stage: pipeline stage that failed (read | analyze | merge)
        error_type: error classification in UPPER_SNAKE_CASE format
        message: human-readable error description
    """
    timestamp: str
    file: str
    stage: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, stage: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            stage=stage,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
