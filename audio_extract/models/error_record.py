from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Supports row=-1 as a sentinel for file-level problems (parse errors) where no
single data row can be blamed.
"""

__all__ = [
    "ErrorRecord",
    "PARSE_ERROR",
    "PAYLOAD_DECODE_ERROR",
    "DUPLICATE_ROW_KEY",
    "FILENAME_COLLISION",
]

# error_type values written to the log
PARSE_ERROR = "PARSE_ERROR"
PAYLOAD_DECODE_ERROR = "PAYLOAD_DECODE_ERROR"
DUPLICATE_ROW_KEY = "DUPLICATE_ROW_KEY"
FILENAME_COLLISION = "FILENAME_COLLISION"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: CSV filename being processed
        row: Data row number (1-based). -1 for file-level errors
        column: Column (question) involved, "" when not applicable
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Human-readable description
    """
    timestamp: str  # ISO8601 UTC
    file: str
    row: int  # 行番号。不明な場合 -1 許容
    column: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(file: str, row: int, column: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            column=column,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
