from __future__ import annotations

from collections import Counter
from datetime import UTC, datetime
from pathlib import Path

from ..models.error_record import ErrorRecord

"""Run-scoped error log for the extractor.

The pipeline and archive builder append records here as they find problems
in a survey export:
- PARSE_ERROR: the CSV could not be read (row=-1)
- DUPLICATE_ROW_KEY: a later row merged into an existing (respondent, row id) bundle
- PAYLOAD_DECODE_ERROR: an audio cell failed base64 decoding and the archive was aborted
- FILENAME_COLLISION: two bundles mapped to the same archive member path

Library calls only buffer. The CLI flushes once per run into
``<logs_dir>/errors-YYYYMMDD-HHMMSS.log`` (UTC, JSON Lines); a clean run
leaves no file behind.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """Problems found while extracting one survey file, held until flush().

    Args:
        logs_dir: directory for the log file (default ``./logs``, relative to the working dir)
    """

    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR

    @property
    def file_path(self) -> Path:
        # Named on first use so a run that never flushes never touches the disk
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def counts(self) -> dict[str, int]:
        """Buffered records per error_type, in first-seen order."""
        return dict(Counter(r.error_type for r in self._records))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Write buffered records as JSON Lines and clear the buffer.

        Repeated flushes in one run append to the same file.

        Returns:
            The log file path, or None when nothing was buffered
        """
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
