from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path

from ..csvio.reader import TableData, parse_csv_text, read_csv_file
from ..errors import ParseError
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ExtractConfig
from ..models.error_record import PARSE_ERROR, ErrorRecord
from ..models.processing_result import PipelineResult, PipelineStatus
from ..models.row_bundle import GroupedHierarchy
from .classifier import classify_audio_columns
from .grouping import group_rows

"""Pipeline orchestration: parse -> classify -> group.

Each stage returns a value that the next one consumes; nothing is held in
module state. Outcomes:
- ParseError is recorded (PARSE_ERROR, row=-1) and re-raised
- zero data rows        -> PipelineStatus.EMPTY, empty hierarchy
- no audio column       -> PipelineStatus.NO_AUDIO, grouping skipped
- otherwise             -> PipelineStatus.COMPLETE
"""

__all__ = [
    "run_pipeline",
    "process_text",
    "process_file",
]

logger = logging.getLogger(__name__)


def run_pipeline(
    table: TableData,
    config: ExtractConfig | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "",
    start_time: datetime | None = None,
) -> PipelineResult:
    """Classify and group an already parsed table."""
    config = config or ExtractConfig()
    start = start_time or datetime.now(UTC)

    def _result(status: PipelineStatus, audio_columns: tuple[str, ...], hierarchy: GroupedHierarchy) -> PipelineResult:
        logger.debug("status=%s rows=%d audio_columns=%s", status.value, len(table.rows), list(audio_columns))
        return PipelineResult(
            status=status,
            columns=list(table.columns),
            row_count=len(table.rows),
            audio_columns=audio_columns,
            hierarchy=hierarchy,
            start_time=start,
            end_time=datetime.now(UTC),
        )

    if table.is_empty:
        return _result(PipelineStatus.EMPTY, (), GroupedHierarchy())

    audio_columns = classify_audio_columns(table, config.known_audio_questions)
    if not audio_columns:
        return _result(PipelineStatus.NO_AUDIO, (), GroupedHierarchy())

    hierarchy = group_rows(
        table,
        audio_columns,
        respondent_columns=config.respondent_columns,
        row_id_column=config.row_id_column,
        error_log=error_log,
        file_name=file_name,
    )
    if hierarchy.duplicate_rows:
        logger.warning("%d input rows merged into existing bundles", hierarchy.duplicate_rows)
    return _result(PipelineStatus.COMPLETE, audio_columns, hierarchy)


def _record_parse_error(error_log: ErrorLogBuffer | None, file_name: str, e: ParseError) -> None:
    if error_log is not None:
        error_log.append(
            ErrorRecord.create(file=file_name, row=-1, column="", error_type=PARSE_ERROR, message=str(e))
        )


def process_text(
    text: str,
    config: ExtractConfig | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<text>",
) -> PipelineResult:
    """Run the whole pipeline on CSV text.

    Raises:
        ParseError: malformed CSV (nothing is grouped)
    """
    config = config or ExtractConfig()
    start = datetime.now(UTC)
    try:
        table = parse_csv_text(text, dynamic_typing=config.dynamic_typing)
    except ParseError as e:
        _record_parse_error(error_log, file_name, e)
        raise
    return run_pipeline(table, config, error_log=error_log, file_name=file_name, start_time=start)


def process_file(
    path: Path,
    config: ExtractConfig | None = None,
    *,
    error_log: ErrorLogBuffer | None = None,
) -> PipelineResult:
    """Run the whole pipeline on a UTF-8 CSV file.

    Raises:
        ParseError: malformed CSV or non UTF-8 content
        OSError: the file cannot be read
    """
    config = config or ExtractConfig()
    start = datetime.now(UTC)
    try:
        table = read_csv_file(path, dynamic_typing=config.dynamic_typing)
    except ParseError as e:
        _record_parse_error(error_log, path.name, e)
        raise
    return run_pipeline(table, config, error_log=error_log, file_name=path.name, start_time=start)
