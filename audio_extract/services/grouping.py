from __future__ import annotations

import logging
from collections.abc import Sequence
from types import MappingProxyType
from typing import Any

from ..csvio.reader import TableData, render_scalar
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import (
    DEFAULT_RESPONDENT_COLUMNS,
    DEFAULT_ROW_ID_COLUMN,
    UNKNOWN_RESPONDENT,
)
from ..models.error_record import DUPLICATE_ROW_KEY, ErrorRecord
from ..models.row_bundle import GroupedHierarchy, RowBundleBuilder, RowKey
from .payload import is_audio_payload, normalize_payload

"""Grouping engine: records -> respondent -> row -> RowBundle.

Rules:
- respondent id = first truthy value among the respondent columns, else "Unknown"
- row id = truthy value of the row id column, else "Row_<1-based index>"
- records sharing a RowKey merge: audio entries append, non-audio fields
  are overwritten (last write wins) and the merge is counted
- audio cells that do not contain "base64" are skipped (no recording)
"""

__all__ = [
    "render_key",
    "resolve_row_key",
    "group_rows",
]

logger = logging.getLogger(__name__)


def render_key(value: Any) -> str:
    """Render a scalar cell as a hierarchy key ("1" for 1, "true" for True, "0.00001" for 1e-05)."""
    return render_scalar(value)


def resolve_row_key(
    record: dict[str, Any],
    index: int,
    respondent_columns: Sequence[str] = DEFAULT_RESPONDENT_COLUMNS,
    row_id_column: str = DEFAULT_ROW_ID_COLUMN,
) -> RowKey:
    """Compute the RowKey of a record; ``index`` is the 1-based data row number."""
    respondent = UNKNOWN_RESPONDENT
    for column in respondent_columns:
        value = record.get(column)
        if value:
            respondent = render_key(value)
            break
    row_value = record.get(row_id_column)
    row_id = render_key(row_value) if row_value else f"Row_{index}"
    return RowKey(respondent_id=respondent, row_id=row_id)


def group_rows(
    table: TableData,
    audio_columns: Sequence[str],
    *,
    respondent_columns: Sequence[str] = DEFAULT_RESPONDENT_COLUMNS,
    row_id_column: str = DEFAULT_ROW_ID_COLUMN,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "",
) -> GroupedHierarchy:
    """Partition the table's records into a GroupedHierarchy.

    Args:
        table: parsed CSV
        audio_columns: ordered audio column set from the classifier
        respondent_columns: respondent id probe order
        row_id_column: column holding the row identifier
        error_log: optional buffer receiving DUPLICATE_ROW_KEY records
        file_name: source name used in error records

    Returns:
        Frozen hierarchy; respondents and rows keep first-seen order
    """
    audio_set = set(audio_columns)
    other_columns = [c for c in table.columns if c not in audio_set]
    builders: dict[str, dict[str, RowBundleBuilder]] = {}
    duplicates = 0

    for index, record in enumerate(table.rows, start=1):
        key = resolve_row_key(record, index, respondent_columns, row_id_column)
        rows = builders.setdefault(key.respondent_id, {})
        builder = rows.get(key.row_id)
        if builder is None:
            builder = rows[key.row_id] = RowBundleBuilder()
        else:
            duplicates += 1
            logger.debug(
                "row=%d merges into respondent=%s row_id=%s", index, key.respondent_id, key.row_id
            )
            if error_log is not None:
                error_log.append(
                    ErrorRecord.create(
                        file=file_name,
                        row=index,
                        column=row_id_column,
                        error_type=DUPLICATE_ROW_KEY,
                        message=f"respondent={key.respondent_id} row_id={key.row_id} merged into existing bundle",
                    )
                )
        builder.record_count += 1

        for question in audio_columns:
            value = record.get(question)
            if is_audio_payload(value):
                builder.add_audio(question, normalize_payload(value))

        for column in other_columns:
            builder.set_field(column, record.get(column))

    frozen = {
        respondent: MappingProxyType({row_id: b.freeze() for row_id, b in rows.items()})
        for respondent, rows in builders.items()
    }
    return GroupedHierarchy(respondents=MappingProxyType(frozen), duplicate_rows=duplicates)
