from __future__ import annotations

import io
import logging
import zipfile
from typing import Any

import pandas as pd

from ..csvio.reader import render_scalar
from ..errors import PayloadDecodeError
from ..logging.error_log import ErrorLogBuffer
from ..models.error_record import FILENAME_COLLISION, PAYLOAD_DECODE_ERROR, ErrorRecord
from ..models.processing_result import ArchiveResult, ArchiveVariant
from ..models.row_bundle import GroupedHierarchy
from .payload import decode_data_uri
from .progress import ProgressTracker

"""Archive assembler: GroupedHierarchy -> zip bytes.

Layout (consumers parse these names, keep them stable):

    <respondentId>/
      <rowId>/
        <question[:20]>_<index>.mp3
    Non_Audio_Responses.csv        (split variant only)

Member paths are built from raw ids, so ids containing "/" can make two
bundles map to the same path. The later file overwrites the earlier one and
the collision is counted. Member timestamps are fixed so identical input
yields identical bytes.
"""

__all__ = [
    "QUESTION_PREFIX_LENGTH",
    "RESPONSES_FILE_NAME",
    "audio_file_name",
    "build_aggregate_rows",
    "render_aggregate_csv",
    "build_archive",
]

logger = logging.getLogger(__name__)

QUESTION_PREFIX_LENGTH = 20
AUDIO_FILE_SUFFIX = ".mp3"
RESPONSES_FILE_NAME = "Non_Audio_Responses.csv"
USER_COLUMN = "User"
ROW_ID_COLUMN = "Row ID"
# 1980-01-01 is the earliest timestamp the zip format can store
FIXED_DATE_TIME = (1980, 1, 1, 0, 0, 0)


def audio_file_name(question: str, index: int) -> str:
    return f"{question[:QUESTION_PREFIX_LENGTH]}_{index}{AUDIO_FILE_SUFFIX}"


def build_aggregate_rows(hierarchy: GroupedHierarchy) -> tuple[list[str], list[dict[str, Any]]]:
    """One row per bundle: User, Row ID, then the bundle's non-audio fields.

    A non-audio field named "User" / "Row ID" replaces the leading value but
    keeps the leading position. Columns are the union of all keys in
    first-seen order.

    Returns:
        (columns, rows)
    """
    columns: dict[str, None] = {USER_COLUMN: None, ROW_ID_COLUMN: None}
    rows: list[dict[str, Any]] = []
    for key, bundle in hierarchy.bundles():
        row = {USER_COLUMN: key.respondent_id, ROW_ID_COLUMN: key.row_id, **bundle.non_audio_fields}
        for column in row:
            columns.setdefault(column, None)
        rows.append(row)
    return list(columns), rows


def render_aggregate_csv(columns: list[str], rows: list[dict[str, Any]]) -> str:
    """Serialize aggregate rows to CSV text; missing cells are empty."""
    formatted = [{k: render_scalar(v) for k, v in row.items()} for row in rows]
    df = pd.DataFrame(formatted, columns=columns, dtype=object).fillna("")
    return df.to_csv(index=False, lineterminator="\r\n")


def _zip_info(name: str) -> zipfile.ZipInfo:
    info = zipfile.ZipInfo(filename=name, date_time=FIXED_DATE_TIME)
    if name.endswith("/"):
        info.compress_type = zipfile.ZIP_STORED
        info.external_attr = 0o40775 << 16  # drwxrwxr-x
        info.external_attr |= 0x10  # MS-DOS directory flag
    else:
        info.compress_type = zipfile.ZIP_DEFLATED
        info.external_attr = 0o644 << 16
    return info


def _collect_members(
    hierarchy: GroupedHierarchy,
    error_log: ErrorLogBuffer | None,
    file_name: str,
) -> tuple[dict[str, bytes | None], int]:
    """Decode every audio entry into member path -> bytes (None for directories).

    Raises:
        PayloadDecodeError: first undecodable entry, with respondent/row/question context
    """
    members: dict[str, bytes | None] = {}
    collisions = 0
    with ProgressTracker(hierarchy.bundle_count, description="Decoding audio") as progress:
        for respondent_id, rows in hierarchy.respondents.items():
            respondent_dir = f"{respondent_id}/"
            members.setdefault(respondent_dir, None)
            for row_id, bundle in rows.items():
                row_dir = f"{respondent_dir}{row_id}/"
                members.setdefault(row_dir, None)
                for index, entry in enumerate(bundle.audio_entries):
                    try:
                        data = decode_data_uri(entry.audio)
                    except PayloadDecodeError as e:
                        if error_log is not None:
                            error_log.append(
                                ErrorRecord.create(
                                    file=file_name,
                                    row=-1,
                                    column=entry.question,
                                    error_type=PAYLOAD_DECODE_ERROR,
                                    message=f"respondent={respondent_id} row_id={row_id}: {e}",
                                )
                            )
                        raise PayloadDecodeError(
                            f"respondent={respondent_id} row_id={row_id} question={entry.question!r}: {e}"
                        ) from e
                    member = f"{row_dir}{audio_file_name(entry.question, index)}"
                    if members.get(member) is not None:
                        collisions += 1
                        logger.warning("archive path collision %s (later entry wins)", member)
                        if error_log is not None:
                            error_log.append(
                                ErrorRecord.create(
                                    file=file_name,
                                    row=-1,
                                    column=entry.question,
                                    error_type=FILENAME_COLLISION,
                                    message=f"respondent={respondent_id} row_id={row_id} path={member}",
                                )
                            )
                    members[member] = data
                progress.advance(f"{respondent_id}/{row_id}")
    return members, collisions


def build_archive(
    hierarchy: GroupedHierarchy,
    variant: ArchiveVariant = ArchiveVariant.SPLIT,
    *,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "",
) -> ArchiveResult:
    """Serialize the hierarchy into an in-memory zip archive.

    Args:
        hierarchy: grouped respondents / rows / bundles
        variant: SPLIT adds Non_Audio_Responses.csv, AUDIO_ONLY does not
        error_log: optional buffer for decode errors and path collisions
        file_name: source name used in error records

    Returns:
        ArchiveResult with the zip bytes and the aggregate table

    Raises:
        PayloadDecodeError: an audio entry is not valid base64 (whole archive aborted)
    """
    members, collisions = _collect_members(hierarchy, error_log, file_name)
    columns, aggregate = build_aggregate_rows(hierarchy)

    buffer = io.BytesIO()
    audio_files = 0
    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, payload in members.items():
            if payload is None:
                zf.writestr(_zip_info(name), b"")
            else:
                zf.writestr(_zip_info(name), payload)
                audio_files += 1
        if variant.includes_responses:
            zf.writestr(_zip_info(RESPONSES_FILE_NAME), render_aggregate_csv(columns, aggregate))

    data = buffer.getvalue()
    entries = list(members)
    if variant.includes_responses:
        entries.append(RESPONSES_FILE_NAME)
    logger.debug(
        "archive variant=%s entries=%d audio_files=%d collisions=%d bytes=%d",
        variant.value,
        len(entries),
        audio_files,
        collisions,
        len(data),
    )
    return ArchiveResult(
        data=data,
        file_name=variant.file_name,
        variant=variant,
        entries=entries,
        audio_files=audio_files,
        collisions=collisions,
        aggregate_columns=columns,
        aggregate_rows=aggregate,
    )
