from __future__ import annotations

from ..models.processing_result import ArchiveResult, PipelineResult

"""SUMMARY line rendering.

Format (one line, space separated key=value pairs):
SUMMARY status={status} rows={rows} audio_columns={n} respondents={n} bundles={n}
audio_files={n} duplicates={n} elapsed_sec={elapsed}
"""


def _format_seconds(seconds: float) -> str:
    if seconds == 0:
        return "0"
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: PipelineResult, archive: ArchiveResult | None = None) -> str:
    """Render the SUMMARY line for a pipeline run.

    ``audio_files`` counts files written to the archive; without an archive
    (listing only, or nothing to extract) it counts audio entries in the hierarchy.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from audio_extract.models.processing_result import PipelineStatus
        >>> from audio_extract.models.row_bundle import GroupedHierarchy
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = PipelineResult(PipelineStatus.EMPTY, ["ID"], 0, (), GroupedHierarchy(), t, t)
        >>> render_summary_line(r)
        'SUMMARY status=empty rows=0 audio_columns=0 respondents=0 bundles=0 audio_files=0 duplicates=0 elapsed_sec=0'
    """
    hierarchy = result.hierarchy
    audio_files = archive.audio_files if archive is not None else hierarchy.audio_entry_count
    return (
        f"SUMMARY status={result.status.value} "
        f"rows={result.row_count} "
        f"audio_columns={len(result.audio_columns)} "
        f"respondents={len(hierarchy)} "
        f"bundles={hierarchy.bundle_count} "
        f"audio_files={audio_files} "
        f"duplicates={hierarchy.duplicate_rows} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )
