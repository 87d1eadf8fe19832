from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path

from dotenv import load_dotenv

from audio_extract.config.loader import ConfigError, load_config_or_default
from audio_extract.errors import ParseError, PayloadDecodeError
from audio_extract.logging.error_log import ErrorLogBuffer
from audio_extract.logging.init import log_summary, set_debug, setup_logging
from audio_extract.models.processing_result import ArchiveResult, ArchiveVariant, PipelineStatus
from audio_extract.models.row_bundle import GroupedHierarchy
from audio_extract.services.archive import build_archive
from audio_extract.services.pipeline import process_file
from audio_extract.services.summary import render_summary_line

"""CLI entrypoint.

Flow:
- Load .env, then the optional YAML config
- Parse the CSV, classify audio columns, group rows
- Either list the grouped hierarchy (--list) or write the zip archive

Exit codes:
    0  archive written (or listing printed)
    1  fatal: config, missing input, malformed CSV, undecodable audio
    2  nothing to extract: empty file or no audio column
"""

EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_NOTHING_TO_EXTRACT = 2

CONFIG_ENV_VAR = "AUDIO_EXTRACT_CONFIG"


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; a broken file only produces a warning."""
    try:
        if path.exists():
            load_dotenv(dotenv_path=path, override=override)
    except OSError as e:  # pragma: no cover
        print(f"WARNING: failed to load .env via python-dotenv: {e}")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="audio-extract",
        description="Extract base64 audio answers from a survey CSV export into a zip archive",
    )
    p.add_argument("input", help="Survey export (.csv, UTF-8)")
    p.add_argument("--config", help=f"YAML config (default: config/extract.yml or ${CONFIG_ENV_VAR})")
    p.add_argument("-o", "--output", help="Output directory, or archive path when it ends with .zip")
    p.add_argument("--audio-only", action="store_true", help="Omit Non_Audio_Responses.csv (All_Audios.zip)")
    p.add_argument("--list", action="store_true", help="Print respondents / rows / questions then exit")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    return p.parse_args(argv)


def _print_listing(hierarchy: GroupedHierarchy) -> None:
    for respondent_id, rows in hierarchy.respondents.items():
        print(f"Responses from: {respondent_id}")
        for row_id, bundle in rows.items():
            print(f"  Row: {row_id}")
            for entry in bundle.audio_entries:
                print(f"    - {entry.question}")


def _resolve_output_path(output: str | None, output_directory: str, archive: ArchiveResult) -> Path:
    if output and output.lower().endswith(".zip"):
        return Path(output)
    return Path(output or output_directory) / archive.file_name


def _flush_error_log(error_log: ErrorLogBuffer) -> None:
    logger = setup_logging()
    counts = error_log.counts()
    try:
        path = error_log.flush()
    except OSError as e:
        logger.warning(f"error log flush failed: {e}")
        return
    if path is not None:
        tally = " ".join(f"{k}={v}" for k, v in counts.items())
        logger.info(f"error log: {path} ({tally})")


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストで main([...]) を直接呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        set_debug(True)
        logger.debug("debug mode enabled")

    config_arg = args.config or os.getenv(CONFIG_ENV_VAR)
    try:
        cfg = load_config_or_default(Path(config_arg) if config_arg else None)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL
    logger.debug(f"config source={cfg.source or '<defaults>'}")

    input_path = Path(args.input)
    if not input_path.is_file():
        logger.error(f"input file not found: {input_path}")
        return EXIT_FATAL

    variant = ArchiveVariant.AUDIO_ONLY if args.audio_only else cfg.archive_variant
    error_log = ErrorLogBuffer()

    logger.info(f"Parsing CSV file: {input_path}")
    try:
        result = process_file(input_path, cfg, error_log=error_log)
    except ParseError as e:
        logger.error(f"Error parsing CSV: {e}")
        _flush_error_log(error_log)
        return EXIT_FATAL
    except OSError as e:
        logger.error(f"input: {e}")
        return EXIT_FATAL

    logger.info(result.message)
    if result.status is not PipelineStatus.COMPLETE:
        _flush_error_log(error_log)
        log_summary(render_summary_line(result)[8:])
        return EXIT_NOTHING_TO_EXTRACT

    logger.info(f"audio columns: {', '.join(result.audio_columns)}")

    if args.list:
        _print_listing(result.hierarchy)
        _flush_error_log(error_log)
        log_summary(render_summary_line(result)[8:])
        return EXIT_SUCCESS

    try:
        archive = build_archive(result.hierarchy, variant, error_log=error_log, file_name=input_path.name)
    except PayloadDecodeError as e:
        logger.error(f"archive: {e}")
        _flush_error_log(error_log)
        return EXIT_FATAL

    out_path = _resolve_output_path(args.output, cfg.output_directory, archive)
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_bytes(archive.data)
    except OSError as e:
        logger.error(f"output: {e}")
        return EXIT_FATAL
    logger.info(f"archive written: {out_path} ({archive.audio_files} audio files)")
    if archive.collisions:
        logger.warning(f"{archive.collisions} audio files overwritten by same-named entries")

    _flush_error_log(error_log)
    # log_summary adds the "SUMMARY " prefix itself
    log_summary(render_summary_line(result, archive)[8:])
    return EXIT_SUCCESS


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
