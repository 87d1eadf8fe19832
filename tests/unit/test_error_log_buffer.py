from __future__ import annotations

import json
import re
from pathlib import Path

from audio_extract.logging.error_log import ErrorLogBuffer, ErrorRecord

KEYS = {"timestamp", "file", "row", "column", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="survey.csv",
        row=3,
        column="ID",
        error_type="DUPLICATE_ROW_KEY",
        message="respondent=Ana row_id=7 merged into existing bundle",
    )
    data = json.loads(rec.to_json_line())
    assert set(data.keys()) == KEYS
    assert data["row"] == 3
    assert data["timestamp"].endswith("Z")


def test_json_line_keeps_non_ascii():
    rec = ErrorRecord.create("pesquisa.csv", -1, "", "PARSE_ERROR", "aspas não fechadas")
    assert "não" in rec.to_json_line()


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("s.csv", -1, "", "PARSE_ERROR", "bad quote"))
    buf.append(ErrorRecord.create("s.csv", 2, "ID", "DUPLICATE_ROW_KEY", "dup"))
    path = buf.flush()
    assert path is not None and path.exists()
    assert path.parent == Path("logs")
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw).keys()) == KEYS
    # flush 後バッファクリア
    assert len(buf) == 0


def test_error_log_buffer_multiple_flushes_append(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("s.csv", 1, "ID", "DUPLICATE_ROW_KEY", "dup"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("s.csv", 2, "ID", "DUPLICATE_ROW_KEY", "dup2"))
    path2 = buf.flush()
    assert path == path2
    assert path2.stat().st_size > size1


def test_empty_buffer_creates_no_file(tmp_path: Path):
    logs = tmp_path / "logs"
    buf = ErrorLogBuffer(logs_dir=logs)
    assert buf.flush() is None
    assert not logs.exists()


def test_records_returns_copy(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("s.csv", 1, "", "PARSE_ERROR", "x"))
    buf.records.clear()
    assert len(buf) == 1


def test_counts_group_records_by_error_type(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("s.csv", 2, "", "DUPLICATE_ROW_KEY", "dup"))
    buf.append(ErrorRecord.create("s.csv", -1, "", "FILENAME_COLLISION", "a/b/1/Q_0.mp3"))
    buf.append(ErrorRecord.create("s.csv", 3, "", "DUPLICATE_ROW_KEY", "dup"))
    assert buf.counts() == {"DUPLICATE_ROW_KEY": 2, "FILENAME_COLLISION": 1}
    buf.flush()
    assert buf.counts() == {}


def test_log_file_goes_to_custom_dir(tmp_path: Path):
    logs = tmp_path / "run-logs"
    buf = ErrorLogBuffer(logs_dir=logs)
    buf.append(ErrorRecord.create("s.csv", -1, "", "PARSE_ERROR", "bad quote"))
    path = buf.flush()
    assert path is not None and path.parent == logs
