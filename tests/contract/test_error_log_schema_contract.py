from __future__ import annotations

import json

import jsonschema
import pytest

from audio_extract.logging.error_log import ErrorLogBuffer
from audio_extract.models.error_record import ErrorRecord

"""Error log JSON Lines schema contract."""

ERROR_LOG_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "additionalProperties": False,
    "required": ["timestamp", "file", "row", "column", "error_type", "message"],
    "properties": {
        "timestamp": {"type": "string", "pattern": "Z$"},
        "file": {"type": "string"},
        "row": {"type": "integer", "minimum": -1},
        "column": {"type": "string"},
        "error_type": {
            "type": "string",
            "enum": ["PARSE_ERROR", "PAYLOAD_DECODE_ERROR", "DUPLICATE_ROW_KEY", "FILENAME_COLLISION"],
        },
        "message": {"type": "string"},
    },
}


def test_error_log_schema_valid_example():
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "survey.csv",
        "row": -1,
        "column": "",
        "error_type": "PARSE_ERROR",
        "message": "Error tokenizing data",
    }
    jsonschema.validate(record, ERROR_LOG_SCHEMA)


def test_error_log_schema_rejects_extra_key():
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "survey.csv",
        "row": 2,
        "column": "ID",
        "error_type": "DUPLICATE_ROW_KEY",
        "message": "merged",
        "extra": "not allowed",
    }
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, ERROR_LOG_SCHEMA)


def test_flushed_lines_conform(temp_workdir):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("s.csv", -1, "", "PARSE_ERROR", "bad"))
    buf.append(ErrorRecord.create("s.csv", 4, "ID", "DUPLICATE_ROW_KEY", "merged"))
    buf.append(ErrorRecord.create("s.csv", -1, "Q", "FILENAME_COLLISION", "path=a/b/1/Q_0.mp3"))
    path = buf.flush()
    for line in path.read_text(encoding="utf-8").splitlines():
        jsonschema.validate(json.loads(line), ERROR_LOG_SCHEMA)
