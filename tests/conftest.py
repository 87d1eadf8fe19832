# Shared pytest fixtures
from __future__ import annotations

import base64
import logging
import tempfile
from pathlib import Path

import pytest

from audio_extract.logging.init import LOGGER_NAME, reset_logging

# Raw audio bytes used across tests ("ID3" header + padding)
AUDIO_BYTES = b"ID3\x03\x00\x00\x00\x00\x00\x00audio"
AUDIO_B64 = base64.b64encode(AUDIO_BYTES).decode("ascii")
# Bare cell as exported by the survey tool: contains the "base64" marker, no media type
BARE_PAYLOAD = "SUQzbase64AAAA=="
WEBM_URI = "data:audio/webm;base64," + AUDIO_B64


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """known_audio_questions:
  - Nao Porque
  - Sim Porque
respondent_columns: [Created By, User]
row_id_column: ID
dynamic_typing: true
archive_variant: split
output_directory: ./out
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "extract.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def write_csv(temp_workdir: Path):
    """Write CSV text under data/ and return its path."""

    def _write(text: str, name: str = "survey.csv") -> Path:
        path = temp_workdir / "data" / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def survey_csv_text() -> str:
    # Two respondents; Alice answers twice under separate rows
    return (
        "ID,Created By,Sim Porque,Nao Porque,Age\n"
        f"1,Alice,\"{WEBM_URI}\",,30\n"
        f"2,Alice,,{BARE_PAYLOAD},31\n"
        f"3,Bob,\"{WEBM_URI}\",\"{WEBM_URI}\",40\n"
    )


@pytest.fixture(autouse=True)
def _fresh_logging():
    # The application logger binds sys.stdout at setup; rebind per test so capsys sees it
    reset_logging()
    yield
    reset_logging()
    logging.getLogger(LOGGER_NAME).handlers.clear()
