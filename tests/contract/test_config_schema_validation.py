from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from audio_extract.config.loader import SCHEMA_PATH

"""Config schema contract test."""


def _schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_config_schema_valid_example():
    config = {
        "known_audio_questions": ["Nao Porque", "Sim Porque"],
        "respondent_columns": ["Created By", "User"],
        "row_id_column": "ID",
        "dynamic_typing": False,
        "archive_variant": "audio_only",
        "output_directory": "./out",
    }
    jsonschema.validate(config, _schema())


def test_empty_config_is_valid():
    jsonschema.validate({}, _schema())


@pytest.mark.parametrize(
    "config",
    [
        {"archive_variant": "zip"},
        {"row_id_column": ""},
        {"respondent_columns": []},
        {"known_audio_questions": [""]},
        {"timezone": "UTC"},
    ],
)
def test_config_schema_rejects(config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, _schema())


def test_sample_config_validates(sample_config_yaml):
    """Test that the sample config from conftest.py validates against schema."""
    jsonschema.validate(yaml.safe_load(sample_config_yaml), _schema())
