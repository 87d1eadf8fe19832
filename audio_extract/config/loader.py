from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import ExtractConfig
from ..models.processing_result import ArchiveVariant

"""Config loader.

Responsibilities:
- Load the YAML config (default config/extract.yml)
- Validate it against config_schema.json shipped next to this module
- Apply defaults for every key the file leaves out
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "load_config_or_default",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/extract.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or unreadable, or the data
            violates it (unknown keys, wrong types, bad enum value)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ExtractConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config validation failed: top level must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    defaults = ExtractConfig()
    return ExtractConfig(
        known_audio_questions=tuple(data.get("known_audio_questions", defaults.known_audio_questions)),
        respondent_columns=tuple(data.get("respondent_columns", defaults.respondent_columns)),
        row_id_column=data.get("row_id_column", defaults.row_id_column),
        dynamic_typing=data.get("dynamic_typing", defaults.dynamic_typing),
        archive_variant=ArchiveVariant(data.get("archive_variant", defaults.archive_variant.value)),
        output_directory=data.get("output_directory", defaults.output_directory),
        source=str(path),
    )


def load_config_or_default(path: Path | None) -> ExtractConfig:
    """Load ``path`` if given; otherwise the default file when present, else defaults.

    An explicitly named file that does not exist is an error.
    """
    if path is not None:
        return load_config(path)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return ExtractConfig()
