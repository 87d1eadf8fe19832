from __future__ import annotations

from dataclasses import dataclass, field

from .processing_result import ArchiveVariant

"""Config dataclass for the survey audio extractor.

Every field has a default so the tool runs without a config file; the YAML
loader in audio_extract.config.loader only overrides what the file names.
"""

# Survey questions answered by voice recording in the known export format
DEFAULT_KNOWN_AUDIO_QUESTIONS: tuple[str, ...] = (
    "Nao Porque",
    "Sim Porque",
    "O que a Africell poderia fazer para conquistar voce como cliente",
    "O que voce acha das publicidades da Africell",
    "Onde voce ja viu ou ouviu anuncios da Africell",
    "InterestedReward",
)

# Probed in order; the first truthy cell names the respondent
DEFAULT_RESPONDENT_COLUMNS: tuple[str, ...] = (
    "Created By",
    "CreatedBy",
    "User",
    "UserID",
    "Name",
    "ID",
)

DEFAULT_ROW_ID_COLUMN = "ID"
UNKNOWN_RESPONDENT = "Unknown"


@dataclass(frozen=True)
class ExtractConfig:
    """Root configuration object for one extraction run."""
    known_audio_questions: tuple[str, ...] = DEFAULT_KNOWN_AUDIO_QUESTIONS
    respondent_columns: tuple[str, ...] = DEFAULT_RESPONDENT_COLUMNS
    row_id_column: str = DEFAULT_ROW_ID_COLUMN
    dynamic_typing: bool = True  # False -> every cell stays a string
    archive_variant: ArchiveVariant = ArchiveVariant.SPLIT
    output_directory: str = "."
    source: str | None = field(default=None, compare=False)  # 読み込んだ設定ファイル (None = defaults)
