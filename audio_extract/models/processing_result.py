from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from ..errors import EmptyInputError, NoAudioFoundError
from .row_bundle import GroupedHierarchy

"""Pipeline and archive result models.

PipelineStatus carries the user-visible outcome of a parse:
    COMPLETE  -> hierarchy ready for archiving / display
    EMPTY     -> well-formed file with zero data rows
    NO_AUDIO  -> rows present, no column classified as audio
Fatal problems (ParseError, PayloadDecodeError) are raised instead.
"""


class PipelineStatus(Enum):
    COMPLETE = "complete"
    EMPTY = "empty"
    NO_AUDIO = "no_audio"

    @property
    def message(self) -> str:
        return STATUS_MESSAGES[self]


STATUS_MESSAGES = {
    PipelineStatus.COMPLETE: "CSV processing complete.",
    PipelineStatus.EMPTY: "The CSV file appears to be empty.",
    PipelineStatus.NO_AUDIO: "No audio data found in the CSV file.",
}


class ArchiveVariant(Enum):
    """Archive layout variants and the file name offered for download."""
    AUDIO_ONLY = "audio_only"
    SPLIT = "split"

    @property
    def file_name(self) -> str:
        if self is ArchiveVariant.AUDIO_ONLY:
            return "All_Audios.zip"
        return "All_Audios_and_Responses.zip"

    @property
    def includes_responses(self) -> bool:
        return self is ArchiveVariant.SPLIT


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of parse -> classify -> group."""
    status: PipelineStatus
    columns: list[str]
    row_count: int
    audio_columns: tuple[str, ...]
    hierarchy: GroupedHierarchy
    start_time: datetime
    end_time: datetime

    @property
    def message(self) -> str:
        return self.status.message

    @property
    def elapsed_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    def raise_for_status(self) -> None:
        """Raise EmptyInputError / NoAudioFoundError for non-complete outcomes."""
        if self.status is PipelineStatus.EMPTY:
            raise EmptyInputError(self.message)
        if self.status is PipelineStatus.NO_AUDIO:
            raise NoAudioFoundError(self.message)


@dataclass(frozen=True)
class ArchiveResult:
    data: bytes
    file_name: str
    variant: ArchiveVariant
    entries: list[str] = field(default_factory=list)  # zip member names, write order
    audio_files: int = 0
    collisions: int = 0  # audio files overwritten by a same-named later entry
    aggregate_columns: list[str] = field(default_factory=list)
    aggregate_rows: list[dict[str, object]] = field(default_factory=list)
