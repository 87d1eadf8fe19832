from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

"""Grouped hierarchy models (respondent -> row -> bundle).

RowBundle / GroupedHierarchy are the immutable values handed from the grouping
stage to the archive assembler and to display code. The grouping engine builds
them with RowBundleBuilder and freezes them once the whole table is consumed.
"""

__all__ = [
    "RowKey",
    "AudioEntry",
    "RowBundle",
    "RowBundleBuilder",
    "GroupedHierarchy",
]


@dataclass(frozen=True)
class RowKey:
    respondent_id: str
    row_id: str


@dataclass(frozen=True)
class AudioEntry:
    question: str  # 元の列名
    audio: str  # normalized data URI


@dataclass(frozen=True)
class RowBundle:
    """Audio answers of one (respondent, row) plus its remaining fields."""
    audio_entries: tuple[AudioEntry, ...]
    non_audio_fields: Mapping[str, Any]
    record_count: int = 1  # >1 when several input rows shared the key


class RowBundleBuilder:
    """Mutable accumulator used while the table is being consumed."""

    def __init__(self) -> None:
        self.audio_entries: list[AudioEntry] = []
        self.non_audio_fields: dict[str, Any] = {}
        self.record_count = 0

    def add_audio(self, question: str, audio: str) -> None:
        self.audio_entries.append(AudioEntry(question=question, audio=audio))

    def set_field(self, column: str, value: Any) -> None:
        # last write wins across records sharing the key
        self.non_audio_fields[column] = value

    def freeze(self) -> RowBundle:
        return RowBundle(
            audio_entries=tuple(self.audio_entries),
            non_audio_fields=MappingProxyType(dict(self.non_audio_fields)),
            record_count=self.record_count,
        )


@dataclass(frozen=True)
class GroupedHierarchy:
    """respondent_id -> row_id -> RowBundle, in first-seen order."""
    respondents: Mapping[str, Mapping[str, RowBundle]] = field(
        default_factory=lambda: MappingProxyType({})
    )
    duplicate_rows: int = 0  # input rows merged into an existing bundle

    def __len__(self) -> int:
        return len(self.respondents)

    def __bool__(self) -> bool:
        return bool(self.respondents)

    def bundles(self) -> Iterator[tuple[RowKey, RowBundle]]:
        for respondent_id, rows in self.respondents.items():
            for row_id, bundle in rows.items():
                yield RowKey(respondent_id, row_id), bundle

    def row_keys(self) -> set[RowKey]:
        return {key for key, _ in self.bundles()}

    def get(self, respondent_id: str, row_id: str) -> RowBundle | None:
        rows = self.respondents.get(respondent_id)
        if rows is None:
            return None
        return rows.get(row_id)

    @property
    def bundle_count(self) -> int:
        return sum(len(rows) for rows in self.respondents.values())

    @property
    def audio_entry_count(self) -> int:
        return sum(len(bundle.audio_entries) for _, bundle in self.bundles())

    def to_dict(self) -> dict[str, dict[str, dict[str, Any]]]:
        """Plain nested dict view (JSON friendly) of the whole hierarchy."""
        return {
            respondent_id: {
                row_id: {
                    "audioEntries": [
                        {"question": e.question, "audio": e.audio} for e in bundle.audio_entries
                    ],
                    "nonAudioFields": dict(bundle.non_audio_fields),
                }
                for row_id, bundle in rows.items()
            }
            for respondent_id, rows in self.respondents.items()
        }
