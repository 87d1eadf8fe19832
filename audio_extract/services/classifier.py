from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any, Protocol

from ..csvio.reader import TableData
from ..models.config_models import DEFAULT_KNOWN_AUDIO_QUESTIONS
from .payload import BASE64_MARKER

"""Audio column classification.

Survey tools export recorded answers inconsistently: sometimes under known
question columns, sometimes in opaque columns that only reveal themselves by
their content. Each signal is a strategy; ColumnClassifier runs them in fixed
priority order and keeps the order in which columns were added.
"""

__all__ = [
    "ColumnStrategy",
    "KnownQuestionStrategy",
    "ContentSniffStrategy",
    "ColumnClassifier",
    "classify_audio_columns",
]

logger = logging.getLogger(__name__)

AUDIO_DATA_URI_PREFIX = "data:audio"


class ColumnStrategy(Protocol):
    name: str

    def select(self, table: TableData, selected: Sequence[str]) -> list[str]:
        """Return new audio columns, given those already selected."""
        ...


class KnownQuestionStrategy:
    """Columns named like a known recorded question (membership alone suffices)."""

    name = "known_questions"

    def __init__(self, questions: Iterable[str] = DEFAULT_KNOWN_AUDIO_QUESTIONS) -> None:
        self.questions = tuple(questions)

    def select(self, table: TableData, selected: Sequence[str]) -> list[str]:
        present = set(table.columns)
        return [q for q in self.questions if q in present and q not in selected]


def _looks_like_audio(value: Any) -> bool:
    return isinstance(value, str) and (
        BASE64_MARKER in value or value.startswith(AUDIO_DATA_URI_PREFIX)
    )


class ContentSniffStrategy:
    """Columns where any cell contains "base64" or starts with "data:audio"."""

    name = "content_sniff"

    def select(self, table: TableData, selected: Sequence[str]) -> list[str]:
        found: list[str] = []
        for column in table.columns:
            if column in selected:
                continue
            if any(_looks_like_audio(row.get(column)) for row in table.rows):
                found.append(column)
        return found


class ColumnClassifier:
    """Runs column strategies in priority order and merges their picks."""

    def __init__(self, strategies: Sequence[ColumnStrategy] | None = None) -> None:
        if strategies is None:
            strategies = (KnownQuestionStrategy(), ContentSniffStrategy())
        self.strategies = tuple(strategies)

    def classify(self, table: TableData) -> tuple[str, ...]:
        selected: list[str] = []
        for strategy in self.strategies:
            picked = [c for c in strategy.select(table, tuple(selected)) if c not in selected]
            if picked:
                logger.debug("strategy=%s audio_columns=%s", strategy.name, picked)
            selected.extend(picked)
        return tuple(selected)


def classify_audio_columns(
    table: TableData, known_questions: Iterable[str] = DEFAULT_KNOWN_AUDIO_QUESTIONS
) -> tuple[str, ...]:
    """Return the audio columns of a table (known names first, then sniffed)."""
    classifier = ColumnClassifier((KnownQuestionStrategy(known_questions), ContentSniffStrategy()))
    return classifier.classify(table)
