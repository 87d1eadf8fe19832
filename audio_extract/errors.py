from __future__ import annotations

"""Exception taxonomy for the survey audio extractor.

ParseError / PayloadDecodeError abort the current operation and are raised.
EmptyInputError / NoAudioFoundError describe expected outcomes; the pipeline
reports them as a status and only raises them on request
(PipelineResult.raise_for_status).
"""

__all__ = [
    "ExtractionError",
    "ParseError",
    "EmptyInputError",
    "NoAudioFoundError",
    "PayloadDecodeError",
]


class ExtractionError(Exception):
    """Base class for all extractor errors."""


class ParseError(ExtractionError):
    """Raised when the input is not well-formed delimited text."""


class EmptyInputError(ExtractionError):
    """Input parsed fine but holds zero data rows."""


class NoAudioFoundError(ExtractionError):
    """Input has rows but no column qualifies as audio."""


class PayloadDecodeError(ExtractionError):
    """Raised when an audio cell does not hold decodable base64."""
