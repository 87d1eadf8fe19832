"""Domain models for the survey audio extractor."""

from .config_models import ExtractConfig
from .error_record import ErrorRecord
from .processing_result import ArchiveResult, ArchiveVariant, PipelineResult, PipelineStatus
from .row_bundle import AudioEntry, GroupedHierarchy, RowBundle, RowBundleBuilder, RowKey

__all__ = [
    # Configuration models
    "ExtractConfig",
    # Hierarchy models
    "RowKey",
    "AudioEntry",
    "RowBundle",
    "RowBundleBuilder",
    "GroupedHierarchy",
    # Results
    "ArchiveResult",
    "ArchiveVariant",
    "PipelineResult",
    "PipelineStatus",
    "ErrorRecord",
]
