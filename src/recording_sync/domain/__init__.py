"""Domain layer - pure types and rules independent of I/O."""

from recording_sync.domain.enums import (
    ExportKind,
    ExportState,
    ProductionType,
    RecordingStatus,
    SessionClassification,
    SessionState,
    SyncStatus,
)
from recording_sync.domain.keys import derive_key, parse_business_date

__all__ = [
    "ExportKind",
    "ExportState",
    "ProductionType",
    "RecordingStatus",
    "SessionClassification",
    "SessionState",
    "SyncStatus",
    "derive_key",
    "parse_business_date",
]
