"""Domain enumerations."""

from enum import StrEnum


class SessionState(StrEnum):
    """Processing state of a session on the external platform."""

    CREATED = "created"
    SCHEDULED = "scheduled"
    RECORDING = "recording"
    FINISHED = "finished"
    PURGED = "purged"
    ABORTED = "aborted"
    ERADICATED = "eradicated"


class ProductionType(StrEnum):
    """Production pipeline types. Only LIVE productions are transferred."""

    LIVE = "live"
    STATIC = "static"
    LOW_LATENCY = "low-latency"


class ExportKind(StrEnum):
    """Output kinds attached to a production."""

    DOWNLOAD = "download"
    PUSH_STREAM = "push_stream"
    EXTERNAL_HLS = "external_hls"


class ExportState(StrEnum):
    """Outcome of one bounded wait on an export."""

    READY = "ready"
    PROCESSING = "processing"


class RecordingStatus(StrEnum):
    """Status of a recording row in the metadata store."""

    SCHEDULED = "scheduled"
    PROCESSING = "processing"
    PUBLISHED = "published"
    ERROR = "error"


class SyncStatus(StrEnum):
    """Per-session outcome of a sync run."""

    SYNCED = "synced"
    TRANSFERRED = "transferred"
    MIGRATED = "migrated"
    PROCESSING = "processing"
    ERROR = "error"


class SessionClassification(StrEnum):
    """Read-only classification produced by a status check."""

    SYNCED = "synced"
    NEEDS_SYNC = "needs_sync"
    NEEDS_MIGRATION = "needs_migration"


class BackfillStatus(StrEnum):
    """Per-session outcome of a storage backfill."""

    ADDED = "added"
    EXISTS = "exists"
    NO_OBJECT = "no_object"
    ERROR = "error"
