"""Domain models - pure Python classes independent of database and HTTP."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from recording_sync.domain.enums import (
    BackfillStatus,
    ExportKind,
    ExportState,
    ProductionType,
    SessionClassification,
    SessionState,
    SyncStatus,
)


@dataclass
class ExternalSession:
    """A recorded match on the external video platform (read-only)."""

    session_id: str
    state: SessionState | str
    scheduled_start_time: datetime
    title: str | None = None
    description: str | None = None
    scene_id: str | None = None

    @property
    def is_finished(self) -> bool:
        return self.state == SessionState.FINISHED

    @property
    def display_title(self) -> str:
        return self.title or self.description or "Untitled"


@dataclass
class Production:
    """A processing pipeline instance attached to a session."""

    production_id: str
    session_id: str | None
    type: ProductionType | str
    processing_state: str | None = None

    @property
    def is_live(self) -> bool:
        return self.type == ProductionType.LIVE


@dataclass
class ExportJob:
    """An on-demand export of a production. Never persisted locally."""

    export_id: str
    production_id: str
    kind: ExportKind | str
    progress_percent: int = 0


@dataclass
class Scene:
    """A physical camera/venue setup on the external platform."""

    scene_id: str
    name: str


@dataclass
class PollResult:
    """Outcome of one bounded wait for export readiness."""

    export_id: str
    state: ExportState
    progress_percent: int
    polls: int
    elapsed_seconds: float

    @property
    def is_ready(self) -> bool:
        return self.state == ExportState.READY


@dataclass
class UploadResult:
    """Result of streaming a source into the object store."""

    key: str
    bucket: str
    size_bytes: int
    etag: str | None = None


@dataclass
class ObjectMetadata:
    """Metadata for a stored object."""

    key: str
    size_bytes: int
    content_type: str | None = None
    last_modified: datetime | None = None


@dataclass
class KnownRecording:
    """Snapshot of a recording row, detached from any database session."""

    id: Any
    external_session_id: str
    external_production_id: str | None
    storage_key: str | None
    status: str
    organization_id: Any = None


@dataclass
class SceneMapping:
    """Scene to organization mapping owned outside this pipeline."""

    scene_id: str
    organization_id: Any
    scene_name: str | None = None


@dataclass
class RecordingUpsert:
    """Values written when a transfer completes."""

    external_session_id: str
    external_production_id: str
    title: str
    description: str | None
    business_date: datetime
    storage_bucket: str
    storage_key: str
    file_size_bytes: int | None
    organization_id: Any = None
    venue_name: str | None = None


@dataclass
class SyncItem:
    """Per-session result entry of a sync run."""

    session_id: str
    title: str
    business_date: datetime
    status: SyncStatus
    message: str
    storage_key: str | None = None
    error_kind: str | None = None
    scene_id: str | None = None
    organization_id: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "gameId": self.session_id,
            "title": self.title,
            "matchDate": self.business_date.isoformat(),
            "status": self.status.value,
            "message": self.message,
        }
        if self.storage_key:
            data["storageKey"] = self.storage_key
        if self.error_kind:
            data["errorKind"] = self.error_kind
        if self.scene_id:
            data["sceneId"] = self.scene_id
        if self.organization_id is not None:
            data["organizationId"] = str(self.organization_id)
        return data


@dataclass
class SyncSummary:
    """Aggregate result of a sync run."""

    items: list[SyncItem] = field(default_factory=list)

    def count(self, status: SyncStatus) -> int:
        return sum(1 for item in self.items if item.status == status)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def errors(self) -> int:
        return self.count(SyncStatus.ERROR)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "synced": self.count(SyncStatus.SYNCED),
            "transferred": self.count(SyncStatus.TRANSFERRED),
            "migrated": self.count(SyncStatus.MIGRATED),
            "processing": self.count(SyncStatus.PROCESSING),
            "errors": self.errors,
            "results": [item.to_dict() for item in self.items],
        }


@dataclass
class StatusItem:
    """Read-only classification of one finished session."""

    session_id: str
    title: str
    business_date: datetime
    classification: SessionClassification
    storage_key: str | None = None
    expected_key: str | None = None

    @property
    def in_database(self) -> bool:
        return self.classification != SessionClassification.NEEDS_SYNC

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameId": self.session_id,
            "title": self.title,
            "matchDate": self.business_date.isoformat(),
            "inDatabase": self.in_database,
            "needsMigration": self.classification == SessionClassification.NEEDS_MIGRATION,
            "classification": self.classification.value,
            "storageKey": self.storage_key,
            "expectedKey": self.expected_key,
        }


@dataclass
class StatusReport:
    """Result of a status check."""

    items: list[StatusItem] = field(default_factory=list)

    def count(self, classification: SessionClassification) -> int:
        return sum(1 for item in self.items if item.classification == classification)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.items),
            "synced": self.count(SessionClassification.SYNCED),
            "needsSync": self.count(SessionClassification.NEEDS_SYNC),
            "needsMigration": self.count(SessionClassification.NEEDS_MIGRATION),
            "games": [item.to_dict() for item in self.items],
        }


@dataclass
class BackfillItem:
    """Per-session result of a storage backfill."""

    session_id: str
    title: str
    status: BackfillStatus
    message: str
    storage_key: str | None = None
    error_kind: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "gameId": self.session_id,
            "title": self.title,
            "status": self.status.value,
            "message": self.message,
        }
        if self.storage_key:
            data["storageKey"] = self.storage_key
        if self.error_kind:
            data["errorKind"] = self.error_kind
        return data


@dataclass
class BackfillReport:
    """Aggregate result of a storage backfill."""

    items: list[BackfillItem] = field(default_factory=list)

    def count(self, status: BackfillStatus) -> int:
        return sum(1 for item in self.items if item.status == status)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": len(self.items),
            "added": self.count(BackfillStatus.ADDED),
            "exists": self.count(BackfillStatus.EXISTS),
            "noObject": self.count(BackfillStatus.NO_OBJECT),
            "errors": self.count(BackfillStatus.ERROR),
            "results": [item.to_dict() for item in self.items],
        }


@dataclass
class TickResult:
    """Result of one scheduled (one-at-a-time) invocation."""

    sessions_found: int
    needs_sync: int
    result: SyncItem | None = None

    @property
    def message(self) -> str:
        return "Sync completed" if self.result else "No games to sync"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "message": self.message,
            "gamesFound": self.sessions_found,
            "needsSync": self.needs_sync,
        }
        if self.result:
            data["result"] = self.result.to_dict()
        return data
