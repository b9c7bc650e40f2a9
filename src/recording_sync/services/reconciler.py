"""Reconciliation between the external platform, object storage and metadata.

Correctness relies on idempotence rather than locking: storage keys are a
pure function of session, production and business date, and every metadata
write is a single-row statement keyed by the external session id. Two
overlapping invocations either compute the same key and converge, or the
later one finds the object already stored and short-circuits.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import Any

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.adapters.notifier.base import Notifier
from recording_sync.adapters.storage.base import ObjectStore
from recording_sync.config import settings
from recording_sync.db.session import get_session_context
from recording_sync.domain.enums import BackfillStatus, SessionClassification, SyncStatus
from recording_sync.domain.errors import FATAL_ERRORS, NotFoundError, SyncError
from recording_sync.domain.keys import derive_key, production_id_from_key
from recording_sync.domain.models import (
    BackfillItem,
    BackfillReport,
    ExternalSession,
    KnownRecording,
    RecordingUpsert,
    SceneMapping,
    StatusItem,
    StatusReport,
    SyncItem,
    SyncSummary,
    TickResult,
)
from recording_sync.logging import get_logger, log_context
from recording_sync.services.notifications import notify_recording_ready
from recording_sync.services.polling import wait_for_export
from recording_sync.services.recordings import (
    SessionFactory,
    database_scope,
    insert_backfilled_recording,
    load_known_recordings,
    load_scene_mappings,
    update_storage_key,
    upsert_recording,
)

logger = get_logger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"


def _is_stored(record: KnownRecording | None) -> bool:
    return record is not None and bool(record.storage_key)


def _expected_key(session: ExternalSession, record: KnownRecording) -> str | None:
    """Key the record should have given the session's current business date."""
    if not record.storage_key:
        return None
    production_id = record.external_production_id or production_id_from_key(record.storage_key)
    if not production_id:
        return None
    return derive_key(session.session_id, production_id, session.scheduled_start_time)


class RecordingReconciler:
    """Brings metadata and storage in line with the external platform.

    Entry points:
    - check_status: read-only classification of every finished session
    - run_sync: transfer or migrate every finished session (or one)
    - sync_next: transfer the single oldest unsynced session
    - backfill: register objects that reached storage out-of-band
    """

    def __init__(
        self,
        directory: SessionDirectory,
        store: ObjectStore,
        notifier: Notifier | None = None,
        session_factory: SessionFactory = get_session_context,
        poll_interval: float | None = None,
        max_wait: float | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.directory = directory
        self.store = store
        self.notifier = notifier
        self.session_factory = session_factory
        self.poll_interval = (
            poll_interval if poll_interval is not None else settings.export_poll_interval_seconds
        )
        self.max_wait = max_wait if max_wait is not None else settings.export_max_wait_seconds
        self._sleep = sleep
        self._clock = clock
        self._scene_names: dict[str, dict[str, str]] = {}

    # =========================================================================
    # Status
    # =========================================================================

    async def check_status(self, account_id: str) -> StatusReport:
        """Classify every finished session as synced, needs_sync or needs_migration."""
        with database_scope(self.session_factory) as db:
            known = load_known_recordings(db)
        sessions = await self.directory.list_finished_sessions(account_id)

        report = StatusReport()
        for session in sessions:
            record = known.get(session.session_id)
            if not _is_stored(record):
                report.items.append(
                    StatusItem(
                        session_id=session.session_id,
                        title=session.display_title,
                        business_date=session.scheduled_start_time,
                        classification=SessionClassification.NEEDS_SYNC,
                    )
                )
                continue

            expected = _expected_key(session, record)
            classification = (
                SessionClassification.NEEDS_MIGRATION
                if expected and expected != record.storage_key
                else SessionClassification.SYNCED
            )
            report.items.append(
                StatusItem(
                    session_id=session.session_id,
                    title=session.display_title,
                    business_date=session.scheduled_start_time,
                    classification=classification,
                    storage_key=record.storage_key,
                    expected_key=expected,
                )
            )

        logger.info(
            "sync_status_checked",
            account_id=account_id,
            total=len(report.items),
            needs_sync=report.count(SessionClassification.NEEDS_SYNC),
            needs_migration=report.count(SessionClassification.NEEDS_MIGRATION),
        )
        return report

    # =========================================================================
    # Sync
    # =========================================================================

    async def run_sync(
        self,
        account_id: str,
        target_session_id: str | None = None,
    ) -> SyncSummary:
        """Transfer or migrate every finished session, or only ``target_session_id``.

        Per-session failures are reported in the summary and never abort the
        batch. Authentication and configuration errors propagate.

        Raises:
            NotFoundError: If ``target_session_id`` matches no finished session.
        """
        with database_scope(self.session_factory) as db:
            known = load_known_recordings(db)
            scene_mappings = load_scene_mappings(db)

        sessions = await self.directory.list_finished_sessions(account_id)
        if target_session_id:
            sessions = [s for s in sessions if s.session_id == target_session_id]
            if not sessions:
                raise NotFoundError(f"Game {target_session_id} not found or not finished")

        logger.info(
            "sync_started",
            account_id=account_id,
            sessions=len(sessions),
            known=len(known),
            target=target_session_id,
        )

        summary = SyncSummary()
        for session in sessions:
            item = await self._guarded(
                session,
                self._reconcile_session(
                    session, known.get(session.session_id), account_id, scene_mappings
                ),
            )
            summary.items.append(item)

        logger.info(
            "sync_completed",
            account_id=account_id,
            total=summary.total,
            transferred=summary.count(SyncStatus.TRANSFERRED),
            migrated=summary.count(SyncStatus.MIGRATED),
            processing=summary.count(SyncStatus.PROCESSING),
            errors=summary.errors,
        )
        return summary

    async def sync_next(self, account_id: str) -> TickResult:
        """Transfer at most one pending session.

        The platform lists newest first, so the last unsynced session is the
        oldest. A backlog drains one session per call.
        """
        with database_scope(self.session_factory) as db:
            known = load_known_recordings(db)
            scene_mappings = load_scene_mappings(db)

        sessions = await self.directory.list_finished_sessions(account_id)
        pending = [s for s in sessions if not _is_stored(known.get(s.session_id))]

        logger.info(
            "sync_tick_started",
            account_id=account_id,
            sessions=len(sessions),
            pending=len(pending),
        )
        if not pending:
            return TickResult(sessions_found=len(sessions), needs_sync=0)

        session = pending[-1]
        item = await self._guarded(
            session,
            self.transfer_session(session, account_id=account_id, scene_mappings=scene_mappings),
        )
        return TickResult(sessions_found=len(sessions), needs_sync=len(pending), result=item)

    async def _guarded(self, session: ExternalSession, work: Awaitable[SyncItem]) -> SyncItem:
        """Turn a per-session failure into an error item."""
        try:
            with log_context(session_id=session.session_id):
                return await work
        except FATAL_ERRORS:
            raise
        except SyncError as e:
            logger.error(
                "sync_session_failed",
                session_id=session.session_id,
                error_kind=e.kind,
                error=str(e),
            )
            return self._error_item(session, str(e), e.kind)
        except Exception as e:
            logger.exception("sync_session_crashed", session_id=session.session_id)
            return self._error_item(session, str(e) or type(e).__name__, "internal")

    def _error_item(self, session: ExternalSession, message: str, kind: str) -> SyncItem:
        return SyncItem(
            session_id=session.session_id,
            title=session.display_title,
            business_date=session.scheduled_start_time,
            status=SyncStatus.ERROR,
            message=message,
            error_kind=kind,
            scene_id=session.scene_id,
        )

    async def _reconcile_session(
        self,
        session: ExternalSession,
        record: KnownRecording | None,
        account_id: str,
        scene_mappings: dict[str, SceneMapping],
    ) -> SyncItem:
        if not _is_stored(record):
            return await self.transfer_session(
                session, account_id=account_id, scene_mappings=scene_mappings
            )

        expected = _expected_key(session, record)
        if expected and expected != record.storage_key:
            return await self._migrate(session, record, expected)

        return SyncItem(
            session_id=session.session_id,
            title=session.display_title,
            business_date=session.scheduled_start_time,
            status=SyncStatus.SYNCED,
            message="Already synced",
            storage_key=record.storage_key,
            scene_id=session.scene_id,
            organization_id=record.organization_id,
        )

    async def _migrate(
        self,
        session: ExternalSession,
        record: KnownRecording,
        dest_key: str,
    ) -> SyncItem:
        """Move a stored object to its re-derived key and repoint the record.

        A missing source leaves the record untouched, unless the object is
        already at ``dest_key`` (an earlier move whose record update failed),
        in which case only the record is repointed.
        """
        source_key = record.storage_key
        if not await self.store.exists(source_key):
            if await self.store.exists(dest_key):
                logger.warning(
                    "sync_migration_record_repointed",
                    session_id=session.session_id,
                    source_key=source_key,
                    dest_key=dest_key,
                )
                with database_scope(self.session_factory) as db:
                    update_storage_key(db, record.id, dest_key)
                return SyncItem(
                    session_id=session.session_id,
                    title=session.display_title,
                    business_date=session.scheduled_start_time,
                    status=SyncStatus.MIGRATED,
                    message="Already at correct path, record updated",
                    storage_key=dest_key,
                    scene_id=session.scene_id,
                    organization_id=record.organization_id,
                )

            logger.error(
                "sync_migration_source_missing",
                session_id=session.session_id,
                source_key=source_key,
                dest_key=dest_key,
            )
            return self._error_item(
                session, "Source file not found in storage", NotFoundError.kind
            )

        await self.store.move(source_key, dest_key)
        with database_scope(self.session_factory) as db:
            update_storage_key(db, record.id, dest_key)

        logger.info(
            "sync_session_migrated",
            session_id=session.session_id,
            source_key=source_key,
            dest_key=dest_key,
        )
        return SyncItem(
            session_id=session.session_id,
            title=session.display_title,
            business_date=session.scheduled_start_time,
            status=SyncStatus.MIGRATED,
            message="Moved to correct path",
            storage_key=dest_key,
            scene_id=session.scene_id,
            organization_id=record.organization_id,
        )

    # =========================================================================
    # Transfer
    # =========================================================================

    async def transfer_session(
        self,
        session: ExternalSession,
        account_id: str | None = None,
        scene_mappings: dict[str, SceneMapping] | None = None,
    ) -> SyncItem:
        """Copy one session's recording into storage and publish its record.

        Returns a PROCESSING item when the export is not ready within the
        wait budget; nothing is written in that case.

        Raises:
            NotFoundError: If the session has no live production.
            UpstreamError: If the platform fails.
            StorageError: If the upload fails.
            DatabaseError: If the record cannot be written.
        """
        log = logger.bind(session_id=session.session_id)

        production = await self.directory.find_live_production(session.session_id)
        key = derive_key(
            session.session_id, production.production_id, session.scheduled_start_time
        )

        if scene_mappings is None:
            with database_scope(self.session_factory) as db:
                scene_mappings = load_scene_mappings(db)
        organization_id, venue_name = await self._resolve_venue(
            session, scene_mappings, account_id
        )

        existing = await self.store.head(key)
        if existing is not None:
            with database_scope(self.session_factory) as db:
                upsert_recording(
                    db,
                    self._upsert_values(
                        session,
                        production.production_id,
                        key,
                        existing.size_bytes,
                        organization_id,
                        venue_name,
                    ),
                )
            log.info("sync_session_already_stored", storage_key=key)
            return SyncItem(
                session_id=session.session_id,
                title=session.display_title,
                business_date=session.scheduled_start_time,
                status=SyncStatus.SYNCED,
                message="Already in storage",
                storage_key=key,
                scene_id=session.scene_id,
                organization_id=organization_id,
            )

        export = await self.directory.get_or_create_download_export(production.production_id)
        poll = await wait_for_export(
            self.directory,
            export.export_id,
            interval=self.poll_interval,
            max_wait=self.max_wait,
            clock=self._clock,
            sleep=self._sleep,
        )
        if not poll.is_ready:
            log.info(
                "sync_session_processing",
                export_id=export.export_id,
                progress=poll.progress_percent,
            )
            return SyncItem(
                session_id=session.session_id,
                title=session.display_title,
                business_date=session.scheduled_start_time,
                status=SyncStatus.PROCESSING,
                message=f"Download processing ({poll.progress_percent}%). Try again later.",
                scene_id=session.scene_id,
                organization_id=organization_id,
            )

        source_url = await self.directory.get_download_locator(export.export_id)
        upload = await self.store.upload_from_url(source_url, key, content_type=VIDEO_CONTENT_TYPE)

        with database_scope(self.session_factory) as db:
            recording = upsert_recording(
                db,
                self._upsert_values(
                    session,
                    production.production_id,
                    upload.key,
                    upload.size_bytes,
                    organization_id,
                    venue_name,
                ),
            )

        log.info("sync_session_transferred", storage_key=upload.key, size_bytes=upload.size_bytes)

        if self.notifier is not None:
            await notify_recording_ready(
                self.notifier,
                self.session_factory,
                recording.id,
                session.display_title,
                session.scheduled_start_time,
                recording.organization_id,
            )

        return SyncItem(
            session_id=session.session_id,
            title=session.display_title,
            business_date=session.scheduled_start_time,
            status=SyncStatus.TRANSFERRED,
            message=f"Transferred {round(upload.size_bytes / 1024 / 1024)}MB to storage",
            storage_key=upload.key,
            scene_id=session.scene_id,
            organization_id=recording.organization_id,
        )

    def _upsert_values(
        self,
        session: ExternalSession,
        production_id: str,
        key: str,
        size_bytes: int | None,
        organization_id: Any,
        venue_name: str | None,
    ) -> RecordingUpsert:
        return RecordingUpsert(
            external_session_id=session.session_id,
            external_production_id=production_id,
            title=session.display_title,
            description=session.description,
            business_date=session.scheduled_start_time,
            storage_bucket=self.store.bucket,
            storage_key=key,
            file_size_bytes=size_bytes,
            organization_id=organization_id,
            venue_name=venue_name,
        )

    async def _resolve_venue(
        self,
        session: ExternalSession,
        scene_mappings: dict[str, SceneMapping],
        account_id: str | None,
    ) -> tuple[Any, str | None]:
        """Resolve the organization and venue name for a session's scene."""
        if not session.scene_id:
            return None, None

        mapping = scene_mappings.get(session.scene_id)
        organization_id = mapping.organization_id if mapping else None
        venue_name = mapping.scene_name if mapping else None

        if not venue_name and account_id:
            names = await self._scene_names_for(account_id)
            venue_name = names.get(session.scene_id)

        return organization_id, venue_name

    async def _scene_names_for(self, account_id: str) -> dict[str, str]:
        if account_id not in self._scene_names:
            try:
                scenes = await self.directory.list_scenes(account_id)
            except FATAL_ERRORS:
                raise
            except SyncError as e:
                logger.warning("scene_list_failed", account_id=account_id, error=str(e))
                scenes = []
            self._scene_names[account_id] = {scene.scene_id: scene.name for scene in scenes}
        return self._scene_names[account_id]

    # =========================================================================
    # Backfill
    # =========================================================================

    async def backfill(self, account_id: str) -> BackfillReport:
        """Register recordings already in storage but missing from the metadata store.

        Never transfers anything: sessions whose canonical key is absent are
        reported as NO_OBJECT.
        """
        with database_scope(self.session_factory) as db:
            known = load_known_recordings(db)
        sessions = await self.directory.list_finished_sessions(account_id)

        report = BackfillReport()
        for session in sessions:
            if session.session_id in known:
                report.items.append(
                    BackfillItem(
                        session_id=session.session_id,
                        title=session.display_title,
                        status=BackfillStatus.EXISTS,
                        message="Already in database",
                    )
                )
                continue

            try:
                report.items.append(await self._backfill_session(session))
            except FATAL_ERRORS:
                raise
            except SyncError as e:
                logger.error(
                    "backfill_session_failed",
                    session_id=session.session_id,
                    error_kind=e.kind,
                    error=str(e),
                )
                report.items.append(
                    BackfillItem(
                        session_id=session.session_id,
                        title=session.display_title,
                        status=BackfillStatus.ERROR,
                        message=str(e),
                        error_kind=e.kind,
                    )
                )

        logger.info(
            "backfill_completed",
            account_id=account_id,
            total=len(report.items),
            added=report.count(BackfillStatus.ADDED),
            errors=report.count(BackfillStatus.ERROR),
        )
        return report

    async def _backfill_session(self, session: ExternalSession) -> BackfillItem:
        production = await self.directory.find_live_production(session.session_id)
        key = derive_key(
            session.session_id, production.production_id, session.scheduled_start_time
        )

        metadata = await self.store.head(key)
        if metadata is None:
            return BackfillItem(
                session_id=session.session_id,
                title=session.display_title,
                status=BackfillStatus.NO_OBJECT,
                message="Not in storage",
                storage_key=key,
            )

        with database_scope(self.session_factory) as db:
            inserted = insert_backfilled_recording(
                db,
                self._upsert_values(
                    session, production.production_id, key, metadata.size_bytes, None, None
                ),
            )

        if not inserted:
            return BackfillItem(
                session_id=session.session_id,
                title=session.display_title,
                status=BackfillStatus.EXISTS,
                message="Already in database",
            )

        logger.info("backfill_session_added", session_id=session.session_id, storage_key=key)
        return BackfillItem(
            session_id=session.session_id,
            title=session.display_title,
            status=BackfillStatus.ADDED,
            message="Added to database",
            storage_key=key,
        )
