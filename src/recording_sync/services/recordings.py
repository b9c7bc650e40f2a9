"""Metadata store access for recordings.

Every write is a single-row statement scoped by the external session id.
SQLAlchemy failures surface as DatabaseError.
"""

from collections.abc import Callable, Generator
from contextlib import AbstractContextManager, contextmanager
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from recording_sync.db.models import (
    AccessRightModel,
    OrganizationModel,
    ProfileModel,
    RecordingModel,
    SceneVenueMappingModel,
)
from recording_sync.domain.enums import RecordingStatus
from recording_sync.domain.errors import DatabaseError
from recording_sync.domain.models import KnownRecording, RecordingUpsert, SceneMapping
from recording_sync.logging import get_logger

logger = get_logger(__name__)

SessionFactory = Callable[[], AbstractContextManager[Session]]


@contextmanager
def database_scope(factory: SessionFactory) -> Generator[Session, None, None]:
    """Open a transactional session, translating SQLAlchemy errors."""
    try:
        with factory() as session:
            yield session
    except SQLAlchemyError as e:
        raise DatabaseError(f"Database error: {e}") from e


def _snapshot(model: RecordingModel) -> KnownRecording:
    return KnownRecording(
        id=model.id,
        external_session_id=model.external_session_id or "",
        external_production_id=model.external_production_id,
        storage_key=model.storage_key,
        status=model.status,
        organization_id=model.organization_id,
    )


def _insert_for(session: Session) -> Any:
    """Return the dialect's INSERT construct supporting ON CONFLICT."""
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert
    if dialect == "sqlite":
        return sqlite.insert
    raise DatabaseError(f"Upsert not supported on dialect {dialect}")


# =============================================================================
# Reads
# =============================================================================


def load_known_recordings(session: Session) -> dict[str, KnownRecording]:
    """Load every recording that references an external session, keyed by session id."""
    rows = session.execute(
        select(RecordingModel)
        .where(RecordingModel.external_session_id.is_not(None))
        .execution_options(populate_existing=True)
    ).scalars()
    return {row.external_session_id: _snapshot(row) for row in rows if row.external_session_id}


def get_recording_by_session(session: Session, session_id: str) -> KnownRecording | None:
    row = session.execute(
        select(RecordingModel)
        .where(RecordingModel.external_session_id == session_id)
        .execution_options(populate_existing=True)
    ).scalar_one_or_none()
    return _snapshot(row) if row else None


def load_scene_mappings(session: Session) -> dict[str, SceneMapping]:
    rows = session.execute(select(SceneVenueMappingModel)).scalars()
    return {
        row.scene_id: SceneMapping(
            scene_id=row.scene_id,
            organization_id=row.organization_id,
            scene_name=row.scene_name,
        )
        for row in rows
    }


def get_organization_name(session: Session, organization_id: Any) -> str | None:
    if organization_id is None:
        return None
    return session.execute(
        select(OrganizationModel.name).where(OrganizationModel.id == organization_id)
    ).scalar_one_or_none()


def list_recipient_emails(session: Session, recording_id: Any) -> list[str]:
    """Emails of everyone with active access to a recording, de-duplicated.

    Covers both registered users (via their profile) and invited addresses.
    """
    rights = session.execute(
        select(AccessRightModel.user_id, AccessRightModel.invited_email).where(
            AccessRightModel.match_recording_id == recording_id,
            AccessRightModel.is_active.is_(True),
        )
    ).all()

    user_ids = [user_id for user_id, _ in rights if user_id is not None]
    user_emails: list[str] = []
    if user_ids:
        user_emails = [
            email
            for email in session.execute(
                select(ProfileModel.email).where(ProfileModel.user_id.in_(user_ids))
            ).scalars()
            if email
        ]

    invited = [email for _, email in rights if email]
    return list(dict.fromkeys([*user_emails, *invited]))


# =============================================================================
# Writes
# =============================================================================


def upsert_recording(session: Session, values: RecordingUpsert) -> KnownRecording:
    """Insert or update the recording for ``values.external_session_id``.

    The conflict target is the external session id, so concurrent or repeated
    calls for the same session never produce a second row. An existing
    organization is kept when none was resolved.
    """
    insert = _insert_for(session)
    now = datetime.now(UTC)

    stmt = insert(RecordingModel).values(
        id=uuid4(),
        external_session_id=values.external_session_id,
        external_production_id=values.external_production_id,
        organization_id=values.organization_id,
        title=values.title,
        description=values.description,
        business_date=values.business_date,
        venue_name=values.venue_name,
        storage_bucket=values.storage_bucket,
        storage_key=values.storage_key,
        file_size_bytes=values.file_size_bytes,
        status=RecordingStatus.PUBLISHED.value,
        transferred_at=now,
    )
    stmt = stmt.on_conflict_do_update(
        index_elements=[RecordingModel.external_session_id],
        set_={
            "external_production_id": stmt.excluded.external_production_id,
            "organization_id": func.coalesce(
                stmt.excluded.organization_id, RecordingModel.organization_id
            ),
            "title": stmt.excluded.title,
            "description": stmt.excluded.description,
            "business_date": stmt.excluded.business_date,
            "venue_name": func.coalesce(stmt.excluded.venue_name, RecordingModel.venue_name),
            "storage_bucket": stmt.excluded.storage_bucket,
            "storage_key": stmt.excluded.storage_key,
            "file_size_bytes": stmt.excluded.file_size_bytes,
            "status": stmt.excluded.status,
            "transferred_at": stmt.excluded.transferred_at,
            "updated_at": now,
        },
    )
    session.execute(stmt)
    session.flush()

    recording = get_recording_by_session(session, values.external_session_id)
    if recording is None:
        raise DatabaseError(f"Upsert for {values.external_session_id} returned no row")

    logger.info(
        "recording_upserted",
        session_id=values.external_session_id,
        recording_id=str(recording.id),
        storage_key=values.storage_key,
    )
    return recording


def insert_backfilled_recording(session: Session, values: RecordingUpsert) -> bool:
    """Insert a published recording for an object found in storage.

    Does nothing if a row for the session already exists. Returns whether
    a row was inserted.
    """
    insert = _insert_for(session)
    stmt = (
        insert(RecordingModel)
        .values(
            id=uuid4(),
            external_session_id=values.external_session_id,
            external_production_id=values.external_production_id,
            organization_id=values.organization_id,
            title=values.title,
            description=values.description,
            business_date=values.business_date,
            venue_name=values.venue_name,
            storage_bucket=values.storage_bucket,
            storage_key=values.storage_key,
            file_size_bytes=values.file_size_bytes,
            status=RecordingStatus.PUBLISHED.value,
            transferred_at=datetime.now(UTC),
        )
        .on_conflict_do_nothing(index_elements=[RecordingModel.external_session_id])
    )
    result = session.execute(stmt)
    return bool(result.rowcount)


def update_storage_key(session: Session, recording_id: Any, storage_key: str) -> None:
    """Point an existing recording at a new key.

    Raises:
        DatabaseError: If the recording no longer exists.
    """
    result = session.execute(
        update(RecordingModel)
        .where(RecordingModel.id == recording_id)
        .values(storage_key=storage_key, updated_at=datetime.now(UTC))
    )
    if result.rowcount == 0:
        raise DatabaseError(f"Recording {recording_id} not found for key update")
