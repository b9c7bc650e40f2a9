"""SQLAlchemy ORM models."""

from datetime import datetime
from uuid import UUID as PyUUID
from uuid import uuid4

from sqlalchemy import (
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    true,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


# =============================================================================
# Recordings (written by the sync pipeline)
# =============================================================================


class RecordingModel(Base):
    """Match recording ORM model. At most one row per external session."""

    __tablename__ = "match_recordings"
    __table_args__ = (
        UniqueConstraint("external_session_id", name="uq_match_recordings_external_session"),
    )

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    external_session_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    external_production_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organization_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="SET NULL"), nullable=True, index=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    business_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )
    venue_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    storage_bucket: Mapped[str | None] = mapped_column(String(255), nullable=True)
    storage_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    file_size_bytes: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    status: Mapped[str] = mapped_column(String(50), server_default="scheduled", index=True)
    transferred_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=func.now()
    )

    # Relationships
    organization: Mapped["OrganizationModel | None"] = relationship("OrganizationModel")
    access_rights: Mapped[list["AccessRightModel"]] = relationship(
        "AccessRightModel", back_populates="recording", cascade="all, delete-orphan"
    )


# =============================================================================
# Read-only collaborators (owned by the surrounding application)
# =============================================================================


class OrganizationModel(Base):
    """Venue / organization ORM model."""

    __tablename__ = "organizations"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class SceneVenueMappingModel(Base):
    """Maps a camera scene on the external platform to a venue."""

    __tablename__ = "scene_venue_mappings"

    scene_id: Mapped[str] = mapped_column(String(255), primary_key=True)
    organization_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("organizations.id", ondelete="CASCADE"), index=True
    )
    scene_name: Mapped[str | None] = mapped_column(String(255), nullable=True)


class ProfileModel(Base):
    """User profile ORM model (email lookup only)."""

    __tablename__ = "profiles"

    user_id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    email: Mapped[str | None] = mapped_column(String(320), nullable=True)


class AccessRightModel(Base):
    """Grants a user (or an invited email) access to a recording."""

    __tablename__ = "recording_access_rights"

    id: Mapped[PyUUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    match_recording_id: Mapped[PyUUID] = mapped_column(
        Uuid, ForeignKey("match_recordings.id", ondelete="CASCADE"), index=True
    )
    user_id: Mapped[PyUUID | None] = mapped_column(
        Uuid, ForeignKey("profiles.user_id", ondelete="CASCADE"), nullable=True
    )
    invited_email: Mapped[str | None] = mapped_column(String(320), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, server_default=true())
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    recording: Mapped["RecordingModel"] = relationship(
        "RecordingModel", back_populates="access_rights"
    )
