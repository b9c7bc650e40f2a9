"""Initial schema

Revision ID: 0001
Revises:
Create Date: 2024-06-01

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Organizations (venues)
    op.create_table(
        "organizations",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # User profiles
    op.create_table(
        "profiles",
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("email", sa.String(320), nullable=True),
        sa.PrimaryKeyConstraint("user_id"),
    )

    # Scene to venue mappings
    op.create_table(
        "scene_venue_mappings",
        sa.Column("scene_id", sa.String(255), nullable=False),
        sa.Column("organization_id", sa.Uuid(), nullable=False),
        sa.Column("scene_name", sa.String(255), nullable=True),
        sa.PrimaryKeyConstraint("scene_id"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_scene_venue_mappings_organization_id", "scene_venue_mappings", ["organization_id"]
    )

    # Match recordings
    op.create_table(
        "match_recordings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("external_session_id", sa.String(255), nullable=True),
        sa.Column("external_production_id", sa.String(255), nullable=True),
        sa.Column("organization_id", sa.Uuid(), nullable=True),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("business_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("venue_name", sa.String(255), nullable=True),
        sa.Column("storage_bucket", sa.String(255), nullable=True),
        sa.Column("storage_key", sa.String(1024), nullable=True),
        sa.Column("file_size_bytes", sa.BigInteger(), nullable=True),
        sa.Column("status", sa.String(50), nullable=False, server_default="scheduled"),
        sa.Column("transferred_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("external_session_id", name="uq_match_recordings_external_session"),
    )
    op.create_index("ix_match_recordings_organization_id", "match_recordings", ["organization_id"])
    op.create_index("ix_match_recordings_business_date", "match_recordings", ["business_date"])
    op.create_index("ix_match_recordings_status", "match_recordings", ["status"])

    # Recording access rights
    op.create_table(
        "recording_access_rights",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("match_recording_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("invited_email", sa.String(320), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["match_recording_id"], ["match_recordings.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["profiles.user_id"], ondelete="CASCADE"),
    )
    op.create_index(
        "ix_recording_access_rights_match_recording_id",
        "recording_access_rights",
        ["match_recording_id"],
    )


def downgrade() -> None:
    op.drop_table("recording_access_rights")
    op.drop_table("match_recordings")
    op.drop_table("scene_venue_mappings")
    op.drop_table("profiles")
    op.drop_table("organizations")
