"""Database layer."""

from recording_sync.db.models import (
    AccessRightModel,
    Base,
    OrganizationModel,
    ProfileModel,
    RecordingModel,
    SceneVenueMappingModel,
)
from recording_sync.db.session import get_session, get_session_context, init_db

__all__ = [
    "Base",
    "get_session",
    "get_session_context",
    "init_db",
    # Models
    "AccessRightModel",
    "OrganizationModel",
    "ProfileModel",
    "RecordingModel",
    "SceneVenueMappingModel",
]
