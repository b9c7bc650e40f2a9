"""Adapters for external services."""

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.adapters.notifier.base import Notifier
from recording_sync.adapters.storage.base import ObjectStore

__all__ = [
    "Notifier",
    "ObjectStore",
    "SessionDirectory",
]
