"""Sync pipeline services."""

from recording_sync.services.notifications import notify_recording_ready
from recording_sync.services.polling import wait_for_export
from recording_sync.services.reconciler import RecordingReconciler

__all__ = [
    "RecordingReconciler",
    "notify_recording_ready",
    "wait_for_export",
]
