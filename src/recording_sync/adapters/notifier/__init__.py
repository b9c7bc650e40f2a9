"""Notification adapters."""

from recording_sync.adapters.notifier.base import Notifier, RecordingReadyEmail
from recording_sync.adapters.notifier.resend import ResendNotifier
from recording_sync.adapters.notifier.stub import StubNotifier

__all__ = [
    "Notifier",
    "RecordingReadyEmail",
    "ResendNotifier",
    "StubNotifier",
]
