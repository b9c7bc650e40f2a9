"""Base interface for notification dispatch."""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass
class RecordingReadyEmail:
    """Content of a recording-ready notification."""

    to_email: str
    recording_title: str
    match_date: str
    venue_name: str | None = None


class Notifier(ABC):
    """Abstract notification sender.

    Implementations:
    - ResendNotifier: Transactional email via the Resend HTTP API
    - StubNotifier: Records messages in memory
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @abstractmethod
    async def send_recording_ready(self, email: RecordingReadyEmail) -> None:
        """Send one recording-ready email. Raises on delivery failure."""
        ...
