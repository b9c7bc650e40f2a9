"""Stub notifier for local runs and tests."""

from recording_sync.adapters.notifier.base import Notifier, RecordingReadyEmail
from recording_sync.logging import get_logger

logger = get_logger(__name__)


class StubNotifier(Notifier):
    """Keeps sent emails in memory. Addresses in ``failing`` raise."""

    def __init__(self) -> None:
        self.sent: list[RecordingReadyEmail] = []
        self.failing: set[str] = set()

    @property
    def name(self) -> str:
        return "stub"

    async def send_recording_ready(self, email: RecordingReadyEmail) -> None:
        if email.to_email in self.failing:
            raise RuntimeError(f"Mailbox unavailable: {email.to_email}")
        self.sent.append(email)
        logger.info("stub_email_sent", to=email.to_email, title=email.recording_title)
