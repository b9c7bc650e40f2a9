"""Resend transactional email notifier."""

from html import escape

import httpx

from recording_sync.adapters.notifier.base import Notifier, RecordingReadyEmail
from recording_sync.config import settings
from recording_sync.logging import get_logger

logger = get_logger(__name__)

RESEND_API_URL = "https://api.resend.com/emails"


def render_recording_ready_html(email: RecordingReadyEmail, app_url: str) -> str:
    """Render the HTML body of a recording-ready email."""
    venue_html = (
        f'<p style="font-size: 14px; color: #b9baa3; margin: 0;">{escape(email.venue_name)}</p>'
        if email.venue_name
        else ""
    )
    return f"""
    <html>
    <body style="font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;">
      <div style="max-width: 500px; margin: 0 auto;">
        <p style="font-size: 16px; line-height: 1.6;">Your recording is ready to watch:</p>
        <div style="padding: 16px; border-radius: 8px; margin-bottom: 24px;">
          <p style="font-size: 18px; font-weight: 500; margin: 0 0 4px 0;">{escape(email.recording_title)}</p>
          <p style="font-size: 14px; margin: 0;">{escape(email.match_date)}</p>
          {venue_html}
        </div>
        <a href="{app_url}/recordings">Watch now</a>
      </div>
    </body>
    </html>
    """


class ResendNotifier(Notifier):
    """Sends notifications through the Resend API."""

    def __init__(
        self,
        api_key: str | None = None,
        from_email: str | None = None,
        app_url: str | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.api_key = api_key or settings.resend_api_key
        self.from_email = from_email or settings.notify_from_email
        self.app_url = (app_url or settings.app_url).rstrip("/")
        self._client = client

        if not self.api_key:
            logger.warning("resend_api_key_missing")

    @property
    def name(self) -> str:
        return "resend"

    async def send_recording_ready(self, email: RecordingReadyEmail) -> None:
        if not self.api_key:
            raise RuntimeError("Resend API key not configured")

        payload = {
            "from": self.from_email,
            "to": email.to_email,
            "subject": f'Your recording is ready: "{email.recording_title}"',
            "html": render_recording_ready_html(email, self.app_url),
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        if self._client is not None:
            response = await self._client.post(RESEND_API_URL, json=payload, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.post(RESEND_API_URL, json=payload, headers=headers)
        response.raise_for_status()

        logger.info("recording_ready_email_sent", to=email.to_email, title=email.recording_title)
