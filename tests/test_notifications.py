"""Tests for recording-ready notifications."""

import json
from datetime import UTC, datetime
from uuid import uuid4

import httpx
import pytest

from recording_sync.adapters.notifier.base import RecordingReadyEmail
from recording_sync.adapters.notifier.resend import RESEND_API_URL, ResendNotifier
from recording_sync.db.models import (
    AccessRightModel,
    OrganizationModel,
    ProfileModel,
    RecordingModel,
)
from recording_sync.services.notifications import format_match_date, notify_recording_ready

MATCH_START = datetime(2024, 6, 15, 18, 0, tzinfo=UTC)


def test_format_match_date() -> None:
    assert format_match_date(MATCH_START) == "Saturday, June 15, 2024"
    assert format_match_date(datetime(2024, 3, 2, tzinfo=UTC)) == "Saturday, March 2, 2024"


@pytest.fixture
def recording_with_access(session_factory):
    """A recording at a venue with two profile users and one invite."""
    org_id, recording_id = uuid4(), uuid4()
    alice, bob = uuid4(), uuid4()
    with session_factory() as session:
        session.add(OrganizationModel(id=org_id, name="Riverside FC"))
        session.add_all(
            [
                ProfileModel(user_id=alice, email="alice@example.com"),
                ProfileModel(user_id=bob, email="bob@example.com"),
            ]
        )
        session.add(RecordingModel(id=recording_id, external_session_id="S1", title="Final"))
        session.flush()
        session.add_all(
            [
                AccessRightModel(id=uuid4(), match_recording_id=recording_id, user_id=alice),
                AccessRightModel(id=uuid4(), match_recording_id=recording_id, user_id=bob),
                AccessRightModel(
                    id=uuid4(), match_recording_id=recording_id, invited_email="bob@example.com"
                ),
            ]
        )
    return recording_id, org_id


@pytest.mark.asyncio
async def test_notifies_each_recipient_once(
    notifier, session_factory, recording_with_access
) -> None:
    recording_id, org_id = recording_with_access

    delivered = await notify_recording_ready(
        notifier, session_factory, recording_id, "Final", MATCH_START, org_id
    )

    assert delivered == 2
    assert sorted(m.to_email for m in notifier.sent) == ["alice@example.com", "bob@example.com"]
    assert all(m.venue_name == "Riverside FC" for m in notifier.sent)
    assert all(m.match_date == "Saturday, June 15, 2024" for m in notifier.sent)


@pytest.mark.asyncio
async def test_failed_send_is_swallowed(notifier, session_factory, recording_with_access) -> None:
    recording_id, org_id = recording_with_access
    notifier.failing.add("alice@example.com")

    delivered = await notify_recording_ready(
        notifier, session_factory, recording_id, "Final", MATCH_START, org_id
    )

    assert delivered == 1
    assert [m.to_email for m in notifier.sent] == ["bob@example.com"]


@pytest.mark.asyncio
async def test_lookup_failure_is_swallowed(notifier) -> None:
    def broken_factory():
        raise RuntimeError("database down")

    delivered = await notify_recording_ready(
        notifier, broken_factory, uuid4(), "Final", MATCH_START
    )

    assert delivered == 0
    assert notifier.sent == []


class TestResendNotifier:
    """Test the Resend HTTP notifier."""

    @pytest.mark.asyncio
    async def test_posts_email(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"id": "email-1"})

        notifier = ResendNotifier(
            api_key="re_test",
            from_email="Recordings <noreply@example.com>",
            app_url="https://app.example.com/",
            client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

        await notifier.send_recording_ready(
            RecordingReadyEmail(
                to_email="coach@example.com",
                recording_title="Cup <Final>",
                match_date="Saturday, June 15, 2024",
                venue_name="Riverside FC",
            )
        )

        assert str(requests[0].url) == RESEND_API_URL
        assert requests[0].headers["Authorization"] == "Bearer re_test"
        body = json.loads(requests[0].content)
        assert body["to"] == "coach@example.com"
        assert "Cup &lt;Final&gt;" in body["html"]
        assert "https://app.example.com/recordings" in body["html"]

    @pytest.mark.asyncio
    async def test_error_status_raises(self) -> None:
        notifier = ResendNotifier(
            api_key="re_test",
            client=httpx.AsyncClient(
                transport=httpx.MockTransport(lambda request: httpx.Response(422))
            ),
        )

        with pytest.raises(httpx.HTTPStatusError):
            await notifier.send_recording_ready(
                RecordingReadyEmail("coach@example.com", "Final", "Saturday, June 15, 2024")
            )

    @pytest.mark.asyncio
    async def test_missing_api_key_raises(self) -> None:
        notifier = ResendNotifier(api_key=None)
        notifier.api_key = None

        with pytest.raises(RuntimeError):
            await notifier.send_recording_ready(
                RecordingReadyEmail("coach@example.com", "Final", "Saturday, June 15, 2024")
            )
