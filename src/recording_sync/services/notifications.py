"""Recording-ready notifications."""

import asyncio
from datetime import datetime
from typing import Any

from recording_sync.adapters.notifier.base import Notifier, RecordingReadyEmail
from recording_sync.logging import get_logger
from recording_sync.services.recordings import (
    SessionFactory,
    database_scope,
    get_organization_name,
    list_recipient_emails,
)

logger = get_logger(__name__)


def format_match_date(value: datetime) -> str:
    """Format a business date like ``Saturday, June 15, 2024``."""
    return f"{value:%A}, {value:%B} {value.day}, {value.year}"


async def notify_recording_ready(
    notifier: Notifier,
    session_factory: SessionFactory,
    recording_id: Any,
    title: str,
    business_date: datetime,
    organization_id: Any = None,
) -> int:
    """Email everyone with active access that a recording is ready.

    Best-effort: lookup and delivery failures are logged and never raised,
    so a completed transfer is never undone by a notification problem.

    Returns:
        Number of emails delivered
    """
    try:
        with database_scope(session_factory) as session:
            venue_name = get_organization_name(session, organization_id)
            recipients = list_recipient_emails(session, recording_id)
    except Exception as e:
        logger.warning(
            "notification_lookup_failed",
            recording_id=str(recording_id),
            error=str(e),
        )
        return 0

    if not recipients:
        return 0

    match_date = format_match_date(business_date)
    results = await asyncio.gather(
        *(
            notifier.send_recording_ready(
                RecordingReadyEmail(
                    to_email=email,
                    recording_title=title,
                    match_date=match_date,
                    venue_name=venue_name,
                )
            )
            for email in recipients
        ),
        return_exceptions=True,
    )

    delivered = 0
    for email, result in zip(recipients, results, strict=True):
        if isinstance(result, BaseException):
            logger.warning(
                "notification_send_failed",
                recording_id=str(recording_id),
                to=email,
                error=str(result),
            )
        else:
            delivered += 1

    logger.info(
        "recording_ready_notified",
        recording_id=str(recording_id),
        recipients=len(recipients),
        delivered=delivered,
    )
    return delivered
