"""Bounded wait for export readiness.

The wait never exceeds ``max_wait`` plus one poll, so an invocation always
returns within its execution budget. A timeout is reported as PROCESSING,
not raised: the export persists upstream and the next invocation finds it
again through get-or-create.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.domain.enums import ExportState
from recording_sync.domain.models import PollResult
from recording_sync.logging import get_logger

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 5.0
DEFAULT_MAX_WAIT = 600.0


async def wait_for_export(
    directory: SessionDirectory,
    export_id: str,
    interval: float = DEFAULT_POLL_INTERVAL,
    max_wait: float = DEFAULT_MAX_WAIT,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> PollResult:
    """Poll an export until it reaches 100% or the wait budget is spent.

    Args:
        directory: Client used for single progress polls
        export_id: Export to wait on
        interval: Seconds between polls
        max_wait: Total wait budget in seconds
        clock: Monotonic time source
        sleep: Awaitable sleep, replaced in tests

    Returns:
        PollResult with state READY or PROCESSING and the last known percent
    """
    started = clock()
    polls = 0
    percent = 0

    while True:
        percent = await directory.poll_export_progress(export_id)
        polls += 1
        elapsed = clock() - started

        logger.debug(
            "export_poll",
            export_id=export_id,
            progress=percent,
            polls=polls,
            elapsed=round(elapsed, 1),
        )

        if percent >= 100:
            logger.info("export_ready", export_id=export_id, polls=polls)
            return PollResult(
                export_id=export_id,
                state=ExportState.READY,
                progress_percent=percent,
                polls=polls,
                elapsed_seconds=elapsed,
            )

        if elapsed + interval >= max_wait:
            logger.warning(
                "export_poll_timeout",
                export_id=export_id,
                progress=percent,
                polls=polls,
                elapsed=round(elapsed, 1),
            )
            return PollResult(
                export_id=export_id,
                state=ExportState.PROCESSING,
                progress_percent=percent,
                polls=polls,
                elapsed_seconds=elapsed,
            )

        await sleep(interval)
