"""Celery tasks for recording synchronization."""

from typing import Any

from recording_sync.logging import get_logger
from recording_sync.services.providers import run_with_reconciler
from recording_sync.utils import run_async
from recording_sync.worker import celery_app

logger = get_logger(__name__)


@celery_app.task(bind=True, name="sync.scheduled_tick")
def scheduled_tick_task(self: Any, account_key: str | None = None) -> dict[str, Any]:
    """Transfer the oldest pending recording, if any.

    Runs on the beat schedule. Processing a single session per tick keeps
    each run well inside the task time limit; a backlog drains over
    successive ticks.

    Returns:
        Tick result dict
    """
    task_id = self.request.id
    logger.info("sync_tick_task_started", task_id=task_id, account_key=account_key)

    result = run_async(
        run_with_reconciler(account_key, lambda r, account_id: r.sync_next(account_id))
    )

    logger.info(
        "sync_tick_task_completed",
        task_id=task_id,
        sessions_found=result.sessions_found,
        needs_sync=result.needs_sync,
        status=result.result.status.value if result.result else None,
    )
    return result.to_dict()


@celery_app.task(bind=True, name="sync.run_sync")
def run_sync_task(
    self: Any,
    session_id: str | None = None,
    account_key: str | None = None,
) -> dict[str, Any]:
    """Sync every finished session, or only ``session_id``.

    Returns:
        Sync summary dict
    """
    task_id = self.request.id
    logger.info("sync_task_started", task_id=task_id, session_id=session_id)

    summary = run_async(
        run_with_reconciler(
            account_key,
            lambda r, account_id: r.run_sync(account_id, target_session_id=session_id),
        )
    )

    logger.info(
        "sync_task_completed",
        task_id=task_id,
        total=summary.total,
        errors=summary.errors,
    )
    return summary.to_dict()


@celery_app.task(bind=True, name="sync.backfill")
def backfill_task(self: Any, account_key: str | None = None) -> dict[str, Any]:
    """Register recordings already in storage but missing from the database.

    Returns:
        Backfill report dict
    """
    task_id = self.request.id
    logger.info("backfill_task_started", task_id=task_id)

    report = run_async(
        run_with_reconciler(account_key, lambda r, account_id: r.backfill(account_id))
    )

    logger.info("backfill_task_completed", task_id=task_id, total=len(report.items))
    return report.to_dict()
