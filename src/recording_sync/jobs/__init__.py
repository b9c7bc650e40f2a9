"""Celery job definitions."""

from recording_sync.jobs.sync_tasks import (
    backfill_task,
    run_sync_task,
    scheduled_tick_task,
)

__all__ = [
    "backfill_task",
    "run_sync_task",
    "scheduled_tick_task",
]
