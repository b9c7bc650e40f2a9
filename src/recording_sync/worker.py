"""Celery worker configuration."""

from typing import Any

from celery import Celery

from recording_sync.config import settings
from recording_sync.logging import setup_logging

# Setup logging before anything else
setup_logging()

# Create Celery app
celery_app = Celery(
    "recording_sync",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
)


def build_beat_schedule() -> dict[str, dict[str, Any]]:
    """Periodic tasks registered with Celery beat."""
    if not settings.sync_schedule_enabled:
        return {}
    return {
        # One pending recording per tick
        "sync-recordings-tick": {
            "task": "sync.scheduled_tick",
            "schedule": settings.sync_schedule_seconds,
            "args": (),
            "options": {"queue": "sync"},
        },
    }


# Celery configuration
celery_app.conf.update(
    # Task settings
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    # Task execution
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=900,  # 15 minutes max, one export wait plus the upload
    task_soft_time_limit=840,
    # Worker settings
    worker_prefetch_multiplier=1,
    worker_concurrency=2,
    # Result backend
    result_expires=86400,  # 24 hours
    # Task routing
    task_routes={
        "sync.scheduled_tick": {"queue": "sync"},
        "sync.run_sync": {"queue": "sync"},
        "sync.backfill": {"queue": "sync"},
    },
    # Beat scheduler (for periodic tasks)
    beat_schedule=build_beat_schedule(),
)

# Auto-discover tasks
celery_app.autodiscover_tasks(["recording_sync.jobs"])
