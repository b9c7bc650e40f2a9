"""Tests for Celery task wiring."""

from datetime import UTC, datetime
from unittest.mock import patch

from recording_sync.jobs.sync_tasks import backfill_task, run_sync_task, scheduled_tick_task
from recording_sync.worker import build_beat_schedule, celery_app

MATCH_START = datetime(2024, 6, 15, 18, 0, tzinfo=UTC)


def test_beat_schedule_registers_tick() -> None:
    schedule = build_beat_schedule()

    assert schedule["sync-recordings-tick"]["task"] == "sync.scheduled_tick"
    assert schedule["sync-recordings-tick"]["schedule"] == 900.0


def test_tasks_registered() -> None:
    assert "sync.scheduled_tick" in celery_app.tasks
    assert "sync.run_sync" in celery_app.tasks
    assert "sync.backfill" in celery_app.tasks


def test_scheduled_tick_runs_one_session(reconciler, directory, store) -> None:
    directory.add_session("S1", MATCH_START, production_id="P1")
    directory.add_session("S2", MATCH_START, production_id="P2")

    with patch("recording_sync.services.providers.build_reconciler", return_value=reconciler):
        result = scheduled_tick_task.apply().get()

    assert result["message"] == "Sync completed"
    assert result["gamesFound"] == 2
    assert result["needsSync"] == 2
    assert result["result"]["gameId"] == "S2"
    assert store.uploads == ["recordings/2024-06-15/S2/P2.mp4"]


def test_run_sync_task(reconciler, directory) -> None:
    directory.add_session("S1", MATCH_START, production_id="P1")

    with patch("recording_sync.services.providers.build_reconciler", return_value=reconciler):
        result = run_sync_task.apply(kwargs={"session_id": "S1"}).get()

    assert result["transferred"] == 1


def test_backfill_task(reconciler, directory) -> None:
    directory.add_session("S1", MATCH_START, production_id="P1")

    with patch("recording_sync.services.providers.build_reconciler", return_value=reconciler):
        result = backfill_task.apply().get()

    assert result["noObject"] == 1
