"""Tests for the bounded export wait."""

import pytest

from recording_sync.adapters.directory.stub import StubSessionDirectory
from recording_sync.domain.enums import ExportState
from recording_sync.services.polling import wait_for_export


@pytest.mark.asyncio
async def test_ready_on_first_poll(directory: StubSessionDirectory, clock) -> None:
    """An export already at 100% returns without sleeping."""
    result = await wait_for_export(directory, "E1", clock=clock, sleep=clock.sleep)

    assert result.state == ExportState.READY
    assert result.is_ready
    assert result.polls == 1
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_ready_after_progress(directory: StubSessionDirectory, clock) -> None:
    """Polling continues at the interval until progress reaches 100."""
    directory.progress_scripts["E1"] = [10, 55, 100]

    result = await wait_for_export(directory, "E1", interval=5, clock=clock, sleep=clock.sleep)

    assert result.is_ready
    assert result.polls == 3
    assert clock.sleeps == [5, 5]


@pytest.mark.asyncio
async def test_never_ready_reports_processing(directory: StubSessionDirectory, clock) -> None:
    """A stuck export stops within max_wait plus one interval."""
    directory.progress_scripts["E1"] = [42]

    result = await wait_for_export(
        directory, "E1", interval=5, max_wait=600, clock=clock, sleep=clock.sleep
    )

    assert result.state == ExportState.PROCESSING
    assert result.progress_percent == 42
    assert result.elapsed_seconds <= 600 + 5
    assert clock.now <= 600 + 5
    # Stops before a sleep that would reach the budget
    assert clock.now + 5 >= 600


@pytest.mark.asyncio
async def test_max_wait_smaller_than_interval(directory: StubSessionDirectory, clock) -> None:
    """With a budget shorter than one interval only a single poll is made."""
    directory.progress_scripts["E1"] = [0]

    result = await wait_for_export(
        directory, "E1", interval=5, max_wait=3, clock=clock, sleep=clock.sleep
    )

    assert result.state == ExportState.PROCESSING
    assert result.polls == 1
    assert clock.sleeps == []
