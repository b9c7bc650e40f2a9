"""Bridge from synchronous entry points (Celery tasks, CLI) into async code."""

import asyncio
import atexit
import threading
from collections.abc import Coroutine
from typing import Any, TypeVar

T = TypeVar("T")

_local = threading.local()


def _get_runner() -> asyncio.Runner:
    runner = getattr(_local, "runner", None)
    if runner is None:
        runner = asyncio.Runner()
        _local.runner = runner
        atexit.register(runner.close)
    return runner


def run_async(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine to completion from a sync context.

    Each thread keeps a single event loop for its lifetime, so a worker
    process running many tasks does not create a loop per task.

    Args:
        coro: The coroutine to execute.

    Returns:
        The coroutine's result.
    """
    return _get_runner().run(coro)
