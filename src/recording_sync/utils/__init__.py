"""Utility helpers."""

from recording_sync.utils.async_utils import run_async

__all__ = ["run_async"]
