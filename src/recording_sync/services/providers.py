"""Adapter selection from settings."""

from collections.abc import Awaitable, Callable
from typing import TypeVar

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.adapters.directory.stub import StubSessionDirectory
from recording_sync.adapters.notifier.base import Notifier
from recording_sync.adapters.notifier.stub import StubNotifier
from recording_sync.adapters.storage.base import ObjectStore
from recording_sync.adapters.storage.stub import StubObjectStore
from recording_sync.config import settings
from recording_sync.services.reconciler import RecordingReconciler

T = TypeVar("T")


def get_directory(account_key: str | None = None) -> SessionDirectory:
    """Get the configured session directory client.

    Raises:
        ConfigurationError: If the account's credentials are missing.
    """
    provider = settings.directory_provider.lower()

    if provider == "spiideo":
        from recording_sync.adapters.directory.spiideo import (
            SpiideoDirectory,
            resolve_account_config,
        )

        return SpiideoDirectory(resolve_account_config(account_key))
    else:
        return StubSessionDirectory()


def get_object_store() -> ObjectStore:
    """Get the configured object store."""
    provider = settings.storage_provider.lower()

    if provider == "s3":
        from recording_sync.adapters.storage.s3 import S3ObjectStore

        return S3ObjectStore()
    else:
        return StubObjectStore()


def get_notifier() -> Notifier:
    """Get the configured notifier."""
    provider = settings.notifier_provider.lower()

    if provider == "resend":
        from recording_sync.adapters.notifier.resend import ResendNotifier

        return ResendNotifier()
    else:
        return StubNotifier()


def build_reconciler(account_key: str | None = None) -> RecordingReconciler:
    """Wire a reconciler from the configured adapters."""
    return RecordingReconciler(
        directory=get_directory(account_key),
        store=get_object_store(),
        notifier=get_notifier(),
    )


async def run_with_reconciler(
    account_key: str | None,
    work: Callable[[RecordingReconciler, str], Awaitable[T]],
) -> T:
    """Run ``work(reconciler, account_id)`` and release the directory client."""
    reconciler = build_reconciler(account_key)
    try:
        return await work(reconciler, reconciler.directory.account_id)
    finally:
        await reconciler.directory.close()
