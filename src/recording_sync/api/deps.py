"""FastAPI dependencies."""

import secrets
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, HTTPException, status

from recording_sync.config import settings
from recording_sync.logging import get_logger
from recording_sync.services.providers import build_reconciler
from recording_sync.services.reconciler import RecordingReconciler

logger = get_logger(__name__)


def require_api_key(x_api_key: Annotated[str | None, Header()] = None) -> None:
    """Reject requests whose x-api-key header does not match SYNC_API_KEY.

    With no key configured every request is refused.
    """
    expected = settings.sync_api_key
    if not expected or not x_api_key or not secrets.compare_digest(
        x_api_key.encode(), expected.encode()
    ):
        logger.warning("api_key_rejected", provided=x_api_key is not None)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")


async def get_reconciler() -> AsyncGenerator[RecordingReconciler, None]:
    """Get a reconciler wired from the configured adapters."""
    reconciler = build_reconciler()
    try:
        yield reconciler
    finally:
        await reconciler.directory.close()


ApiKeyDep = Depends(require_api_key)
ReconcilerDep = Annotated[RecordingReconciler, Depends(get_reconciler)]
