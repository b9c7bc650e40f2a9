"""Recording sync endpoints (API-key protected)."""

from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError

from recording_sync.api.deps import ApiKeyDep, ReconcilerDep
from recording_sync.domain.errors import NotFoundError, SyncError
from recording_sync.logging import get_logger

router = APIRouter(prefix="/recordings", tags=["Recordings"], dependencies=[ApiKeyDep])
logger = get_logger(__name__)


class SyncRequest(BaseModel):
    """Optional body for a sync run."""

    game_id: str | None = Field(default=None, alias="gameId")


class RecordingsActionRequest(BaseModel):
    """Body of an admin action on recordings."""

    action: str | None = None


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _read_json(request: Request) -> dict[str, Any]:
    """Return the JSON object body, or an empty dict if there is none."""
    try:
        body = await request.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


@router.get(
    "/sync",
    summary="Sync status",
    description="Classify every finished session as synced, needing sync, or needing migration.",
)
async def get_sync_status(reconciler: ReconcilerDep) -> Any:
    """Read-only status of every finished session."""
    try:
        report = await reconciler.check_status(reconciler.directory.account_id)
    except SyncError as e:
        logger.error("sync_status_failed", error_kind=e.kind, error=str(e))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    return report.to_dict()


@router.post(
    "/sync",
    summary="Run sync",
    description="Transfer or migrate every finished session, or only the given gameId.",
)
async def run_sync(request: Request, reconciler: ReconcilerDep) -> Any:
    """Run a sync, optionally scoped to one session."""
    try:
        body = SyncRequest.model_validate(await _read_json(request))
    except ValidationError:
        body = SyncRequest()

    logger.info("sync_requested", game_id=body.game_id)
    try:
        summary = await reconciler.run_sync(
            reconciler.directory.account_id,
            target_session_id=body.game_id,
        )
    except NotFoundError as e:
        return error_response(status.HTTP_404_NOT_FOUND, str(e))
    except SyncError as e:
        logger.error("sync_request_failed", error_kind=e.kind, error=str(e))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    return summary.to_dict()


@router.post(
    "",
    summary="Recordings admin action",
    description='Run an admin action. Supported: {"action": "backfill"}.',
)
async def recordings_action(request: Request, reconciler: ReconcilerDep) -> Any:
    """Dispatch an admin action on recordings."""
    try:
        body = RecordingsActionRequest.model_validate(await _read_json(request))
    except ValidationError:
        body = RecordingsActionRequest()

    if body.action != "backfill":
        return error_response(
            status.HTTP_400_BAD_REQUEST, 'Invalid action. Use action: "backfill"'
        )

    logger.info("backfill_requested")
    try:
        report = await reconciler.backfill(reconciler.directory.account_id)
    except SyncError as e:
        logger.error("backfill_request_failed", error_kind=e.kind, error=str(e))
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, str(e))
    return report.to_dict()
