"""Spiideo public API client.

Authenticates with OAuth2 client credentials and caches the bearer token on
the client instance, renewing it when it is within five minutes of expiry.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.config import Settings, settings
from recording_sync.domain.enums import ExportKind, SessionState
from recording_sync.domain.errors import (
    AuthenticationError,
    ConfigurationError,
    UpstreamError,
)
from recording_sync.domain.keys import parse_business_date
from recording_sync.domain.models import ExportJob, ExternalSession, Production, Scene
from recording_sync.logging import get_logger

logger = get_logger(__name__)

TOKEN_RENEWAL_MARGIN_SECONDS = 300
MAX_PAGES = 100


@dataclass
class AccountConfig:
    """Resolved credentials for one platform account."""

    key: str
    client_id: str
    client_secret: str
    account_id: str
    user_id: str
    type: str


@dataclass
class TokenCache:
    """Bearer token with its absolute expiry (epoch seconds)."""

    token: str
    expires_at: float

    def is_fresh(self, now: float, margin: float = TOKEN_RENEWAL_MARGIN_SECONDS) -> bool:
        return now < self.expires_at - margin


_ACCOUNT_FIELDS: dict[str, tuple[str, str, str, str]] = {
    # key: (client_id attr, client_secret attr, account_id attr, account type)
    "play": (
        "spiideo_play_client_id",
        "spiideo_play_client_secret",
        "spiideo_play_account_id",
        "play",
    ),
    "perform": (
        "spiideo_perform_client_id",
        "spiideo_perform_client_secret",
        "spiideo_perform_account_id",
        "perform",
    ),
}


def resolve_account_config(
    account_key: str | None = None,
    config: Settings | None = None,
) -> AccountConfig:
    """Resolve an account key to its credential record.

    Raises:
        ConfigurationError: If the key is unknown or credentials are missing.
    """
    config = config or settings
    key = (account_key or config.spiideo_default_account).lower()

    if key not in _ACCOUNT_FIELDS:
        raise ConfigurationError(f"Unknown Spiideo account key: {key}")

    id_attr, secret_attr, account_attr, account_type = _ACCOUNT_FIELDS[key]
    client_id = getattr(config, id_attr)
    client_secret = getattr(config, secret_attr)
    account_id = getattr(config, account_attr)

    if not client_id or not client_secret:
        raise ConfigurationError(f"Spiideo {key} client credentials not configured")
    if not account_id:
        raise ConfigurationError(f"Spiideo {key} account ID not configured")
    if not config.spiideo_api_user_id:
        raise ConfigurationError("Spiideo API user ID not configured (SPIIDEO_API_USER_ID)")

    return AccountConfig(
        key=key,
        client_id=client_id,
        client_secret=client_secret,
        account_id=account_id,
        user_id=config.spiideo_api_user_id,
        type=account_type,
    )


class SpiideoDirectory(SessionDirectory):
    """Session directory backed by the Spiideo public API."""

    def __init__(
        self,
        account: AccountConfig,
        api_base: str | None = None,
        token_url: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.account = account
        self.api_base = (api_base or settings.spiideo_api_base).rstrip("/")
        self.token_url = token_url or settings.spiideo_token_url
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout or settings.spiideo_request_timeout
        )
        self._clock = clock
        self._token: TokenCache | None = None

    @property
    def name(self) -> str:
        return "spiideo"

    @property
    def account_id(self) -> str:
        return self.account.account_id

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    async def get_access_token(self) -> str:
        """Return a cached token, fetching a new one when near expiry.

        Raises:
            AuthenticationError: If the token endpoint rejects the request
                or cannot be reached. Not retried.
        """
        now = self._clock()
        if self._token and self._token.is_fresh(now):
            return self._token.token

        try:
            response = await self._client.post(
                self.token_url,
                data={"grant_type": "client_credentials"},
                auth=(self.account.client_id, self.account.client_secret),
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.RequestError as e:
            raise AuthenticationError(f"Spiideo token request failed: {e}") from e

        if response.status_code != 200:
            raise AuthenticationError(
                f"Failed to get Spiideo access token for {self.account.key}: "
                f"{response.status_code} - {response.text[:200]}"
            )

        try:
            data = response.json()
            token = data["access_token"]
            expires_in = float(data.get("expires_in", 3600))
        except (ValueError, KeyError, TypeError) as e:
            raise AuthenticationError("Malformed Spiideo token response") from e

        self._token = TokenCache(token=token, expires_at=now + expires_in)
        logger.debug("spiideo_token_refreshed", account=self.account.key, expires_in=expires_in)
        return token

    # -------------------------------------------------------------------------
    # Base request
    # -------------------------------------------------------------------------

    async def _send(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None,
        json: Any,
    ) -> httpx.Response:
        token = await self.get_access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/json",
            "X-Spiideo-Api-User": self.account.user_id,
        }
        try:
            return await self._client.request(
                method,
                f"{self.api_base}{path}",
                params=params,
                json=json,
                headers=headers,
            )
        except httpx.RequestError as e:
            raise UpstreamError(f"Spiideo API request failed: {e}") from e

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        """Call the API and decode the JSON body.

        A 401 drops the cached token and the call is retried once with a new
        one. A rejection on a resource call is an ``UpstreamError`` scoped to
        that resource; only token acquisition raises ``AuthenticationError``.
        """
        response = await self._send(method, path, params, json)
        if response.status_code == 401:
            self._token = None
            logger.info("spiideo_token_rejected_retrying", account=self.account.key, path=path)
            response = await self._send(method, path, params, json)

        if response.status_code in (401, 403):
            self._token = None
            raise UpstreamError(
                f"Spiideo API denied access to {path} ({self.account.key}): "
                f"{response.status_code}",
                status_code=response.status_code,
            )

        if not response.is_success:
            raise UpstreamError(
                f"Spiideo API error ({self.account.key}): "
                f"{response.status_code} - {response.text[:200]}",
                status_code=response.status_code,
            )

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise UpstreamError(f"Malformed JSON from Spiideo {path}") from e

    async def _get_paged(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        """Collect all pages of a paged listing."""
        items: list[dict[str, Any]] = []
        query = dict(params)

        for _ in range(MAX_PAGES):
            data = await self._request("GET", path, params=query)
            if not isinstance(data, dict) or not isinstance(data.get("content"), list):
                raise UpstreamError(f"Malformed paged response from Spiideo {path}")
            items.extend(data["content"])

            next_token = (data.get("nextParameters") or {}).get("nextToken")
            if not next_token:
                break
            query = {**params, "nextToken": next_token}

        return items

    # -------------------------------------------------------------------------
    # Parsing
    # -------------------------------------------------------------------------

    @staticmethod
    def _parse_session(raw: dict[str, Any]) -> ExternalSession:
        try:
            return ExternalSession(
                session_id=str(raw["id"]),
                state=raw["state"],
                scheduled_start_time=parse_business_date(raw["scheduledStartTime"]),
                title=raw.get("title") or None,
                description=raw.get("description") or None,
                scene_id=raw.get("sceneId") or None,
            )
        except (KeyError, TypeError, ValueError) as e:
            raise UpstreamError(f"Malformed game in Spiideo response: {e}") from e

    @staticmethod
    def _parse_export(raw: dict[str, Any], production_id: str) -> ExportJob:
        try:
            return ExportJob(
                export_id=str(raw["id"]),
                production_id=str(raw.get("productionId") or production_id),
                kind=raw["outputType"],
            )
        except (KeyError, TypeError) as e:
            raise UpstreamError(f"Malformed output in Spiideo response: {e}") from e

    # -------------------------------------------------------------------------
    # Directory operations
    # -------------------------------------------------------------------------

    def _parse_sessions(self, raw_games: list[dict[str, Any]]) -> list[ExternalSession]:
        """Parse listed games, skipping any that are malformed."""
        sessions: list[ExternalSession] = []
        for raw in raw_games:
            try:
                sessions.append(self._parse_session(raw))
            except UpstreamError as e:
                logger.warning(
                    "spiideo_game_skipped",
                    account=self.account.key,
                    game_id=raw.get("id") if isinstance(raw, dict) else None,
                    error=str(e),
                )
        return sessions

    async def list_sessions(self, account_id: str) -> list[ExternalSession]:
        raw_games = await self._get_paged("/v1/games", {"accountId": account_id})
        return self._parse_sessions(raw_games)

    async def list_finished_sessions(self, account_id: str) -> list[ExternalSession]:
        raw_games = await self._get_paged("/v1/games", {"accountId": account_id})
        # Unfinished games may lack fields (e.g. start time) and are never parsed.
        finished = self._parse_sessions(
            [
                raw
                for raw in raw_games
                if isinstance(raw, dict) and raw.get("state") == SessionState.FINISHED
            ]
        )
        logger.info(
            "spiideo_sessions_listed",
            account_id=account_id,
            total=len(raw_games),
            finished=len(finished),
        )
        return finished

    async def get_productions(self, session_id: str) -> list[Production]:
        raw_productions = await self._get_paged(f"/v1/games/{session_id}/productions", {})
        try:
            return [
                Production(
                    production_id=str(raw["id"]),
                    session_id=raw.get("gameId") or session_id,
                    type=raw["type"],
                    processing_state=raw.get("processingState"),
                )
                for raw in raw_productions
            ]
        except (KeyError, TypeError) as e:
            raise UpstreamError(f"Malformed production in Spiideo response: {e}") from e

    async def list_exports(self, production_id: str) -> list[ExportJob]:
        raw_outputs = await self._get_paged(f"/v1/productions/{production_id}/outputs", {})
        return [self._parse_export(raw, production_id) for raw in raw_outputs]

    async def create_download_export(self, production_id: str) -> ExportJob:
        data = await self._request(
            "POST",
            f"/v1/productions/{production_id}/outputs",
            json={"outputType": ExportKind.DOWNLOAD.value},
        )
        if not isinstance(data, dict):
            raise UpstreamError("Malformed create-output response from Spiideo")
        export = self._parse_export(data, production_id)
        logger.info(
            "spiideo_download_export_created",
            production_id=production_id,
            export_id=export.export_id,
        )
        return export

    async def poll_export_progress(self, export_id: str) -> int:
        data = await self._request("GET", f"/v1/outputs/{export_id}/progress")
        # The endpoint returns a bare integer; older deployments wrap it.
        value = data.get("progress") if isinstance(data, dict) else data
        if isinstance(value, bool) or not isinstance(value, int | float):
            raise UpstreamError(f"Malformed progress for output {export_id}: {data!r}")
        return max(0, min(100, int(value)))

    async def get_download_locator(self, export_id: str) -> str:
        data = await self._request("GET", f"/v1/outputs/{export_id}/download-uri")
        uri = data.get("uri") if isinstance(data, dict) else data
        if not isinstance(uri, str) or not uri:
            raise UpstreamError(f"No download URI for output {export_id}")
        return uri

    async def list_scenes(self, account_id: str) -> list[Scene]:
        raw_scenes = await self._get_paged("/v1/scenes", {"accountId": account_id})
        return [
            Scene(scene_id=str(raw["id"]), name=raw.get("name") or "")
            for raw in raw_scenes
            if raw.get("id")
        ]

    async def test_connection(self) -> dict[str, Any]:
        try:
            await self.get_access_token()
        except AuthenticationError as e:
            return {
                "success": False,
                "provider": self.name,
                "account": self.account.key,
                "account_type": self.account.type,
                "error": str(e),
            }
        return {
            "success": True,
            "provider": self.name,
            "account": self.account.key,
            "account_type": self.account.type,
        }

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
