"""Base interface for external session directory clients."""

from abc import ABC, abstractmethod
from typing import Any

from recording_sync.domain.enums import ExportKind
from recording_sync.domain.errors import NotFoundError
from recording_sync.domain.models import ExportJob, ExternalSession, Production, Scene


class SessionDirectory(ABC):
    """Abstract client for the external video platform.

    Implementations are stateless per call apart from credential caching;
    waiting on exports is done by the caller (see services.polling).

    Implementations:
    - SpiideoDirectory: Spiideo public API with OAuth2 client credentials
    - StubSessionDirectory: In-memory fake for local runs and tests
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Provider name identifier."""
        ...

    @property
    def account_id(self) -> str:
        """Account the client is bound to."""
        return "default"

    @abstractmethod
    async def list_finished_sessions(self, account_id: str) -> list[ExternalSession]:
        """List every session of the account whose processing state is finished."""
        ...

    @abstractmethod
    async def get_productions(self, session_id: str) -> list[Production]:
        """List productions attached to a session."""
        ...

    @abstractmethod
    async def list_exports(self, production_id: str) -> list[ExportJob]:
        """List exports (outputs) attached to a production."""
        ...

    @abstractmethod
    async def create_download_export(self, production_id: str) -> ExportJob:
        """Request a new download export for a production."""
        ...

    @abstractmethod
    async def poll_export_progress(self, export_id: str) -> int:
        """Return the export's progress percent. Single call, no waiting."""
        ...

    @abstractmethod
    async def get_download_locator(self, export_id: str) -> str:
        """Return a time-limited download URL. Only valid once progress is 100."""
        ...

    async def list_scenes(self, account_id: str) -> list[Scene]:
        """List scenes for venue name lookup. Optional for providers."""
        return []

    async def get_or_create_download_export(self, production_id: str) -> ExportJob:
        """Return the production's download export, creating it only if absent.

        Existing exports are always listed first so that repeated calls (and
        retries across invocations) converge on the same export.
        """
        for export in await self.list_exports(production_id):
            if export.kind == ExportKind.DOWNLOAD:
                return export
        return await self.create_download_export(production_id)

    async def find_live_production(self, session_id: str) -> Production:
        """Return the session's live production.

        Raises:
            NotFoundError: If the session has no live production.
        """
        for production in await self.get_productions(session_id):
            if production.is_live:
                return production
        raise NotFoundError("No live production found")

    async def test_connection(self) -> dict[str, Any]:
        """Check that credentials work. Never raises."""
        return {"success": True, "provider": self.name}

    async def close(self) -> None:
        """Release network resources."""
        return None
