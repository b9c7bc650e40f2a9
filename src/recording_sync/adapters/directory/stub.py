"""Stub session directory for local runs and tests."""

from collections.abc import Iterable
from datetime import UTC, datetime
from itertools import count

from recording_sync.adapters.directory.base import SessionDirectory
from recording_sync.domain.enums import ExportKind, ProductionType, SessionState
from recording_sync.domain.errors import NotFoundError
from recording_sync.domain.models import ExportJob, ExternalSession, Production, Scene
from recording_sync.logging import get_logger

logger = get_logger(__name__)


class StubSessionDirectory(SessionDirectory):
    """In-memory directory that simulates the external platform.

    Export progress is scripted per export: each poll consumes the next value
    of the script and the last value repeats once the script is exhausted.
    Exports without a script report 100.
    """

    def __init__(self, scenes: Iterable[Scene] = ()) -> None:
        self.sessions: list[ExternalSession] = []
        self.productions: dict[str, list[Production]] = {}
        self.exports: dict[str, list[ExportJob]] = {}
        self.progress_scripts: dict[str, list[int]] = {}
        self.scenes: list[Scene] = list(scenes)
        self.created_exports: list[str] = []
        self.polls: dict[str, int] = {}
        self.failures: dict[tuple[str, str], Exception] = {}
        self._ids = count(1)

    @property
    def name(self) -> str:
        return "stub"

    def add_session(
        self,
        session_id: str,
        scheduled_start_time: datetime | None = None,
        production_id: str | None = None,
        title: str | None = None,
        description: str | None = None,
        scene_id: str | None = None,
        state: SessionState = SessionState.FINISHED,
        production_type: ProductionType = ProductionType.LIVE,
        progress: Iterable[int] | None = None,
        with_export: bool = False,
    ) -> ExternalSession:
        """Register a session with one production (and optionally its export)."""
        session = ExternalSession(
            session_id=session_id,
            state=state,
            scheduled_start_time=scheduled_start_time or datetime.now(UTC),
            title=title,
            description=description,
            scene_id=scene_id,
        )
        self.sessions.append(session)

        if production_id:
            self.productions.setdefault(session_id, []).append(
                Production(
                    production_id=production_id,
                    session_id=session_id,
                    type=production_type,
                )
            )
            if with_export:
                export = ExportJob(
                    export_id=f"{production_id}-download",
                    production_id=production_id,
                    kind=ExportKind.DOWNLOAD,
                )
                self.exports.setdefault(production_id, []).append(export)
                if progress is not None:
                    self.progress_scripts[export.export_id] = list(progress)
            elif progress is not None:
                # Applies to the export created on first request.
                self.progress_scripts[f"{production_id}-download"] = list(progress)
        return session

    def fail(self, operation: str, target: str, error: Exception) -> None:
        """Make ``operation`` raise ``error`` for the given session/production/export id."""
        self.failures[(operation, target)] = error

    def _maybe_fail(self, operation: str, target: str) -> None:
        error = self.failures.get((operation, target))
        if error is not None:
            raise error

    async def list_finished_sessions(self, account_id: str) -> list[ExternalSession]:
        self._maybe_fail("list_finished_sessions", account_id)
        return [s for s in self.sessions if s.is_finished]

    async def get_productions(self, session_id: str) -> list[Production]:
        self._maybe_fail("get_productions", session_id)
        return list(self.productions.get(session_id, []))

    async def list_exports(self, production_id: str) -> list[ExportJob]:
        self._maybe_fail("list_exports", production_id)
        return list(self.exports.get(production_id, []))

    async def create_download_export(self, production_id: str) -> ExportJob:
        self._maybe_fail("create_download_export", production_id)
        export = ExportJob(
            export_id=f"{production_id}-download",
            production_id=production_id,
            kind=ExportKind.DOWNLOAD,
        )
        if any(e.export_id == export.export_id for e in self.exports.get(production_id, [])):
            export.export_id = f"{production_id}-download-{next(self._ids)}"
        self.exports.setdefault(production_id, []).append(export)
        self.created_exports.append(export.export_id)
        logger.info("stub_export_created", production_id=production_id, export_id=export.export_id)
        return export

    async def poll_export_progress(self, export_id: str) -> int:
        self._maybe_fail("poll_export_progress", export_id)
        self.polls[export_id] = self.polls.get(export_id, 0) + 1
        script = self.progress_scripts.get(export_id)
        if not script:
            return 100
        value = script[0] if len(script) == 1 else script.pop(0)
        return value

    async def get_download_locator(self, export_id: str) -> str:
        self._maybe_fail("get_download_locator", export_id)
        if not any(e.export_id == export_id for exports in self.exports.values() for e in exports):
            raise NotFoundError(f"Unknown export {export_id}")
        return f"https://downloads.example.com/{export_id}.mp4"

    async def list_scenes(self, account_id: str) -> list[Scene]:
        return list(self.scenes)
