"""In-memory scan store.

Dict-backed :class:`IScanStore` used by the CLI's ``--no-persist`` mode
and by tests.  State lives for the lifetime of the instance only.
"""

from __future__ import annotations

from datetime import datetime, timezone

from src.interfaces.scan_store import IScanStore
from src.models.extraction import Extraction
from src.models.result import ScanResult
from src.models.scan import ImageKind, ScanImage, ScanSession, SessionStatus
from src.utils.errors import PersistenceError


class InMemoryScanStore(IScanStore):
    """Keeps every record in plain dicts keyed by session id."""

    def __init__(self) -> None:
        self._sessions: dict[str, ScanSession] = {}
        self._images: dict[str, list[ScanImage]] = {}
        self._extractions: dict[str, list[list[Extraction]]] = {}
        self._results: dict[str, ScanResult] = {}

    async def initialize(self) -> None:
        return None

    async def create_session(self, user_id: str, media_type: str = "cd") -> ScanSession:
        session = ScanSession(user_id=user_id, media_type=media_type)
        self._sessions[session.id] = session
        return session

    async def get_session(self, session_id: str) -> ScanSession | None:
        return self._sessions.get(session_id)

    async def update_status(self, session_id: str, status: SessionStatus) -> ScanSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise PersistenceError(
                message=f"Scan session {session_id} not found",
                provider_name=self.get_provider_name(),
            )
        updated = session.model_copy(
            update={"status": status, "updated_at": datetime.now(tz=timezone.utc)}  # noqa: UP017
        )
        self._sessions[session_id] = updated
        return updated

    async def list_sessions(self, user_id: str, limit: int = 50) -> list[ScanSession]:
        owned = [s for s in self._sessions.values() if s.user_id == user_id]
        owned.sort(key=lambda s: s.created_at, reverse=True)
        return owned[:limit]

    async def add_images(self, session_id: str, image_refs: list[str]) -> list[ScanImage]:
        images = [
            ScanImage(
                session_id=session_id,
                position=i,
                kind=ImageKind.for_position(i),
                storage_path=ref,
            )
            for i, ref in enumerate(image_refs)
        ]
        self._images.setdefault(session_id, []).extend(images)
        return images

    def get_images(self, session_id: str) -> list[ScanImage]:
        return list(self._images.get(session_id, []))

    async def add_extractions(
        self,
        session_id: str,
        extractions: list[Extraction],
        extractor_version: str,
    ) -> None:
        self._extractions.setdefault(session_id, []).append(list(extractions))

    async def get_extractions(self, session_id: str) -> list[Extraction]:
        runs = self._extractions.get(session_id)
        return list(runs[-1]) if runs else []

    async def upsert_result(self, result: ScanResult) -> None:
        self._results[result.session_id] = result

    async def get_result(self, session_id: str) -> ScanResult | None:
        return self._results.get(session_id)

    def get_provider_name(self) -> str:
        return "memory_scan_store"
