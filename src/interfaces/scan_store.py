"""Abstract base class for scan persistence.

Four record kinds are stored: sessions, images, extractions and results.
Results are upserted by session id with whole-record overwrite; every
other record is insert-only.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.extraction import Extraction
from src.models.result import ScanResult
from src.models.scan import ScanImage, ScanSession, SessionStatus


class IScanStore(ABC):
    """Contract for the scan session/result store."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables/indices if needed.  Called once at startup."""

    @abstractmethod
    async def create_session(self, user_id: str, media_type: str = "cd") -> ScanSession:
        """Insert a new session in ``processing`` status and return it."""

    @abstractmethod
    async def get_session(self, session_id: str) -> ScanSession | None:
        """Return the session, or ``None`` if it does not exist."""

    @abstractmethod
    async def update_status(self, session_id: str, status: SessionStatus) -> ScanSession:
        """Set the session status.

        Raises
        ------
        src.utils.errors.PersistenceError
            If the session does not exist.
        """

    @abstractmethod
    async def list_sessions(self, user_id: str, limit: int = 50) -> list[ScanSession]:
        """Return the user's sessions, newest first."""

    @abstractmethod
    async def add_images(self, session_id: str, image_refs: list[str]) -> list[ScanImage]:
        """Record photo references; kinds are assigned by position."""

    @abstractmethod
    async def add_extractions(
        self,
        session_id: str,
        extractions: list[Extraction],
        extractor_version: str,
    ) -> None:
        """Record one row per extracted field."""

    @abstractmethod
    async def get_extractions(self, session_id: str) -> list[Extraction]:
        """Return the extraction rows of the most recent run for a session."""

    @abstractmethod
    async def upsert_result(self, result: ScanResult) -> None:
        """Insert or fully replace the result for ``result.session_id``."""

    @abstractmethod
    async def get_result(self, session_id: str) -> ScanResult | None:
        """Return the stored result, or ``None``."""

    async def mark_processing(self, session_id: str) -> ScanSession:
        """Reopen a session for reprocessing."""
        return await self.update_status(session_id, SessionStatus.PROCESSING)
