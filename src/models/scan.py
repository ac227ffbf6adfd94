"""Scan session, image and audit models.

Defines Pydantic v2 models for the records that frame one identification
attempt:

    1. A caller starts a scan             → ScanSession (status PROCESSING)
    2. Photo references are recorded      → ScanImage (one per URL)
    3. Every stage appends what it did    → AuditEntry, collected in AuditLog

All models are frozen.  Session status changes produce a new ScanSession
via ``model_copy(update={...})``; audit entries are only ever appended.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class SessionStatus(str, Enum):  # noqa: UP042
    """Lifecycle of a scan session.

    PROCESSING → DONE | NEEDS_MORE_PHOTOS.  A session waiting for more
    photos may be reprocessed, which moves it back to PROCESSING.
    """

    PROCESSING = "processing"
    DONE = "done"
    NEEDS_MORE_PHOTOS = "needs_more_photos"


class ImageKind(str, Enum):  # noqa: UP042
    """Semantic role of a photo within a scan."""

    FRONT = "front"
    BACK_COVER = "back_cover"
    DISC_HUB = "disc_hub"
    OTHER = "other"

    @classmethod
    def for_position(cls, index: int) -> ImageKind:
        """Positions 0/1/2 map to front/back cover/disc hub; the rest are OTHER."""
        by_position = (cls.FRONT, cls.BACK_COVER, cls.DISC_HUB)
        if 0 <= index < len(by_position):
            return by_position[index]
        return cls.OTHER


# ---------------------------------------------------------------------------
# Session + images
# ---------------------------------------------------------------------------
class ScanSession(BaseModel):
    """One user-initiated identification attempt."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    # Only CDs go through this pipeline.
    media_type: str = "cd"
    status: SessionStatus = SessionStatus.PROCESSING
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class ScanImage(BaseModel):
    """A photo reference recorded against a session."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    position: int = Field(ge=0)
    kind: ImageKind
    # URL or data URI exactly as supplied by the caller.
    storage_path: str


# ---------------------------------------------------------------------------
# Audit trail
# ---------------------------------------------------------------------------
class AuditEntry(BaseModel):
    """A single ``{step, detail, timestamp}`` audit record."""

    model_config = ConfigDict(frozen=True)

    step: str
    detail: str
    timestamp: datetime = Field(default_factory=_utcnow)


class AuditLog(BaseModel):
    """The audit envelope persisted inside a ScanResult."""

    model_config = ConfigDict(frozen=True)

    version: str
    entries: list[AuditEntry] = Field(default_factory=list)

    def steps(self) -> list[str]:
        """Return the step names in order."""
        return [entry.step for entry in self.entries]
