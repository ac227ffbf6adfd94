"""Pydantic request/response schemas for the MusicScan CD scan API.

Defines the public contract of the REST endpoints: starting a scan,
fetching a stored result, listing sessions and the health check.

# ─── CONVENTIONS ──────────────────────────────────────────────────────
#
# Request schemas end with "Request", response schemas with "Response".
# The scan endpoints keep the camelCase keys the MusicScan web client
# already sends and reads (``imageUrls``, ``sessionId``); Python code uses
# snake_case and pydantic aliases translate.  Responses are serialized
# with ``by_alias=True`` (FastAPI's default for response_model).
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.models.catalog import release_url
from src.models.result import MatchStatus, PhotoGuidance, ScanResult
from src.models.scan import AuditEntry, ScanSession, SessionStatus
from src.pipeline.orchestrator import ScanOutcome


class CDScanRequest(BaseModel):
    """Body of ``POST /api/v1/cd-scans``."""

    model_config = ConfigDict(populate_by_name=True)

    image_urls: list[str] = Field(
        alias="imageUrls",
        description="Photo URLs or data URIs: front, back cover, disc hub, ...",
    )
    session_id: str | None = Field(
        default=None,
        alias="sessionId",
        description="Existing session to reprocess",
    )


class ExtractionView(BaseModel):
    """One extracted field as shown to the client."""

    field: str
    raw: str | None = None
    normalized: str | None = None
    confidence: float
    source: str | None = None


class CandidateView(BaseModel):
    """One ranked catalog candidate."""

    release_id: int
    score: float
    reason: list[str] = Field(default_factory=list)
    title: str = ""
    year: int | None = None
    country: str | None = None


class CDScanResultBody(BaseModel):
    """The ``result`` object of a scan response."""

    artist: str | None = None
    title: str | None = None
    label: str | None = None
    catno: str | None = None
    barcode: str | None = None
    country: str | None = None
    year: int | None = None
    matrix: str | None = None
    ifpi_master: str | None = None
    ifpi_mould: str | None = None
    discogs_match_status: MatchStatus
    discogs_release_id: int | None = None
    discogs_url: str | None = None
    overall_confidence: float = Field(ge=0.0, le=1.0)
    candidates: list[CandidateView] = Field(default_factory=list)
    extractions: list[ExtractionView] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    photo_guidance: list[PhotoGuidance] = Field(default_factory=list)
    audit: list[AuditEntry] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: ScanResult, **extra: Any) -> CDScanResultBody:
        return cls(
            artist=result.artist,
            title=result.title,
            label=result.label,
            catno=result.catno,
            barcode=result.barcode,
            country=result.country,
            year=result.year,
            matrix=result.matrix,
            ifpi_master=result.ifpi_master,
            ifpi_mould=result.ifpi_mould,
            discogs_match_status=result.match_status,
            discogs_release_id=result.release_id,
            discogs_url=release_url(result.release_id) if result.release_id else None,
            overall_confidence=result.overall_confidence,
            candidates=[CandidateView(**c) for c in result.candidates],
            audit=result.audit.entries,
            **extra,
        )


class CDScanResponse(BaseModel):
    """Response of ``POST /api/v1/cd-scans``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session_id: str = Field(alias="sessionId")
    version: str
    result: CDScanResultBody

    @classmethod
    def from_outcome(cls, outcome: ScanOutcome) -> CDScanResponse:
        body = CDScanResultBody.from_result(
            outcome.result,
            extractions=[
                ExtractionView(
                    field=e.field_name.value,
                    raw=e.raw_value,
                    normalized=e.normalized_value,
                    confidence=e.confidence,
                    source=e.source_image_kind,
                )
                for e in outcome.extractions
            ],
            missing_fields=outcome.missing_fields,
            photo_guidance=outcome.photo_guidance,
        )
        return cls(session_id=outcome.session_id, version=outcome.version, result=body)


class StoredScanResponse(BaseModel):
    """Response of ``GET /api/v1/cd-scans/{session_id}``."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    session_id: str = Field(alias="sessionId")
    status: SessionStatus
    version: str
    result: CDScanResultBody
    updated_at: datetime


class SessionSummary(BaseModel):
    """One row of the session listing."""

    session_id: str
    status: SessionStatus
    media_type: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_session(cls, session: ScanSession) -> SessionSummary:
        return cls(
            session_id=session.id,
            status=session.status,
            media_type=session.media_type,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )


class SessionListResponse(BaseModel):
    """Response of ``GET /api/v1/cd-scans``."""

    sessions: list[SessionSummary] = Field(default_factory=list)
    total: int = 0


class ProviderStatus(BaseModel):
    """Availability of one backing provider."""

    name: str
    type: str
    available: bool


class HealthResponse(BaseModel):
    """Response of ``GET /api/v1/health``."""

    status: str = "healthy"
    version: str
    pipeline_version: str
    providers: list[ProviderStatus] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Standard JSON error envelope returned for every failure."""

    success: bool = False
    error: str
    detail: str | None = None
