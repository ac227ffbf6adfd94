"""Disambiguation verdicts and the persisted scan result.

The scorer returns exactly one of four verdict variants.  They share a
``kind`` discriminator so a verdict round-trips through JSON, and every
consumer handles them with a ``match`` statement ending in
``assert_never`` so a new variant cannot slip through unhandled:

    SingleMatch          - one release clears threshold and gap
    MultipleCandidates   - plausible releases, human review needed
    NoMatch              - identifiers were read but nothing matched
    NeedsMorePhotos      - no barcode or catno was read at all
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

from src.models.catalog import DiscogsCandidate
from src.models.scan import AuditLog


class MatchStatus(str, Enum):  # noqa: UP042
    """Final match status persisted on a ScanResult."""

    SINGLE_MATCH = "single_match"
    MULTIPLE_CANDIDATES = "multiple_candidates"
    NO_MATCH = "no_match"
    NEEDS_MORE_PHOTOS = "needs_more_photos"


# ---------------------------------------------------------------------------
# Verdict variants
# ---------------------------------------------------------------------------
class SingleMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["single_match"] = "single_match"
    release_id: int
    candidates: list[DiscogsCandidate]
    confidence: float = Field(ge=0.0, le=1.0)
    gap: float


class MultipleCandidates(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["multiple_candidates"] = "multiple_candidates"
    candidates: list[DiscogsCandidate]
    confidence: float = Field(ge=0.0, le=1.0)
    gap: float


class NoMatch(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["no_match"] = "no_match"


class NeedsMorePhotos(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["needs_more_photos"] = "needs_more_photos"


Verdict = Annotated[
    Union[SingleMatch, MultipleCandidates, NoMatch, NeedsMorePhotos],  # noqa: UP007
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Guidance + result
# ---------------------------------------------------------------------------
class PhotoGuidance(BaseModel):
    """Advice for the next photo, one per missing field."""

    model_config = ConfigDict(frozen=True)

    field: str
    instruction: str


class ScanResult(BaseModel):
    """The persisted outcome of one pipeline run, one per session.

    Written by upsert keyed on ``session_id``; a reprocessed session
    replaces the whole record.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
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
    match_status: MatchStatus
    release_id: int | None = None
    # Compact candidate summaries (see DiscogsCandidate.summary), top 5.
    candidates: list[dict[str, Any]] = Field(default_factory=list)
    overall_confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    audit: AuditLog
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(tz=timezone.utc)  # noqa: UP017
    )
