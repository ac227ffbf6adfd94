"""Assemble the persisted :class:`ScanResult` from a pipeline run.

Display fields combine what was read off the photos with the catalog's
release details (when the backfill succeeded):

- artist / title: release details first, extracted text second
- label / catno / country: extracted value first, release details second
- year: the year hint first, the release year second
- barcode / matrix / IFPI: extracted values only

Confidences and candidate scores are rounded to three decimals.
"""

from __future__ import annotations

from typing import assert_never

from src.models.catalog import ReleaseDetails
from src.models.extraction import ExtractionBundle
from src.models.result import (
    MatchStatus,
    MultipleCandidates,
    NeedsMorePhotos,
    NoMatch,
    ScanResult,
    SingleMatch,
    Verdict,
)
from src.models.scan import AuditLog, SessionStatus
from src.utils.confidence import round_confidence


def session_status_for(verdict: Verdict) -> SessionStatus:
    """Only ``needs_more_photos`` leaves a session waiting for input."""
    match verdict:
        case NeedsMorePhotos():
            return SessionStatus.NEEDS_MORE_PHOTOS
        case SingleMatch() | MultipleCandidates() | NoMatch():
            return SessionStatus.DONE
        case _:
            assert_never(verdict)


def build_scan_result(
    session_id: str,
    bundle: ExtractionBundle,
    verdict: Verdict,
    details: ReleaseDetails | None,
    audit: AuditLog,
) -> ScanResult:
    """Build the whole-record result that is upserted for *session_id*."""
    match verdict:
        case SingleMatch(release_id=release_id, candidates=candidates, confidence=confidence):
            status = MatchStatus.SINGLE_MATCH
        case MultipleCandidates(candidates=candidates, confidence=confidence):
            status = MatchStatus.MULTIPLE_CANDIDATES
            release_id = None
        case NoMatch():
            status, release_id, candidates, confidence = MatchStatus.NO_MATCH, None, [], 0.0
        case NeedsMorePhotos():
            status, release_id, candidates, confidence = (
                MatchStatus.NEEDS_MORE_PHOTOS,
                None,
                [],
                0.0,
            )
        case _:
            assert_never(verdict)

    fields = bundle.fields
    primary_label = details.primary_label if details else None

    year: int | None
    if fields.year_hint:
        year = int(fields.year_hint)
    else:
        year = details.year if details else None

    return ScanResult(
        session_id=session_id,
        artist=(details.primary_artist if details else None) or bundle.artist,
        title=(details.title if details else None) or bundle.title,
        label=fields.label or (primary_label.name if primary_label else None),
        catno=fields.catno or (primary_label.catno if primary_label else None),
        barcode=fields.barcode,
        country=fields.country or (details.country if details else None),
        year=year,
        matrix=fields.matrix,
        ifpi_master=fields.ifpi_master,
        ifpi_mould=fields.ifpi_mould,
        match_status=status,
        release_id=release_id,
        candidates=[c.summary() for c in candidates],
        overall_confidence=round_confidence(confidence),
        audit=audit,
    )
