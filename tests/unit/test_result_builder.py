"""Unit tests for result assembly, session status, photo guidance and the audit trail."""

from __future__ import annotations

from src.models.catalog import DiscogsCandidate, ReleaseDetails
from src.models.extraction import Extraction, ExtractionBundle, FieldName, NormalizedFields
from src.models.result import (
    MatchStatus,
    MultipleCandidates,
    NeedsMorePhotos,
    NoMatch,
    SingleMatch,
)
from src.models.scan import AuditLog, SessionStatus
from src.services.audit_trail import AuditTrail
from src.services.photo_guidance import build_photo_guidance
from src.services.result_builder import build_scan_result, session_status_for

AUDIT = AuditLog(version="test", entries=[])


def _bundle(**values: str) -> ExtractionBundle:
    extractions = [
        Extraction(field_name=FieldName(name), raw_value=v, normalized_value=v, confidence=0.8)
        for name, v in values.items()
    ]
    return ExtractionBundle(extractions=extractions, artist="Pink Flyod", title="Dark Side")


def _candidate(release_id: int, score: float) -> DiscogsCandidate:
    return DiscogsCandidate(
        release_id=release_id,
        score=score,
        reasons=["barcode_match:+0.50"],
        title="Pink Floyd - The Dark Side Of The Moon",
        year=2011,
        country="Europe",
    )


class TestSessionStatus:
    def test_needs_more_photos(self) -> None:
        assert session_status_for(NeedsMorePhotos()) == SessionStatus.NEEDS_MORE_PHOTOS

    def test_everything_else_done(self) -> None:
        assert session_status_for(NoMatch()) == SessionStatus.DONE
        verdict = MultipleCandidates(candidates=[], confidence=0.5, gap=0.0)
        assert session_status_for(verdict) == SessionStatus.DONE


class TestBuildScanResult:
    def test_single_match_prefers_release_artist_and_title(self, sample_release) -> None:
        verdict = SingleMatch(
            release_id=2937018,
            candidates=[_candidate(2937018, 1.0512345)],
            confidence=1.0,
            gap=1.0,
        )
        bundle = _bundle(barcode="5099902161724", country="Made in EU", matrix="DIDX-1")

        result = build_scan_result("s-1", bundle, verdict, sample_release, AUDIT)

        assert result.match_status == MatchStatus.SINGLE_MATCH
        assert result.release_id == 2937018
        assert result.artist == "Pink Floyd"
        assert result.title == "The Dark Side Of The Moon"
        # Extracted values win over the release for label/catno/country.
        assert result.country == "Made in EU"
        assert result.label == "EMI"
        assert result.catno == "CDP 7 46001 2"
        assert result.year == 2011
        assert result.candidates[0]["score"] == 1.051
        assert result.candidates[0]["reason"] == ["barcode_match:+0.50"]

    def test_year_hint_wins(self, sample_release) -> None:
        verdict = SingleMatch(release_id=1, candidates=[], confidence=0.9, gap=1.0)
        result = build_scan_result("s-1", _bundle(year_hint="1973"), verdict, sample_release, AUDIT)
        assert result.year == 1973

    def test_multiple_candidates_have_no_release(self) -> None:
        verdict = MultipleCandidates(
            candidates=[_candidate(1, 0.8), _candidate(2, 0.75)],
            confidence=0.7899999,
            gap=0.05,
        )
        result = build_scan_result("s-1", _bundle(), verdict, None, AUDIT)

        assert result.release_id is None
        assert result.overall_confidence == 0.79
        assert [c["release_id"] for c in result.candidates] == [1, 2]
        assert result.artist == "Pink Flyod"

    def test_needs_more_photos(self) -> None:
        result = build_scan_result("s-1", _bundle(), NeedsMorePhotos(), None, AUDIT)
        assert result.match_status == MatchStatus.NEEDS_MORE_PHOTOS
        assert result.candidates == []
        assert result.overall_confidence == 0.0


class TestPhotoGuidance:
    def test_all_fields_missing(self) -> None:
        guidance = build_photo_guidance(NormalizedFields())
        assert [g.field for g in guidance] == ["matrix", "ifpi", "barcode", "catno"]
        assert "mirror band" in guidance[0].instruction

    def test_only_missing_fields(self) -> None:
        fields = NormalizedFields(barcode="5099902161724", ifpi_mould="IFPI 0110")
        assert [g.field for g in build_photo_guidance(fields)] == ["matrix", "catno"]

    def test_dutch(self) -> None:
        guidance = build_photo_guidance(NormalizedFields(), language="nl")
        assert "spiegelband" in guidance[0].instruction

    def test_unknown_language_falls_back_to_english(self) -> None:
        guidance = build_photo_guidance(NormalizedFields(), language="fr")
        assert guidance[0].instruction == build_photo_guidance(NormalizedFields())[0].instruction

    def test_nothing_missing(self) -> None:
        fields = NormalizedFields(
            barcode="5099902161724", catno="CDP 1", matrix="DIDX-1", ifpi_master="IFPIL042"
        )
        assert build_photo_guidance(fields) == []


class TestAuditTrail:
    def test_append_only_copy(self) -> None:
        trail = AuditTrail()
        trail.add("search_barcode", "Searching")
        trail.entries.clear()

        assert len(trail) == 1
        assert trail.steps() == ["search_barcode"]

    def test_to_log(self) -> None:
        trail = AuditTrail()
        trail.add("a", "1")
        trail.add("b", "2")
        log = trail.to_log("cd-scan-pipeline-v1.0")

        assert log.version == "cd-scan-pipeline-v1.0"
        assert log.steps() == ["a", "b"]
