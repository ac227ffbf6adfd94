"""Unit tests for candidate scoring and the disambiguation decision."""

from __future__ import annotations

import pytest

from src.models.catalog import DiscogsCandidate
from src.models.extraction import NormalizedFields
from src.models.result import MultipleCandidates, NeedsMorePhotos, NoMatch, SingleMatch
from src.models.scoring import ScoringConfig
from src.services.audit_trail import AuditTrail
from src.services.scorer import canonical_country, disambiguate, score_candidate
from src.utils.errors import ConfigurationError

DSOTM_BARCODE = "5099902161724"


def _candidate(release_id: int = 1, **overrides) -> DiscogsCandidate:
    data = {
        "release_id": release_id,
        "title": "Pink Floyd - The Dark Side Of The Moon",
        "year": 2011,
        "country": "Europe",
        "label": "EMI",
        "catno": "CDP 7 46001 2",
        "barcodes": ["5 099902 161724"],
        "reasons": ["barcode_search_hit"],
    }
    data.update(overrides)
    return DiscogsCandidate(**data)


def _full_fields(**overrides) -> NormalizedFields:
    data = {
        "barcode": DSOTM_BARCODE,
        "catno": "CDP 7 46001 2",
        "country": "Made in EU",
    }
    data.update(overrides)
    return NormalizedFields(**data)


# ======================================================================
# canonical_country
# ======================================================================


class TestCanonicalCountry:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Printed in Holland", "netherlands"),
            ("The Netherlands", "netherlands"),
            ("NL", "netherlands"),
            ("Made in Germany", "germany"),
            ("Deutschland", "germany"),
            ("United Kingdom", "uk"),
            ("Made in EU", "eu"),
            ("Europe", "eu"),
            ("US", "usa"),
        ],
    )
    def test_aliases(self, value: str, expected: str) -> None:
        assert canonical_country(value) == expected

    def test_unknown_country_lowercased(self) -> None:
        assert canonical_country("Manufactured in Japan") == "japan"

    def test_alias_needs_word_boundary(self) -> None:
        # "de" must not match inside "Sweden".
        assert canonical_country("Sweden") == "sweden"


# ======================================================================
# score_candidate
# ======================================================================


class TestScoreCandidate:
    def test_all_signals(self, scoring_config: ScoringConfig) -> None:
        fields = _full_fields(label="EMI Records", year_hint="2011")
        scored = score_candidate(_candidate(), fields, scoring_config)

        assert scored.score == pytest.approx(1.20)
        assert scored.reasons == [
            "barcode_match:+0.50",
            "catno_match:+0.30 (CDP 7 46001 2)",
            "country_match:+0.25 (Europe)",
            "label_match:+0.10 (EMI)",
            "year_match:+0.05 (2011)",
        ]

    def test_search_reasons_replaced(self, scoring_config: ScoringConfig) -> None:
        scored = score_candidate(_candidate(), NormalizedFields(), scoring_config)
        assert scored.score == 0.0
        assert scored.reasons == []

    def test_catno_containment_case_insensitive(self, scoring_config: ScoringConfig) -> None:
        fields = NormalizedFields(catno="cdp 7 46203 2")
        scored = score_candidate(_candidate(catno="CDP 7 46203 2 (Reissue)"), fields, scoring_config)
        assert scored.score == pytest.approx(0.30)

    def test_year_mismatch(self, scoring_config: ScoringConfig) -> None:
        fields = NormalizedFields(year_hint="1973")
        assert score_candidate(_candidate(), fields, scoring_config).score == 0.0

    def test_input_not_mutated(self, scoring_config: ScoringConfig) -> None:
        candidate = _candidate()
        score_candidate(candidate, _full_fields(), scoring_config)
        assert candidate.score == 0.0
        assert candidate.reasons == ["barcode_search_hit"]


# ======================================================================
# disambiguate
# ======================================================================


class TestDisambiguate:
    def test_no_candidates_without_identifiers(
        self, scoring_config: ScoringConfig, audit: AuditTrail
    ) -> None:
        verdict = disambiguate([], NormalizedFields(matrix="DIDX-1"), scoring_config, audit)
        assert isinstance(verdict, NeedsMorePhotos)
        assert audit.steps() == ["no_candidates"]

    def test_no_candidates_with_barcode(
        self, scoring_config: ScoringConfig, audit: AuditTrail
    ) -> None:
        verdict = disambiguate([], NormalizedFields(barcode=DSOTM_BARCODE), scoring_config, audit)
        assert isinstance(verdict, NoMatch)

    def test_single_match_with_matrix(
        self, scoring_config: ScoringConfig, audit: AuditTrail
    ) -> None:
        fields = _full_fields(matrix="DIDX-123 @@ 1")
        verdict = disambiguate([_candidate(2937018)], fields, scoring_config, audit)

        assert isinstance(verdict, SingleMatch)
        assert verdict.release_id == 2937018
        assert verdict.confidence == 1.0
        assert verdict.gap == 1.0
        assert audit.steps() == ["scoring_complete", "single_match"]

    def test_no_matrix_caps_below_threshold(
        self, scoring_config: ScoringConfig, audit: AuditTrail
    ) -> None:
        verdict = disambiguate([_candidate()], _full_fields(), scoring_config, audit)

        assert isinstance(verdict, MultipleCandidates)
        assert verdict.confidence == pytest.approx(0.79)
        assert audit.steps() == ["scoring_complete", "confidence_cap", "multiple_candidates"]

    def test_ifpi_lifts_the_cap(self, scoring_config: ScoringConfig, audit: AuditTrail) -> None:
        fields = _full_fields(ifpi_mould="IFPI 0110")
        verdict = disambiguate([_candidate()], fields, scoring_config, audit)
        assert isinstance(verdict, SingleMatch)

    def test_threshold_reached_exactly(
        self, scoring_config: ScoringConfig, audit: AuditTrail
    ) -> None:
        # 0.50 + 0.25 + 0.10 sums to 0.85 within float error.
        fields = NormalizedFields(
            barcode=DSOTM_BARCODE, country="Europe", label="EMI", matrix="DIDX-1"
        )
        verdict = disambiguate([_candidate(catno=None)], fields, scoring_config, audit)
        assert isinstance(verdict, SingleMatch)

    def test_small_gap_needs_review(
        self, scoring_config: ScoringConfig, audit: AuditTrail
    ) -> None:
        fields = _full_fields(matrix="DIDX-1")
        candidates = [_candidate(1), _candidate(2, country="UK")]
        verdict = disambiguate(candidates, fields, scoring_config, audit)

        # 1.05 vs 0.80: gap 0.25 clears min_gap.
        assert isinstance(verdict, SingleMatch)

        tied = [_candidate(1), _candidate(2)]
        verdict = disambiguate(tied, fields, scoring_config, AuditTrail())
        assert isinstance(verdict, MultipleCandidates)
        assert verdict.gap == pytest.approx(0.0)

    def test_close_runner_up_needs_review(self, audit: AuditTrail) -> None:
        # 0.86 vs 0.80: top clears the threshold but the gap is only 0.06.
        config = ScoringConfig(barcode_weight=0.80, label_weight=0.06)
        fields = NormalizedFields(barcode=DSOTM_BARCODE, label="EMI", matrix="DIDX-1")
        candidates = [_candidate(1, catno=None), _candidate(2, catno=None, label="Sony")]

        verdict = disambiguate(candidates, fields, config, audit)

        assert isinstance(verdict, MultipleCandidates)
        assert verdict.candidates[0].score == pytest.approx(0.86)
        assert verdict.gap == pytest.approx(0.06)

    @pytest.mark.parametrize(
        ("lead", "expected"),
        [(0.149, MultipleCandidates), (0.15, SingleMatch), (0.151, SingleMatch)],
    )
    def test_gap_boundary(self, lead: float, expected: type, audit: AuditTrail) -> None:
        config = ScoringConfig(barcode_weight=0.85, label_weight=lead)
        fields = NormalizedFields(barcode=DSOTM_BARCODE, label="EMI", matrix="DIDX-1")
        candidates = [_candidate(1, catno=None), _candidate(2, catno=None, label="Sony")]

        verdict = disambiguate(candidates, fields, config, audit)

        assert isinstance(verdict, expected)

    def test_ranked_and_truncated(self, scoring_config: ScoringConfig, audit: AuditTrail) -> None:
        fields = NormalizedFields(barcode=DSOTM_BARCODE, country="Europe")
        candidates = [
            _candidate(i, country="Europe" if i == 7 else "Japan") for i in range(1, 8)
        ]
        verdict = disambiguate(candidates, fields, scoring_config, audit)

        assert isinstance(verdict, MultipleCandidates)
        assert len(verdict.candidates) == scoring_config.top_n
        assert verdict.candidates[0].release_id == 7
        scores = [c.score for c in verdict.candidates]
        assert scores == sorted(scores, reverse=True)

    def test_never_single_without_matrix_or_ifpi(self, audit: AuditTrail) -> None:
        config = ScoringConfig(no_matrix_cap=0.84, single_match_threshold=0.85)
        fields = _full_fields(label="EMI", year_hint="2011")
        verdict = disambiguate([_candidate()], fields, config, audit)
        assert isinstance(verdict, MultipleCandidates)


class TestScoringConfig:
    def test_defaults(self) -> None:
        config = ScoringConfig()
        assert config.no_matrix_cap < config.single_match_threshold

    def test_cap_must_stay_below_threshold(self) -> None:
        with pytest.raises(ConfigurationError, match="no_matrix_cap"):
            ScoringConfig(no_matrix_cap=0.9, single_match_threshold=0.85)
