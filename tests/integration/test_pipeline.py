"""Integration tests for CDScanPipeline.

Runs the real extractor, normalizer, candidate finder, scorer and result
builder end to end.  Only the vision model and the Discogs catalog are
mocked; persistence uses the in-memory store.
"""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from conftest import DSOTM_BARCODE, VALID_EAN, extraction_reply, make_hit
from src.models.result import MatchStatus, MultipleCandidates, NeedsMorePhotos, SingleMatch
from src.models.scan import SessionStatus
from src.models.scoring import ScoringConfig
from src.pipeline.orchestrator import CDScanPipeline
from src.providers.catalog.rate_limited_catalog import RateLimitedCatalog
from src.services.candidate_finder import CandidateFinder
from src.services.field_extractor import FieldExtractor
from src.utils.errors import (
    CatalogSearchError,
    ConfigurationError,
    ExtractionError,
    PipelineError,
)
from src.utils.rate_limiter import FixedDelayRateLimiter

IMAGES = ["https://img/front.jpg", "https://img/back.jpg", "https://img/hub.jpg"]

DSOTM_REPLY = extraction_reply(
    artist="Pink Floyd",
    title="The Dark Side Of The Moon",
    barcode_raw="5 099902 161724",
    barcode_source="back_cover",
    catno_raw="CDP 7 46001 2",
    catno_source="spine",
    matrix_raw="DIDX-123 @@ 1",
    matrix_source="disc_hub",
    country_raw="Made in EU",
)


def _catalog_search(barcode_hits=None, catno_hits=None, fallback_hits=None):
    """side_effect for search_releases dispatching on the query prefix."""

    async def _search(query: str, *, format=None, per_page=10):  # noqa: A002
        if query.startswith("barcode:"):
            return list(barcode_hits or [])
        if query.startswith("catno:"):
            return list(catno_hits or [])
        return list(fallback_hits or [])

    return _search


def _build(mock_llm_provider, mock_catalog_provider, store, **kwargs):
    limiter = FixedDelayRateLimiter(delay=1.1, sleep=AsyncMock())
    catalog = RateLimitedCatalog(mock_catalog_provider, limiter)
    pipeline = CDScanPipeline(
        field_extractor=FieldExtractor(mock_llm_provider),
        candidate_finder=CandidateFinder(catalog),
        catalog=catalog,
        store=store,
        scoring_config=ScoringConfig(),
        version="cd-scan-pipeline-test",
        **kwargs,
    )
    return pipeline, limiter


def _dsotm_hits():
    return [
        make_hit(2937018, country="Europe"),
        make_hit(1873013, country="Japan", catno="TOCP-65555"),
    ]


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_single_match(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(return_value=DSOTM_REPLY)
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=_catalog_search(
                barcode_hits=_dsotm_hits(), catno_hits=[make_hit(2937018, country="Europe")]
            )
        )
        pipeline, limiter = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES, "user-1")

        assert isinstance(outcome.verdict, SingleMatch)
        result = outcome.result
        assert result.match_status == MatchStatus.SINGLE_MATCH
        assert result.release_id == 2937018
        assert result.artist == "Pink Floyd"
        assert result.barcode == DSOTM_BARCODE
        assert result.matrix == "DIDX-123 @@ 1"
        assert result.overall_confidence == 1.0
        assert result.candidates[0]["reason"][:3] == [
            "barcode_match:+0.50",
            "catno_match:+0.30 (CDP 7 46001 2)",
            "country_match:+0.25 (Europe)",
        ]
        assert outcome.session_status == SessionStatus.DONE
        assert outcome.missing_fields == ["ifpi"]
        assert [g.field for g in outcome.photo_guidance] == ["ifpi"]

        # Two searches, each followed by a pause; one backfill lookup.
        assert limiter.pause_count == 2
        mock_catalog_provider.get_release.assert_awaited_once_with(2937018)

        session = await memory_store.get_session(outcome.session_id)
        assert session is not None
        assert session.status == SessionStatus.DONE
        assert await memory_store.get_result(outcome.session_id) == result
        assert len(await memory_store.get_extractions(outcome.session_id)) == 8
        assert [i.kind.value for i in memory_store.get_images(outcome.session_id)] == [
            "front",
            "back_cover",
            "disc_hub",
        ]

        steps = result.audit.steps()
        assert steps[0] == "extraction_start"
        assert steps[-1] == "single_match"
        assert "confidence_cap" not in steps
        assert result.audit.version == "cd-scan-pipeline-test"

    @pytest.mark.asyncio
    async def test_without_matrix_goes_to_review(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(
            return_value=extraction_reply(
                barcode_raw=DSOTM_BARCODE, catno_raw="CDP 7 46001 2", country_raw="EU"
            )
        )
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=_catalog_search(barcode_hits=_dsotm_hits())
        )
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES[:2], "user-1")

        assert isinstance(outcome.verdict, MultipleCandidates)
        assert outcome.result.release_id is None
        assert outcome.result.overall_confidence == 0.79
        assert "confidence_cap" in outcome.result.audit.steps()
        assert outcome.session_status == SessionStatus.DONE
        mock_catalog_provider.get_release.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_backfill_failure_keeps_verdict(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(return_value=DSOTM_REPLY)
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=_catalog_search(barcode_hits=_dsotm_hits())
        )
        mock_catalog_provider.get_release = AsyncMock(
            side_effect=CatalogSearchError(message="HTTP 500")
        )
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES, "user-1")

        assert outcome.result.match_status == MatchStatus.SINGLE_MATCH
        assert outcome.result.artist == "Pink Floyd"
        assert outcome.result.title == "The Dark Side Of The Moon"
        assert outcome.result.year is None


class TestPressingScenarios:
    """Barcode, country and label agree: 0.50 + 0.25 + 0.10 = 0.85."""

    @staticmethod
    def _reply(**extra) -> str:
        return extraction_reply(
            barcode_raw=VALID_EAN, label_raw="EMI", country_raw="Netherlands", **extra
        )

    @staticmethod
    def _hits() -> list:
        return [make_hit(42, country="Netherlands", catno=None, barcodes=[VALID_EAN])]

    @pytest.mark.asyncio
    async def test_matrix_present_is_single_match(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(
            return_value=self._reply(matrix_raw="DIDX 012 EMI UDEN")
        )
        mock_catalog_provider.search_releases = AsyncMock(return_value=self._hits())
        pipeline, limiter = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES, "user-1")

        assert isinstance(outcome.verdict, SingleMatch)
        assert outcome.result.release_id == 42
        assert outcome.result.overall_confidence == 0.85
        assert limiter.pause_count == 1

    @pytest.mark.asyncio
    async def test_same_evidence_without_matrix_is_capped(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(return_value=self._reply())
        mock_catalog_provider.search_releases = AsyncMock(return_value=self._hits())
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES, "user-1")

        assert isinstance(outcome.verdict, MultipleCandidates)
        assert outcome.result.release_id is None
        assert outcome.result.overall_confidence == 0.79
        assert outcome.result.candidates[0]["score"] == 0.85
        mock_catalog_provider.get_release.assert_not_awaited()


class TestNoEvidence:
    @pytest.mark.asyncio
    async def test_needs_more_photos(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        pipeline, limiter = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES[:2], "user-1")

        assert isinstance(outcome.verdict, NeedsMorePhotos)
        assert outcome.result.match_status == MatchStatus.NEEDS_MORE_PHOTOS
        assert outcome.session_status == SessionStatus.NEEDS_MORE_PHOTOS
        assert outcome.missing_fields == ["matrix", "ifpi", "barcode", "catno"]
        assert len(outcome.photo_guidance) == 4
        mock_catalog_provider.search_releases.assert_not_awaited()
        assert limiter.pause_count == 0

    @pytest.mark.asyncio
    async def test_no_match_with_barcode(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(
            return_value=extraction_reply(barcode_raw="4006381333931")
        )
        pipeline, limiter = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES[:2], "user-1")

        assert outcome.result.match_status == MatchStatus.NO_MATCH
        assert outcome.session_status == SessionStatus.DONE
        assert limiter.pause_count == 1


class TestFailures:
    @pytest.mark.asyncio
    async def test_too_few_images(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)
        with pytest.raises(PipelineError, match="At least 2 photos"):
            await pipeline.run(IMAGES[:1], "user-1")
        assert await memory_store.list_sessions("user-1") == []

    @pytest.mark.asyncio
    async def test_missing_catalog_credentials_stores_nothing(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_catalog_provider.is_available.return_value = False
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        with pytest.raises(ConfigurationError) as exc_info:
            await pipeline.run(IMAGES, "user-1")

        assert exc_info.value.provider_name == "mock-discogs"
        assert await memory_store.list_sessions("user-1") == []
        mock_llm_provider.vision_extract.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_extraction_failure_aborts(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(return_value="I can't see anything.")
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        with pytest.raises(ExtractionError):
            await pipeline.run(IMAGES, "user-1")

        (session,) = await memory_store.list_sessions("user-1")
        assert session.status == SessionStatus.PROCESSING
        assert await memory_store.get_result(session.id) is None
        mock_catalog_provider.search_releases.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_barcode_search_falls_through_to_catno(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        mock_llm_provider.vision_extract = AsyncMock(return_value=DSOTM_REPLY)
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=[CatalogSearchError(message="HTTP 502"), [make_hit(2937018)]]
        )
        pipeline, limiter = _build(mock_llm_provider, mock_catalog_provider, memory_store)

        outcome = await pipeline.run(IMAGES, "user-1")

        assert outcome.result.release_id == 2937018
        assert "barcode_search_failed" in outcome.result.audit.steps()
        assert limiter.pause_count == 2


class TestReprocessing:
    @pytest.mark.asyncio
    async def test_reprocess_replaces_result(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)
        first = await pipeline.run(IMAGES[:2], "user-1")
        assert first.session_status == SessionStatus.NEEDS_MORE_PHOTOS

        mock_llm_provider.vision_extract = AsyncMock(return_value=DSOTM_REPLY)
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=_catalog_search(barcode_hits=_dsotm_hits())
        )
        second = await pipeline.run(IMAGES, "user-1", session_id=first.session_id)

        assert second.session_id == first.session_id
        stored = await memory_store.get_result(first.session_id)
        assert stored is not None
        assert stored.match_status == MatchStatus.SINGLE_MATCH
        assert "no_candidates" not in stored.audit.steps()
        session = await memory_store.get_session(first.session_id)
        assert session is not None
        assert session.status == SessionStatus.DONE
        assert len(await memory_store.list_sessions("user-1")) == 1

    @pytest.mark.asyncio
    async def test_foreign_session_rejected(
        self, mock_llm_provider, mock_catalog_provider, memory_store
    ) -> None:
        pipeline, _ = _build(mock_llm_provider, mock_catalog_provider, memory_store)
        first = await pipeline.run(IMAGES[:2], "user-1")

        with pytest.raises(PipelineError):
            await pipeline.run(IMAGES, "user-2", session_id=first.session_id)
        with pytest.raises(PipelineError):
            await pipeline.run(IMAGES, "user-1", session_id="missing")
