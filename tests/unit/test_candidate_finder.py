"""Unit tests for CandidateFinder search strategies and hit merging."""

from __future__ import annotations

from unittest.mock import AsyncMock, call

import pytest

from conftest import make_hit
from src.models.catalog import DiscogsCandidate
from src.models.extraction import NormalizedFields
from src.services.audit_trail import AuditTrail
from src.services.candidate_finder import (
    ARTIST_TITLE_HIT,
    BARCODE_HIT,
    CATNO_HIT,
    CandidateFinder,
    merge_hits,
)
from src.utils.errors import CatalogSearchError


class TestMergeHits:
    def test_new_hits_added_in_order(self) -> None:
        merged = merge_hits({}, [make_hit(1), make_hit(2)], BARCODE_HIT)
        assert list(merged) == [1, 2]
        assert merged[1].reasons == [BARCODE_HIT]
        assert merged[1].label == "EMI"

    def test_existing_release_keeps_both_reasons(self) -> None:
        first = merge_hits({}, [make_hit(1)], BARCODE_HIT)
        merged = merge_hits(first, [make_hit(1), make_hit(3)], CATNO_HIT)

        assert merged[1].reasons == [BARCODE_HIT, CATNO_HIT]
        assert list(merged) == [1, 3]
        # Input map untouched.
        assert first[1].reasons == [BARCODE_HIT]

    def test_empty_hits(self) -> None:
        existing = {1: DiscogsCandidate(release_id=1)}
        assert merge_hits(existing, [], CATNO_HIT) == existing


class TestCandidateFinder:
    @pytest.mark.asyncio
    async def test_barcode_then_catno(self, mock_catalog_provider, audit: AuditTrail) -> None:
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=[[make_hit(1), make_hit(2)], [make_hit(2), make_hit(3)]]
        )
        finder = CandidateFinder(mock_catalog_provider)
        fields = NormalizedFields(barcode="5099902161724", catno="CDP 7 46001 2")

        candidates = await finder.find(fields, "Pink Floyd", "Dark Side", audit)

        assert [c.release_id for c in candidates] == [1, 2, 3]
        assert candidates[1].reasons == [BARCODE_HIT, CATNO_HIT]
        assert mock_catalog_provider.search_releases.await_args_list == [
            call("barcode:5099902161724", format=None, per_page=10),
            call("catno:CDP 7 46001 2", format=None, per_page=10),
        ]
        assert audit.steps() == [
            "search_barcode",
            "barcode_results",
            "search_catno",
            "catno_results",
        ]

    @pytest.mark.asyncio
    async def test_fallback_only_when_nothing_found(
        self, mock_catalog_provider, audit: AuditTrail
    ) -> None:
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=[[], [make_hit(i) for i in range(1, 13)]]
        )
        finder = CandidateFinder(mock_catalog_provider, fallback_limit=10)
        fields = NormalizedFields(barcode="5099902161724")

        candidates = await finder.find(fields, "Pink Floyd", "The Dark Side Of The Moon", audit)

        assert len(candidates) == 10
        assert all(c.reasons == [ARTIST_TITLE_HIT] for c in candidates)
        assert mock_catalog_provider.search_releases.await_args_list[-1] == call(
            "Pink Floyd The Dark Side Of The Moon", format="CD", per_page=10
        )

    @pytest.mark.asyncio
    async def test_no_fallback_when_primary_found(
        self, mock_catalog_provider, audit: AuditTrail
    ) -> None:
        mock_catalog_provider.search_releases = AsyncMock(return_value=[make_hit(1)])
        finder = CandidateFinder(mock_catalog_provider)

        await finder.find(NormalizedFields(barcode="12345678"), "Artist", "Title", audit)

        assert mock_catalog_provider.search_releases.await_count == 1
        assert "search_artist_title" not in audit.steps()

    @pytest.mark.asyncio
    async def test_no_fallback_without_title(
        self, mock_catalog_provider, audit: AuditTrail
    ) -> None:
        finder = CandidateFinder(mock_catalog_provider)
        candidates = await finder.find(NormalizedFields(), "Pink Floyd", None, audit)

        assert candidates == []
        mock_catalog_provider.search_releases.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_failed_strategy_is_skipped(
        self, mock_catalog_provider, audit: AuditTrail
    ) -> None:
        mock_catalog_provider.search_releases = AsyncMock(
            side_effect=[CatalogSearchError(message="HTTP 502"), [make_hit(5)]]
        )
        finder = CandidateFinder(mock_catalog_provider)
        fields = NormalizedFields(barcode="5099902161724", catno="CDP 7 46203 2")

        candidates = await finder.find(fields, None, None, audit)

        assert [c.release_id for c in candidates] == [5]
        assert candidates[0].reasons == [CATNO_HIT]
        assert "barcode_search_failed" in audit.steps()

    @pytest.mark.asyncio
    async def test_custom_fallback_format(self, mock_catalog_provider, audit: AuditTrail) -> None:
        finder = CandidateFinder(mock_catalog_provider, per_page=5, fallback_format="CDr")
        await finder.find(NormalizedFields(), "Artist", "Title", audit)

        mock_catalog_provider.search_releases.assert_awaited_once_with(
            "Artist Title", format="CDr", per_page=5
        )
