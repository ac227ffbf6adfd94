"""Catalog candidate search for a scanned CD.

Strategies run in strict priority order:

1. ``barcode:<digits>`` with no format filter.  Barcodes are shared across
   formats, so the search casts wide and scoring narrows it down.
2. ``catno:<catalog number>`` with no format filter.  Hits merge into the
   same map as step 1; a release found by both keeps both reason tags.
3. Only when steps 1-2 produced nothing and both artist and title are
   known: a free-text ``<artist> <title>`` search restricted to CD, capped
   at the first ten results.

The candidate map is local to one :meth:`CandidateFinder.find` call.
Rate limiting belongs to the injected catalog (see
:class:`~src.providers.catalog.rate_limited_catalog.RateLimitedCatalog`).
"""

from __future__ import annotations

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import CatalogSearchHit, DiscogsCandidate
from src.models.extraction import NormalizedFields
from src.services.audit_trail import AuditTrail
from src.utils.errors import CatalogSearchError
from src.utils.logging import get_logger

BARCODE_HIT = "barcode_search_hit"
CATNO_HIT = "catno_search_hit"
ARTIST_TITLE_HIT = "artist_title_fallback"


def merge_hits(
    candidates: dict[int, DiscogsCandidate],
    hits: list[CatalogSearchHit],
    reason: str,
) -> dict[int, DiscogsCandidate]:
    """Return a new map with *hits* merged in under *reason*.

    Releases already present get *reason* appended; new ones are added in
    hit order.
    """
    merged = dict(candidates)
    for hit in hits:
        existing = merged.get(hit.release_id)
        if existing is None:
            merged[hit.release_id] = DiscogsCandidate.from_hit(hit, reason)
        else:
            merged[hit.release_id] = existing.with_reason(reason)
    return merged


class CandidateFinder:
    """Queries the release catalog with barcode, catno and fallback searches."""

    def __init__(
        self,
        catalog: ICatalogProvider,
        *,
        per_page: int = 10,
        fallback_format: str = "CD",
        fallback_limit: int = 10,
    ) -> None:
        self._catalog = catalog
        self._per_page = per_page
        self._fallback_format = fallback_format
        self._fallback_limit = fallback_limit
        self._logger = get_logger(__name__)

    async def _search(
        self,
        strategy: str,
        query: str,
        audit: AuditTrail,
        format: str | None = None,  # noqa: A002
    ) -> list[CatalogSearchHit]:
        """Run one search; a :class:`CatalogSearchError` yields no hits."""
        try:
            return await self._catalog.search_releases(
                query, format=format, per_page=self._per_page
            )
        except CatalogSearchError as exc:
            audit.add(f"{strategy}_search_failed", exc.message)
            self._logger.warning(
                "catalog_search_failed", strategy=strategy, query=query, error=exc.message
            )
            return []

    async def find(
        self,
        fields: NormalizedFields,
        artist: str | None,
        title: str | None,
        audit: AuditTrail,
    ) -> list[DiscogsCandidate]:
        """Search the catalog and return deduplicated candidates.

        Parameters
        ----------
        fields:
            Accepted normalized values; only ``barcode`` and ``catno`` drive
            the primary searches.
        artist, title:
            Best-effort strings from the front cover, used by the fallback.
        audit:
            Receives one start and one result entry per strategy run.

        Returns
        -------
        list[DiscogsCandidate]
            Unscored candidates in discovery order.
        """
        candidates: dict[int, DiscogsCandidate] = {}

        if fields.barcode:
            audit.add("search_barcode", f"Searching Discogs by barcode: {fields.barcode}")
            hits = await self._search("barcode", f"barcode:{fields.barcode}", audit)
            candidates = merge_hits(candidates, hits, BARCODE_HIT)
            audit.add("barcode_results", f"Found {len(hits)} results")

        if fields.catno:
            audit.add("search_catno", f"Searching Discogs by catno: {fields.catno}")
            hits = await self._search("catno", f"catno:{fields.catno}", audit)
            candidates = merge_hits(candidates, hits, CATNO_HIT)
            audit.add("catno_results", f"Found {len(hits)} results")

        if not candidates and artist and title:
            audit.add(
                "search_artist_title",
                f"Fallback: searching by artist+title: {artist} - {title}",
            )
            hits = await self._search(
                "artist_title", f"{artist} {title}", audit, format=self._fallback_format
            )
            candidates = merge_hits(candidates, hits[: self._fallback_limit], ARTIST_TITLE_HIT)
            audit.add("artist_title_results", f"Found {len(hits)} results")

        self._logger.info("catalog_candidates_found", count=len(candidates))
        return list(candidates.values())
