"""Abstract base class for release-catalog providers.

Defines the contract for searching an external release catalog (Discogs)
by barcode, catalog number or free text, and for fetching a release by
id.  The candidate finder depends only on this interface, so the rate
limiting wrapper and test doubles plug in without touching it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.catalog import CatalogSearchHit, ReleaseDetails


class ICatalogProvider(ABC):
    """Contract for release-catalog services used by the CD scan pipeline."""

    @abstractmethod
    async def search_releases(
        self,
        query: str,
        *,
        format: str | None = None,  # noqa: A002
        per_page: int = 10,
    ) -> list[CatalogSearchHit]:
        """Search releases matching *query*.

        Parameters
        ----------
        query:
            Free text, or a field-prefixed query such as ``barcode:5099902161724``
            or ``catno:CDP 7 46203 2``.
        format:
            Optional physical format filter (e.g. ``"CD"``).  ``None`` searches
            every format.
        per_page:
            Maximum number of hits requested.

        Returns
        -------
        list[CatalogSearchHit]
            Hits in catalog relevance order; empty when nothing matched.

        Raises
        ------
        src.utils.errors.CatalogSearchError
            If the call fails.
        """

    @abstractmethod
    async def get_release(self, release_id: int) -> ReleaseDetails | None:
        """Fetch full details for one release.

        Returns ``None`` when the release does not exist.

        Raises
        ------
        src.utils.errors.CatalogSearchError
            If the call fails.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"discogs_api"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider has credentials configured."""
