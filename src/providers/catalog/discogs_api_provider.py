"""Discogs REST API provider using python3-discogs-client.

Implements :class:`ICatalogProvider` for release searches (by barcode,
catalog number or free text) and release-detail lookups.  The client is
initialized lazily; its blocking HTTP calls run via ``asyncio.to_thread``
so the event loop stays free.

No rate limiting happens here; wrap this provider in
:class:`~src.providers.catalog.rate_limited_catalog.RateLimitedCatalog`.
"""

from __future__ import annotations

import asyncio
from typing import Any

import discogs_client
from discogs_client.exceptions import HTTPError

from src.config.settings import Settings
from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import CatalogSearchHit, ReleaseDetails, ReleaseLabel
from src.utils.errors import CatalogSearchError, ConfigurationError
from src.utils.logging import get_logger


def _as_int(value: Any) -> int | None:
    """Discogs search rows carry ``year`` as a string ("1995") or omit it."""
    try:
        year = int(value)
    except (TypeError, ValueError):
        return None
    return year or None


def _as_str_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value if v]


def hit_from_search_data(data: dict[str, Any]) -> CatalogSearchHit:
    """Build a :class:`CatalogSearchHit` from one ``/database/search`` row."""
    return CatalogSearchHit(
        release_id=int(data["id"]),
        title=data.get("title") or "",
        year=_as_int(data.get("year")),
        country=data.get("country") or None,
        labels=_as_str_list(data.get("label")),
        catno=data.get("catno") or None,
        barcodes=_as_str_list(data.get("barcode")),
        formats=_as_str_list(data.get("format")),
    )


def details_from_release_data(data: dict[str, Any]) -> ReleaseDetails:
    """Build :class:`ReleaseDetails` from a ``/releases/{id}`` payload."""
    return ReleaseDetails(
        release_id=int(data["id"]),
        title=data.get("title") or None,
        artists=[a["name"] for a in data.get("artists", []) if a.get("name")],
        labels=[
            ReleaseLabel(name=lb["name"], catno=lb.get("catno") or None)
            for lb in data.get("labels", [])
            if lb.get("name")
        ],
        country=data.get("country") or None,
        year=_as_int(data.get("year")),
        uri=data.get("uri") or None,
    )


class DiscogsAPIProvider(ICatalogProvider):
    """Catalog provider backed by the authenticated Discogs REST API.

    Authenticates with a personal user token when one is configured,
    otherwise with the consumer key/secret pair.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._client: discogs_client.Client | None = None
        self._logger = get_logger(__name__)

    # -- Private helpers -------------------------------------------------------

    def _get_client(self) -> discogs_client.Client:
        """Lazily initialize and return the Discogs API client."""
        if self._client is None:
            s = self._settings
            if s.discogs_token:
                self._client = discogs_client.Client(
                    s.discogs_user_agent, user_token=s.discogs_token
                )
            elif s.discogs_consumer_key and s.discogs_consumer_secret:
                self._client = discogs_client.Client(
                    s.discogs_user_agent,
                    consumer_key=s.discogs_consumer_key,
                    consumer_secret=s.discogs_consumer_secret,
                )
            else:
                raise ConfigurationError(
                    message="No Discogs credentials configured",
                    provider_name=self.get_provider_name(),
                )
        return self._client

    # -- Sync helpers (executed via asyncio.to_thread) -------------------------

    def _search_sync(
        self, query: str, format: str | None, per_page: int  # noqa: A002
    ) -> list[dict[str, Any]]:
        client = self._get_client()
        params: dict[str, str] = {"type": "release"}
        if format:
            params["format"] = format
        results = client.search(query, **params)
        results.per_page = per_page
        items: list[dict[str, Any]] = []
        for i, item in enumerate(results):
            if i >= per_page:
                break
            items.append(dict(item.data))
        return items

    def _get_release_sync(self, release_id: int) -> dict[str, Any] | None:
        client = self._get_client()
        release = client.release(release_id)
        try:
            release.refresh()
        except HTTPError as exc:
            if exc.status_code == 404:
                return None
            raise
        return dict(release.data)

    # -- ICatalogProvider implementation ---------------------------------------

    async def search_releases(
        self,
        query: str,
        *,
        format: str | None = None,  # noqa: A002
        per_page: int = 10,
    ) -> list[CatalogSearchHit]:
        try:
            raw = await asyncio.to_thread(self._search_sync, query, format, per_page)
        except ConfigurationError:
            raise
        except Exception as exc:
            self._logger.error("discogs_search_failed", query=query, error=str(exc))
            raise CatalogSearchError(
                message=f"Discogs search failed for '{query}': {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        hits: list[CatalogSearchHit] = []
        for data in raw:
            if "id" not in data:
                continue
            hits.append(hit_from_search_data(data))

        self._logger.info(
            "discogs_search_complete", query=query, format=format, result_count=len(hits)
        )
        return hits

    async def get_release(self, release_id: int) -> ReleaseDetails | None:
        try:
            data = await asyncio.to_thread(self._get_release_sync, release_id)
        except ConfigurationError:
            raise
        except Exception as exc:
            self._logger.error(
                "discogs_release_fetch_failed", release_id=release_id, error=str(exc)
            )
            raise CatalogSearchError(
                message=f"Discogs release {release_id} fetch failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if data is None:
            return None
        data.setdefault("id", release_id)
        return details_from_release_data(data)

    def get_provider_name(self) -> str:
        """Return ``'discogs_api'``."""
        return "discogs_api"

    def is_available(self) -> bool:
        """Return ``True`` if a token or consumer key/secret pair is configured."""
        return self._settings.has_discogs_credentials()
