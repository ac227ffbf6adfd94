"""Rate-limited decorator around any :class:`ICatalogProvider`.

Every search call is followed by the limiter's fixed pause, whether it
succeeded or failed.  Release lookups are not paused: the pipeline makes
at most one per run, after all searches are done.
"""

from __future__ import annotations

from src.interfaces.catalog_provider import ICatalogProvider
from src.models.catalog import CatalogSearchHit, ReleaseDetails
from src.utils.rate_limiter import FixedDelayRateLimiter


class RateLimitedCatalog(ICatalogProvider):
    """Wraps *inner* and pauses via *limiter* after each search."""

    def __init__(self, inner: ICatalogProvider, limiter: FixedDelayRateLimiter) -> None:
        self._inner = inner
        self._limiter = limiter

    @property
    def limiter(self) -> FixedDelayRateLimiter:
        return self._limiter

    async def search_releases(
        self,
        query: str,
        *,
        format: str | None = None,  # noqa: A002
        per_page: int = 10,
    ) -> list[CatalogSearchHit]:
        try:
            return await self._inner.search_releases(query, format=format, per_page=per_page)
        finally:
            await self._limiter.pause()

    async def get_release(self, release_id: int) -> ReleaseDetails | None:
        return await self._inner.get_release(release_id)

    def get_provider_name(self) -> str:
        return self._inner.get_provider_name()

    def is_available(self) -> bool:
        return self._inner.is_available()
