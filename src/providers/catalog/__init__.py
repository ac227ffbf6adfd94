"""Release-catalog provider implementations.

    DiscogsAPIProvider  - official Discogs REST API (token or key/secret)
    RateLimitedCatalog  - fixed-delay wrapper applied to any provider
"""

from src.providers.catalog.discogs_api_provider import DiscogsAPIProvider
from src.providers.catalog.rate_limited_catalog import RateLimitedCatalog

__all__ = ["DiscogsAPIProvider", "RateLimitedCatalog"]
