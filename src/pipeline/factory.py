"""Construction of the CD scan pipeline from settings and YAML config.

Shared by the FastAPI app (``src/main.py``) and the CLI so both run the
exact same wiring: OpenAI-compatible vision model, Discogs behind a
fixed-delay rate limiter, and the scoring constants from ``config.yaml``.
"""

from __future__ import annotations

from typing import Any

from src.config.loader import DEFAULT_PIPELINE_VERSION, build_scoring_config
from src.config.settings import Settings
from src.interfaces.scan_store import IScanStore
from src.pipeline.orchestrator import CDScanPipeline
from src.providers.catalog.discogs_api_provider import DiscogsAPIProvider
from src.providers.catalog.rate_limited_catalog import RateLimitedCatalog
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.services.candidate_finder import CandidateFinder
from src.services.field_extractor import FieldExtractor
from src.utils.rate_limiter import FixedDelayRateLimiter


def build_pipeline(
    app_settings: Settings,
    app_config: dict[str, Any],
    store: IScanStore,
) -> dict[str, Any]:
    """Construct the pipeline and the providers it depends on.

    Returns a flat dict with ``pipeline``, ``llm`` and ``catalog`` entries.
    """
    catalog_cfg = app_config.get("catalog", {})
    pipeline_cfg = app_config.get("pipeline", {})

    llm = OpenAILLMProvider(settings=app_settings)
    limiter = FixedDelayRateLimiter(
        delay=float(catalog_cfg.get("rate_limit_delay", app_settings.discogs_rate_limit_delay))
    )
    catalog = RateLimitedCatalog(DiscogsAPIProvider(settings=app_settings), limiter)

    extractor = FieldExtractor(llm, max_tokens=app_settings.extraction_max_tokens)
    finder = CandidateFinder(
        catalog,
        per_page=int(catalog_cfg.get("per_page", app_settings.discogs_search_per_page)),
        fallback_format=str(catalog_cfg.get("fallback_format", "CD")),
        fallback_limit=int(catalog_cfg.get("fallback_limit", 10)),
    )
    pipeline = CDScanPipeline(
        field_extractor=extractor,
        candidate_finder=finder,
        catalog=catalog,
        store=store,
        scoring_config=build_scoring_config(app_config),
        version=str(pipeline_cfg.get("version", DEFAULT_PIPELINE_VERSION)),
        min_images=int(pipeline_cfg.get("min_images", 2)),
        guidance_language=str(pipeline_cfg.get("guidance_language", "en")),
    )
    return {"pipeline": pipeline, "llm": llm, "catalog": catalog}
