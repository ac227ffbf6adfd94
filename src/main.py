"""MusicScan CD scan FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml`` and configures
structured logging.

The pipeline wiring itself lives in :mod:`src.pipeline.factory`, shared
with the CLI.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from http import HTTPStatus
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    error_response,
)
from src.api.routes import router as api_router
from src.api.schemas import ProviderStatus
from src.config.loader import load_config
from src.config.settings import Settings
from src.pipeline.factory import build_pipeline
from src.providers.store.sqlite_scan_store import SQLiteScanStore
from src.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)

APP_VERSION = str(config.get("app", {}).get("version", "1.0.0"))


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def _build_all(app_settings: Settings, app_config: dict[str, Any]) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    store = SQLiteScanStore(db_path=app_settings.scan_db_path)
    components = build_pipeline(app_settings, app_config, store)

    provider_list = [
        ProviderStatus(
            name=components["llm"].get_provider_name(),
            type="llm",
            available=components["llm"].is_available(),
        ),
        ProviderStatus(
            name=components["catalog"].get_provider_name(),
            type="catalog",
            available=components["catalog"].is_available(),
        ),
        ProviderStatus(name=store.get_provider_name(), type="store", available=True),
    ]

    return {
        "pipeline": components["pipeline"],
        "scan_store": store,
        "provider_list": provider_list,
        "api_tokens": app_settings.get_api_token_map(),
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup.

    Components passed to :func:`create_app` replace the default wiring.
    """
    components = application.state.injected_components or _build_all(settings, config)

    for key, value in components.items():
        setattr(application.state, key, value)

    await application.state.scan_store.initialize()

    if not components["api_tokens"]:
        _logger.warning("no_api_tokens_configured", message="All scan requests will get 401")

    _logger.info(
        "app_startup",
        version=APP_VERSION,
        environment=settings.app_env,
        pipeline_version=components["pipeline"].version,
        providers=[p.name for p in components["provider_list"] if p.available],
    )

    yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render ``HTTPException`` with the same envelope as application errors."""
    try:
        error = HTTPStatus(exc.status_code).phrase
    except ValueError:
        error = "HTTPError"
    return error_response(exc.status_code, error, str(exc.detail))


def create_app(components: dict[str, Any] | None = None) -> FastAPI:
    """Build and configure the FastAPI application.

    Parameters
    ----------
    components:
        Prebuilt ``app.state`` entries (``pipeline``, ``scan_store``,
        ``provider_list``, ``api_tokens``).  Built from settings when omitted.
    """
    application = FastAPI(
        title="MusicScan CD Scan API",
        version=APP_VERSION,
        description=(
            "Identify a CD from photos: read barcode, catalog number, matrix and "
            "IFPI codes with a vision model, search Discogs, and score the "
            "candidates with an explainable point system."
        ),
        lifespan=_lifespan,
    )
    application.state.injected_components = components

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    application.add_exception_handler(StarletteHTTPException, _http_exception_handler)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "src.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
