"""MusicScan CD scan API layer: routes, schemas, auth and middleware."""

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import router
from src.api.schemas import (
    CDScanRequest,
    CDScanResponse,
    ErrorResponse,
    HealthResponse,
    SessionListResponse,
    StoredScanResponse,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "router",
    "CDScanRequest",
    "CDScanResponse",
    "ErrorResponse",
    "HealthResponse",
    "SessionListResponse",
    "StoredScanResponse",
]
