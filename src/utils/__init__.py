"""Utility modules for the CD scan service.

- **confidence** -- clamping, capping and rounding of match confidences.
- **errors** -- exception hierarchy rooted at CDScanError; each stage
  raises its own subclass so callers can handle failures granularly.
- **logging** -- structlog setup: coloured console output in development,
  structured JSON in production.
- **rate_limiter** -- fixed-delay pause policy for catalog API politeness.
- **barcodes** (not re-exported here) -- digit extraction and EAN-13 checksums.
"""

from src.utils.confidence import (
    ConfidenceLevel,
    cap_confidence,
    clamp_confidence,
    confidence_to_level,
    round_confidence,
)
from src.utils.errors import (
    AuthenticationError,
    CatalogSearchError,
    CDScanError,
    ConfigurationError,
    ExtractionError,
    LLMError,
    PersistenceError,
    PipelineError,
)
from src.utils.logging import configure_logging, get_logger
from src.utils.rate_limiter import FixedDelayRateLimiter

__all__ = [
    "AuthenticationError",
    "CDScanError",
    "CatalogSearchError",
    "ConfidenceLevel",
    "ConfigurationError",
    "ExtractionError",
    "FixedDelayRateLimiter",
    "LLMError",
    "PersistenceError",
    "PipelineError",
    "cap_confidence",
    "clamp_confidence",
    "configure_logging",
    "confidence_to_level",
    "get_logger",
    "round_confidence",
]
