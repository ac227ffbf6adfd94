"""Custom exception hierarchy for the CD scan service.

All application exceptions inherit from :class:`CDScanError`, which
carries an optional ``provider_name`` so error handlers can identify which
external service (e.g. "openai", "discogs_api", "sqlite") caused the failure.

The hierarchy is organized by pipeline stage:

    CDScanError  (base -- catch-all for any scan service error)
    +-- ExtractionError       (stage 2: vision call or response parsing)
    +-- LLMError              (transport-level AI API failure)
    +-- CatalogSearchError    (stage 4: one catalog lookup failed)
    +-- PersistenceError      (scan store read/write failure)
    +-- AuthenticationError   (missing or unknown bearer token)
    +-- ConfigurationError    (startup / missing config)
    +-- PipelineError         (orchestration / invalid request)

Callers handle errors at the level they care about: the candidate finder
swallows ``CatalogSearchError`` per strategy, the API turns every other
``CDScanError`` into a JSON error envelope.
"""


class CDScanError(Exception):
    """Base exception for all CD scan service errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for
    structured log output, e.g. ``[discogs_api] HTTP 502``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class ExtractionError(CDScanError):
    """Raised when field extraction fails (AI call error or unparsable JSON).

    Aborts the whole pipeline: nothing is scored or persisted.
    """

    def __init__(
        self,
        message: str = "Field extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class LLMError(CDScanError):
    """Raised when an LLM API call fails or returns an empty response."""

    def __init__(
        self,
        message: str = "LLM API call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Catalog / persistence errors
# ---------------------------------------------------------------------------

class CatalogSearchError(CDScanError):
    """Raised when a single catalog search or release lookup fails.

    The candidate finder catches this per strategy and moves on.
    """

    def __init__(
        self,
        message: str = "Catalog search failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(CDScanError):
    """Raised when the scan store cannot read or write a record."""

    def __init__(
        self,
        message: str = "Scan store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Request / configuration errors
# ---------------------------------------------------------------------------

class AuthenticationError(CDScanError):
    """Raised when a request carries no bearer token or an unknown one."""

    def __init__(
        self,
        message: str = "Invalid authentication",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(CDScanError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PipelineError(CDScanError):
    """Raised when pipeline orchestration fails (bad input, unknown session)."""

    def __init__(
        self,
        message: str = "Pipeline orchestration failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
