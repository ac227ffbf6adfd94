"""Orchestrator for the CD identification pipeline.

Runs the stages of one scan strictly in sequence:

    1. Intake        create (or reopen) the session, record the photos
    2. Extraction    vision model → normalized, cross-validated fields
    3. Search        barcode → catno → artist+title fallback
    4. Verdict       score, cap, decide
    5. Persistence   backfill release details, upsert result, set status

An extraction failure aborts the run before anything is scored or
persisted; the session stays in ``processing``.  Catalog search failures
are absorbed per strategy by the candidate finder, and a failed release
backfill only costs the display fields.

Each run owns its :class:`AuditTrail`; nothing is shared between runs.
"""

from __future__ import annotations

from typing import assert_never

from pydantic import BaseModel, ConfigDict, Field

from src.config.loader import DEFAULT_PIPELINE_VERSION
from src.interfaces.catalog_provider import ICatalogProvider
from src.interfaces.scan_store import IScanStore
from src.models.catalog import ReleaseDetails
from src.models.extraction import Extraction
from src.models.result import (
    MultipleCandidates,
    NeedsMorePhotos,
    NoMatch,
    PhotoGuidance,
    ScanResult,
    SingleMatch,
    Verdict,
)
from src.models.scan import SessionStatus
from src.models.scoring import ScoringConfig
from src.services.audit_trail import AuditTrail
from src.services.candidate_finder import CandidateFinder
from src.services.field_extractor import FieldExtractor
from src.services.photo_guidance import build_photo_guidance
from src.services.result_builder import build_scan_result, session_status_for
from src.services.scorer import disambiguate
from src.utils.errors import CatalogSearchError, ConfigurationError, PipelineError
from src.utils.logging import bind_scan_context, clear_scan_context, get_logger

PIPELINE_VERSION = DEFAULT_PIPELINE_VERSION


class ScanOutcome(BaseModel):
    """Everything one pipeline run produced, for the API and the CLI."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    version: str
    result: ScanResult
    verdict: Verdict
    extractions: list[Extraction] = Field(default_factory=list)
    missing_fields: list[str] = Field(default_factory=list)
    photo_guidance: list[PhotoGuidance] = Field(default_factory=list)
    session_status: SessionStatus


class CDScanPipeline:
    """Runs one CD scan from photos to persisted result.

    All collaborators are injected; the pipeline never builds providers.
    """

    def __init__(
        self,
        field_extractor: FieldExtractor,
        candidate_finder: CandidateFinder,
        catalog: ICatalogProvider,
        store: IScanStore,
        scoring_config: ScoringConfig | None = None,
        *,
        version: str = PIPELINE_VERSION,
        min_images: int = 2,
        guidance_language: str = "en",
    ) -> None:
        self._extractor = field_extractor
        self._finder = candidate_finder
        self._catalog = catalog
        self._store = store
        self._scoring = scoring_config or ScoringConfig()
        self._version = version
        self._min_images = min_images
        self._guidance_language = guidance_language
        self._logger = get_logger(__name__)

    @property
    def version(self) -> str:
        return self._version

    @property
    def min_images(self) -> int:
        return self._min_images

    async def run(
        self,
        image_refs: list[str],
        user_id: str,
        session_id: str | None = None,
    ) -> ScanOutcome:
        """Identify the CD shown in *image_refs*.

        Parameters
        ----------
        image_refs:
            At least ``min_images`` photo URLs or data URIs.
        user_id:
            Owner of the session.
        session_id:
            Existing session to reprocess.  Its stored result is replaced
            as a whole.

        Returns
        -------
        ScanOutcome
            The persisted result plus extraction details and guidance.

        Raises
        ------
        PipelineError
            If too few images were supplied, or *session_id* is unknown or
            owned by another user.
        ConfigurationError
            If the catalog has no credentials; raised before anything is stored.
        ExtractionError
            If the vision call or its parsing fails.
        """
        if len(image_refs) < self._min_images:
            raise PipelineError(
                message=f"At least {self._min_images} photos are required, got {len(image_refs)}"
            )
        if not self._catalog.is_available():
            raise ConfigurationError(
                message="Catalog credentials are not configured",
                provider_name=self._catalog.get_provider_name(),
            )

        # --- Intake ---
        if session_id is None:
            session = await self._store.create_session(user_id)
        else:
            existing = await self._store.get_session(session_id)
            if existing is None or existing.user_id != user_id:
                raise PipelineError(message=f"Scan session {session_id} not found")
            session = await self._store.mark_processing(session_id)

        bind_scan_context(session.id, user_id=user_id)
        try:
            return await self._run_stages(session.id, image_refs)
        finally:
            clear_scan_context()

    async def _run_stages(self, session_id: str, image_refs: list[str]) -> ScanOutcome:
        self._logger.info(
            "scan_pipeline_start", version=self._version, images=len(image_refs)
        )
        audit = AuditTrail()
        await self._store.add_images(session_id, image_refs)

        # --- Extraction ---
        bundle = await self._extractor.extract(image_refs, audit)
        await self._store.add_extractions(session_id, bundle.extractions, self._version)
        fields = bundle.fields

        # --- Search ---
        candidates = await self._finder.find(fields, bundle.artist, bundle.title, audit)

        # --- Verdict ---
        verdict = disambiguate(candidates, fields, self._scoring, audit)
        self._logger.info(
            "scan_verdict", status=verdict.kind, candidates=len(candidates)
        )

        # --- Persistence ---
        details = await self._backfill(verdict)
        result = build_scan_result(
            session_id, bundle, verdict, details, audit.to_log(self._version)
        )
        await self._store.upsert_result(result)
        status = session_status_for(verdict)
        await self._store.update_status(session_id, status)

        self._logger.info(
            "scan_pipeline_complete",
            status=result.match_status.value,
            release_id=result.release_id,
            confidence=result.overall_confidence,
        )
        return ScanOutcome(
            session_id=session_id,
            version=self._version,
            result=result,
            verdict=verdict,
            extractions=bundle.extractions,
            missing_fields=fields.missing_fields(),
            photo_guidance=build_photo_guidance(fields, self._guidance_language),
            session_status=status,
        )

    async def _backfill(self, verdict: Verdict) -> ReleaseDetails | None:
        """Fetch release details for a single match; failures are logged only."""
        match verdict:
            case SingleMatch(release_id=release_id):
                pass
            case MultipleCandidates() | NoMatch() | NeedsMorePhotos():
                return None
            case _:
                assert_never(verdict)

        try:
            return await self._catalog.get_release(release_id)
        except CatalogSearchError as exc:
            self._logger.warning(
                "release_backfill_failed", release_id=release_id, error=exc.message
            )
            return None
