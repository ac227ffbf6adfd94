"""Vision-model field extraction for CD photos.

Sends every photo of a scan to a vision-capable LLM together with the
no-guessing prompt from :mod:`src.services.extraction_parser`, parses the
reply into a :class:`ParsedExtraction` and hands it to the normalizer.

There is no retry and no fallback.  A failed call or an unparsable reply
raises :class:`ExtractionError`, and the pipeline stops before anything is
scored.
"""

from __future__ import annotations

from src.interfaces.llm_provider import ILLMProvider
from src.models.extraction import ExtractionBundle
from src.services.audit_trail import AuditTrail
from src.services.extraction_parser import (
    EXTRACTION_PROMPT,
    ParseFailure,
    ParseOk,
    parse_extraction_response,
)
from src.services.normalizer import normalize_extraction
from src.utils.errors import ExtractionError, LLMError
from src.utils.logging import get_logger


class FieldExtractor:
    """Reads physical identifiers off CD photos with a vision LLM."""

    def __init__(self, llm_provider: ILLMProvider, max_tokens: int = 1500) -> None:
        self._llm = llm_provider
        self._max_tokens = max_tokens
        self._logger = get_logger(__name__)

    async def extract(self, image_refs: list[str], audit: AuditTrail) -> ExtractionBundle:
        """Extract and normalize fields from *image_refs*.

        Parameters
        ----------
        image_refs:
            Image URLs or ``data:`` URIs, in front / back cover / disc hub
            order when known.
        audit:
            Receives ``extraction_start``, ``extraction_raw`` (or
            ``parse_error``) and the normalizer's entries.

        Returns
        -------
        ExtractionBundle
            One :class:`Extraction` per field plus best-effort artist/title.

        Raises
        ------
        ExtractionError
            If the LLM call fails or its reply does not parse.
        """
        provider = self._llm.get_provider_name()
        audit.add("extraction_start", f"Sending {len(image_refs)} images to AI")
        self._logger.info("scan_extraction_start", images=len(image_refs), llm_provider=provider)

        try:
            content = await self._llm.vision_extract(
                image_refs, EXTRACTION_PROMPT, max_tokens=self._max_tokens
            )
        except LLMError as exc:
            self._logger.error("scan_extraction_llm_failed", error=str(exc))
            raise ExtractionError(
                message=f"AI extraction failed: {exc.message}",
                provider_name=provider,
            ) from exc

        parsed_result = parse_extraction_response(content)
        if isinstance(parsed_result, ParseFailure):
            audit.add("parse_error", f"Failed to parse AI response: {parsed_result.excerpt}")
            self._logger.error("scan_extraction_parse_failed", reason=parsed_result.reason)
            raise ExtractionError(
                message=f"Failed to parse AI extraction response: {parsed_result.reason}",
                provider_name=provider,
            )
        assert isinstance(parsed_result, ParseOk)
        parsed = parsed_result.value

        audit.add(
            "extraction_raw",
            parsed.model_dump_json(exclude_none=True),
        )
        extractions = normalize_extraction(parsed, audit)

        self._logger.info(
            "scan_extraction_complete",
            accepted=[e.field_name.value for e in extractions if e.accepted],
        )
        return ExtractionBundle(
            extractions=extractions,
            artist=parsed.artist,
            title=parsed.title,
            notes=parsed.notes,
        )
