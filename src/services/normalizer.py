"""Field normalization and cross-field validation.

Turns the raw strings of a :class:`ParsedExtraction` into
:class:`Extraction` records.  Each field has its own validity rule; a value
that fails it normalizes to ``None`` and is treated downstream as absent.

Cross-validation compares the raw text with the barcode, independently of
the per-field rules.  A catalog number whose digits equal the barcode, or a
matrix code whose digits contain it, is the barcode read a second time.
Such a value is cleared (raw and normalized) and the rejection is written
to the audit trail, so the same printed number can never count as two
independent pieces of evidence.
"""

from __future__ import annotations

import re

from src.models.extraction import DEFAULT_SOURCES, Extraction, FieldName, ParsedExtraction
from src.services.audit_trail import AuditTrail
from src.utils.barcodes import digits_only, is_valid_ean13
from src.utils.logging import get_logger

logger = get_logger(__name__)

_WHITESPACE_RE = re.compile(r"\s+")
_ALPHA_RE = re.compile(r"[A-Za-z]")
_LONG_DIGIT_RUN_RE = re.compile(r"\d{12,}")
_COPYRIGHT_YEAR_RE = re.compile(r"(?:19|20)\d{2}")

MIN_BARCODE_DIGITS = 8
# Digit count at which a number is treated as a barcode, not a catno/matrix.
BARCODE_LIKE_DIGITS = 12

VALID_EAN_CONFIDENCE = 0.95
OTHER_BARCODE_CONFIDENCE = 0.7
FIELD_CONFIDENCE: dict[FieldName, float] = {
    FieldName.CATNO: 0.85,
    FieldName.MATRIX: 0.6,
    FieldName.IFPI_MASTER: 0.8,
    FieldName.IFPI_MOULD: 0.8,
    FieldName.LABEL: 0.7,
    FieldName.COUNTRY: 0.85,
    FieldName.YEAR_HINT: 0.7,
}


# ---------------------------------------------------------------------------
# Per-field rules
# ---------------------------------------------------------------------------


def _collapse(raw: str) -> str:
    return _WHITESPACE_RE.sub(" ", raw.strip())


def normalize_barcode(raw: str | None) -> str | None:
    """Digits only; ``None`` when fewer than 8 digits remain."""
    if not raw:
        return None
    digits = digits_only(raw)
    if len(digits) < MIN_BARCODE_DIGITS:
        return None
    return digits


def normalize_catno(raw: str | None) -> str | None:
    """Collapse whitespace; reject a pure run of 12+ digits (a barcode)."""
    if not raw:
        return None
    normalized = _collapse(raw)
    if not normalized:
        return None
    if _LONG_DIGIT_RUN_RE.fullmatch(normalized.replace(" ", "")):
        return None
    return normalized


def normalize_matrix(raw: str | None) -> str | None:
    """Collapse whitespace; reject 12+ digits with no letter (a barcode)."""
    if not raw:
        return None
    normalized = _collapse(raw)
    if not normalized:
        return None
    if len(digits_only(normalized)) >= BARCODE_LIKE_DIGITS and not _ALPHA_RE.search(normalized):
        return None
    return normalized


def normalize_ifpi(raw: str | None) -> str | None:
    """Uppercase with all whitespace removed."""
    if not raw:
        return None
    return _WHITESPACE_RE.sub("", raw).upper() or None


def normalize_year_hint(raw: str | None) -> str | None:
    """The first 19xx/20xx year in the text (bare or in a copyright line), else ``None``."""
    if not raw:
        return None
    match = _COPYRIGHT_YEAR_RE.search(raw)
    return match.group(0) if match else None


def normalize_text(raw: str | None) -> str | None:
    """Trimmed free text (label, country)."""
    if not raw:
        return None
    return raw.strip() or None


# ---------------------------------------------------------------------------
# Cross-validation
# ---------------------------------------------------------------------------


def catno_collides_with_barcode(catno: str | None, barcode: str | None) -> bool:
    return bool(catno and barcode and digits_only(catno) == barcode)


def matrix_contains_barcode(matrix: str | None, barcode: str | None) -> bool:
    return bool(matrix and barcode and barcode in digits_only(matrix))


# ---------------------------------------------------------------------------
# Bundle builder
# ---------------------------------------------------------------------------


def _extraction(
    field: FieldName,
    raw: str | None,
    normalized: str | None,
    source: str | None,
    confidence: float | None = None,
) -> Extraction:
    if normalized is None:
        confidence = 0.0
    elif confidence is None:
        confidence = FIELD_CONFIDENCE[field]
    return Extraction(
        field_name=field,
        raw_value=raw,
        normalized_value=normalized,
        confidence=confidence,
        source_image_kind=source if source is not None else DEFAULT_SOURCES[field],
    )


def normalize_extraction(parsed: ParsedExtraction, audit: AuditTrail) -> list[Extraction]:
    """Normalize and cross-validate every field of *parsed*.

    Parameters
    ----------
    parsed:
        The validated vision-model output.
    audit:
        Receives ``barcode_normalized``, ``catno_rejected`` and
        ``matrix_rejected`` entries.

    Returns
    -------
    list[Extraction]
        One record per :class:`FieldName`, in barcode, catno, matrix,
        ifpi_master, ifpi_mould, label, country, year_hint order.
    """
    # Barcode: checksum validity only affects confidence.
    barcode = normalize_barcode(parsed.barcode_raw)
    ean_valid = is_valid_ean13(barcode) if barcode and len(barcode) == 13 else None
    barcode_confidence = VALID_EAN_CONFIDENCE if ean_valid else OTHER_BARCODE_CONFIDENCE
    if barcode:
        audit.add(
            "barcode_normalized",
            f"{parsed.barcode_raw} → {barcode} (EAN valid: {ean_valid})",
        )

    # Compared on raw text: the catno rule alone already clears a spaced barcode.
    catno_raw = parsed.catno_raw
    catno = normalize_catno(catno_raw)
    if catno_collides_with_barcode(catno_raw, barcode):
        audit.add(
            "catno_rejected",
            f'Catno "{catno_raw}" matches barcode, rejected as barcode misidentification',
        )
        logger.info("catno_rejected", catno=catno_raw, barcode=barcode)
        catno_raw = catno = None

    matrix_raw = parsed.matrix_raw
    matrix = normalize_matrix(matrix_raw)
    if matrix_contains_barcode(matrix_raw, barcode):
        audit.add("matrix_rejected", f'Matrix "{matrix_raw}" contains barcode digits, rejected')
        logger.info("matrix_rejected", matrix=matrix_raw, barcode=barcode)
        matrix_raw = matrix = None

    return [
        _extraction(
            FieldName.BARCODE,
            parsed.barcode_raw,
            barcode,
            parsed.barcode_source,
            confidence=barcode_confidence,
        ),
        _extraction(FieldName.CATNO, catno_raw, catno, parsed.catno_source),
        _extraction(FieldName.MATRIX, matrix_raw, matrix, parsed.matrix_source),
        _extraction(
            FieldName.IFPI_MASTER,
            parsed.ifpi_master_raw,
            normalize_ifpi(parsed.ifpi_master_raw),
            None,
        ),
        _extraction(
            FieldName.IFPI_MOULD,
            parsed.ifpi_mould_raw,
            normalize_ifpi(parsed.ifpi_mould_raw),
            None,
        ),
        _extraction(FieldName.LABEL, parsed.label_raw, normalize_text(parsed.label_raw), None),
        _extraction(
            FieldName.COUNTRY, parsed.country_raw, normalize_text(parsed.country_raw), None
        ),
        _extraction(
            FieldName.YEAR_HINT,
            parsed.year_hint_raw,
            normalize_year_hint(parsed.year_hint_raw),
            parsed.year_hint_source,
        ),
    ]
