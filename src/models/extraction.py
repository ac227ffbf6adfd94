"""Field extraction models for the CD scan pipeline.

Three layers, from raw to trusted:

    ParsedExtraction   - the vision model's JSON, validated for shape only
    Extraction         - one field after normalization + cross-validation
    NormalizedFields   - the accepted values keyed by field, used by the
                         candidate finder and the scorer

A ``normalized_value`` of ``None`` means "rejected or absent".  Only
non-null normalized values count as evidence downstream.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.models.scan import ImageKind


class FieldName(str, Enum):  # noqa: UP042
    """The physical identifiers read from a CD package."""

    BARCODE = "barcode"
    CATNO = "catno"
    MATRIX = "matrix"
    IFPI_MASTER = "ifpi_master"
    IFPI_MOULD = "ifpi_mould"
    LABEL = "label"
    COUNTRY = "country"
    YEAR_HINT = "year_hint"


# ---------------------------------------------------------------------------
# ParsedExtraction - strict schema for the vision model's JSON response.
# ---------------------------------------------------------------------------
class ParsedExtraction(BaseModel):
    """Shape of the JSON object the extraction prompt asks for.

    Unknown keys are ignored; known keys must be strings, numbers or null.
    A list or object where a string is expected fails validation, which the
    parser reports as a ``ParseFailure``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", coerce_numbers_to_str=True)

    artist: str | None = None
    title: str | None = None
    barcode_raw: str | None = None
    barcode_source: str | None = None
    catno_raw: str | None = None
    catno_source: str | None = None
    matrix_raw: str | None = None
    matrix_source: str | None = None
    ifpi_master_raw: str | None = None
    ifpi_mould_raw: str | None = None
    label_raw: str | None = None
    country_raw: str | None = None
    year_hint_raw: str | None = None
    year_hint_source: str | None = None
    notes: str | None = None

    @field_validator("*", mode="after")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        # Models answer "" or "null" for unreadable fields as often as null.
        if value is None:
            return None
        stripped = value.strip()
        if not stripped or stripped.lower() == "null":
            return None
        return value


# ---------------------------------------------------------------------------
# Extraction - one field read from the images.
# ---------------------------------------------------------------------------
class Extraction(BaseModel):
    """A single field read from the scan photos.

    Created once per pipeline run and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    field_name: FieldName
    # Exactly as read by the model; None when absent or cleared by
    # cross-validation.
    raw_value: str | None = None
    normalized_value: str | None = None
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    # Free-form provenance reported by the model ("back_cover", "spine",
    # "(P) 1995 EMI Records Ltd") or an ImageKind default.
    source_image_kind: str | None = None

    @property
    def accepted(self) -> bool:
        return self.normalized_value is not None


class ExtractionBundle(BaseModel):
    """Everything the field extractor hands to the next stage."""

    model_config = ConfigDict(frozen=True)

    extractions: list[Extraction]
    artist: str | None = None
    title: str | None = None
    notes: str | None = None

    @property
    def fields(self) -> NormalizedFields:
        return NormalizedFields.from_extractions(self.extractions)


# ---------------------------------------------------------------------------
# NormalizedFields - accepted values only, by field.
# ---------------------------------------------------------------------------
class NormalizedFields(BaseModel):
    """Accepted (non-null) normalized values, one attribute per field."""

    model_config = ConfigDict(frozen=True)

    barcode: str | None = None
    catno: str | None = None
    matrix: str | None = None
    ifpi_master: str | None = None
    ifpi_mould: str | None = None
    label: str | None = None
    country: str | None = None
    year_hint: str | None = None

    @classmethod
    def from_extractions(cls, extractions: list[Extraction]) -> NormalizedFields:
        values: dict[str, str] = {}
        for extraction in extractions:
            if extraction.normalized_value is not None:
                values[extraction.field_name.value] = extraction.normalized_value
        return cls(**values)

    @property
    def has_matrix_or_ifpi(self) -> bool:
        """True when at least one pressing-level identifier was read."""
        return bool(self.matrix or self.ifpi_master or self.ifpi_mould)

    @property
    def has_technical_identifier(self) -> bool:
        """True when a barcode or catalog number was read."""
        return bool(self.barcode or self.catno)

    def missing_fields(self) -> list[str]:
        """Fields still worth photographing, in guidance order.

        IFPI master and mould are reported together as ``"ifpi"``.
        """
        missing: list[str] = []
        if not self.matrix:
            missing.append("matrix")
        if not (self.ifpi_master or self.ifpi_mould):
            missing.append("ifpi")
        if not self.barcode:
            missing.append("barcode")
        if not self.catno:
            missing.append("catno")
        return missing


# ImageKind is the default provenance for fields the model does not source.
DEFAULT_SOURCES: dict[FieldName, str | None] = {
    FieldName.BARCODE: ImageKind.BACK_COVER.value,
    FieldName.CATNO: None,
    FieldName.MATRIX: ImageKind.DISC_HUB.value,
    FieldName.IFPI_MASTER: ImageKind.DISC_HUB.value,
    FieldName.IFPI_MOULD: ImageKind.DISC_HUB.value,
    FieldName.LABEL: ImageKind.BACK_COVER.value,
    FieldName.COUNTRY: ImageKind.BACK_COVER.value,
    FieldName.YEAR_HINT: None,
}
