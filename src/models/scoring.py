"""Scoring configuration for candidate disambiguation.

Weights are additive points; a candidate's raw score is the sum of the
signals it matches.  Defaults mirror ``config/config.yaml``.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from src.utils.errors import ConfigurationError


class ScoringConfig(BaseModel):
    """Weights and decision thresholds used by the scorer."""

    model_config = ConfigDict(frozen=True)

    barcode_weight: float = Field(default=0.50, ge=0.0)
    catno_weight: float = Field(default=0.30, ge=0.0)
    country_weight: float = Field(default=0.25, ge=0.0)
    label_weight: float = Field(default=0.10, ge=0.0)
    year_weight: float = Field(default=0.05, ge=0.0)
    # Ceiling on usable confidence when neither matrix nor IFPI was read.
    no_matrix_cap: float = Field(default=0.79, ge=0.0, le=1.0)
    single_match_threshold: float = Field(default=0.85, ge=0.0, le=1.0)
    min_gap: float = Field(default=0.15, ge=0.0, le=1.0)
    top_n: int = Field(default=5, ge=1)

    @model_validator(mode="after")
    def _cap_below_threshold(self) -> ScoringConfig:
        # A capped score must never be able to reach single_match on its own.
        if self.no_matrix_cap >= self.single_match_threshold:
            raise ConfigurationError(
                message=(
                    f"no_matrix_cap ({self.no_matrix_cap}) must be below "
                    f"single_match_threshold ({self.single_match_threshold})"
                )
            )
        return self
