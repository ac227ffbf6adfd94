"""Catalog (Discogs) models used by the candidate finder and the scorer.

    CatalogSearchHit  - one row of a database search response
    ReleaseDetails    - the full release used to backfill display fields
    DiscogsCandidate  - a search hit under consideration, with its score
                        and the reason tags that explain it
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

DISCOGS_RELEASE_URL = "https://www.discogs.com/release/{release_id}"


def release_url(release_id: int) -> str:
    """Public Discogs page for *release_id*."""
    return DISCOGS_RELEASE_URL.format(release_id=release_id)


class CatalogSearchHit(BaseModel):
    """A release returned by a catalog search."""

    model_config = ConfigDict(frozen=True)

    release_id: int
    title: str = ""
    year: int | None = None
    country: str | None = None
    # Discogs lists every label credit; the first is the primary one.
    labels: list[str] = Field(default_factory=list)
    catno: str | None = None
    barcodes: list[str] = Field(default_factory=list)
    formats: list[str] = Field(default_factory=list)


class ReleaseLabel(BaseModel):
    """A label credit on a full release."""

    model_config = ConfigDict(frozen=True)

    name: str
    catno: str | None = None


class ReleaseDetails(BaseModel):
    """Full release record fetched by id."""

    model_config = ConfigDict(frozen=True)

    release_id: int
    title: str | None = None
    artists: list[str] = Field(default_factory=list)
    labels: list[ReleaseLabel] = Field(default_factory=list)
    country: str | None = None
    year: int | None = None
    uri: str | None = None

    @property
    def primary_artist(self) -> str | None:
        return self.artists[0] if self.artists else None

    @property
    def primary_label(self) -> ReleaseLabel | None:
        return self.labels[0] if self.labels else None


class DiscogsCandidate(BaseModel):
    """A catalog release considered as the identity of the scanned CD.

    ``score`` starts at 0 and is finalized by the scorer.  Before scoring,
    ``reasons`` holds the search strategies that found the release
    (``barcode_search_hit``, ``catno_search_hit``, ``artist_title_fallback``);
    after scoring it holds one tag per matching signal
    (``barcode_match:+0.50`` ...).
    """

    model_config = ConfigDict(frozen=True)

    release_id: int
    score: float = 0.0
    reasons: list[str] = Field(default_factory=list)
    title: str = ""
    year: int | None = None
    country: str | None = None
    label: str | None = None
    catno: str | None = None
    barcodes: list[str] = Field(default_factory=list)

    @classmethod
    def from_hit(cls, hit: CatalogSearchHit, reason: str) -> DiscogsCandidate:
        return cls(
            release_id=hit.release_id,
            reasons=[reason],
            title=hit.title,
            year=hit.year,
            country=hit.country,
            label=hit.labels[0] if hit.labels else None,
            catno=hit.catno,
            barcodes=list(hit.barcodes),
        )

    def with_reason(self, reason: str) -> DiscogsCandidate:
        """Return a copy with *reason* appended."""
        return self.model_copy(update={"reasons": [*self.reasons, reason]})

    def summary(self) -> dict[str, object]:
        """Compact form persisted in ``ScanResult.candidates``."""
        return {
            "release_id": self.release_id,
            "score": round(self.score, 3),
            "reason": list(self.reasons),
            "title": self.title,
            "year": self.year,
            "country": self.country,
        }
