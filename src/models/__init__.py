"""CD scan domain models; re-exports all public model classes.

Other modules may import from ``src.models`` directly instead of the
individual submodules:

    - scan.py        - sessions, images, audit trail
    - extraction.py  - AI output schema, per-field extractions
    - catalog.py     - Discogs search hits, release details, candidates
    - scoring.py     - scoring weights and thresholds
    - result.py      - verdict variants, photo guidance, ScanResult
"""

from __future__ import annotations

from src.models.catalog import (
    CatalogSearchHit,
    DiscogsCandidate,
    ReleaseDetails,
    ReleaseLabel,
    release_url,
)
from src.models.extraction import (
    Extraction,
    ExtractionBundle,
    FieldName,
    NormalizedFields,
    ParsedExtraction,
)
from src.models.result import (
    MatchStatus,
    MultipleCandidates,
    NeedsMorePhotos,
    NoMatch,
    PhotoGuidance,
    ScanResult,
    SingleMatch,
    Verdict,
)
from src.models.scan import (
    AuditEntry,
    AuditLog,
    ImageKind,
    ScanImage,
    ScanSession,
    SessionStatus,
)
from src.models.scoring import ScoringConfig

__all__ = [
    "AuditEntry",
    "AuditLog",
    "CatalogSearchHit",
    "DiscogsCandidate",
    "Extraction",
    "ExtractionBundle",
    "FieldName",
    "ImageKind",
    "MatchStatus",
    "MultipleCandidates",
    "NeedsMorePhotos",
    "NoMatch",
    "NormalizedFields",
    "ParsedExtraction",
    "PhotoGuidance",
    "ReleaseDetails",
    "ReleaseLabel",
    "ScanImage",
    "ScanResult",
    "ScanSession",
    "ScoringConfig",
    "SessionStatus",
    "SingleMatch",
    "Verdict",
    "release_url",
]
