"""Candidate scoring and disambiguation.

Scoring is additive and explainable: every signal a candidate matches adds
its weight to the score and leaves a reason tag behind.

    barcode   +0.50   digit-only equality with any candidate barcode
    catno     +0.30   case-insensitive equality or containment
    country   +0.25   alias-normalized equality (Holland = Netherlands = NL)
    label     +0.10   case-insensitive containment
    year      +0.05   exact integer equality

When neither a matrix code nor an IFPI code was read, the usable
confidence is capped (0.79 by default) before the decision rule runs.
Because the cap sits below the single-match threshold, a scan without
pressing-level identifiers always ends in human review.
"""

from __future__ import annotations

import re

from src.models.catalog import DiscogsCandidate
from src.models.extraction import NormalizedFields
from src.models.result import (
    MultipleCandidates,
    NeedsMorePhotos,
    NoMatch,
    SingleMatch,
    Verdict,
)
from src.models.scoring import ScoringConfig
from src.services.audit_trail import AuditTrail
from src.utils.barcodes import digits_only
from src.utils.confidence import cap_confidence
from src.utils.logging import get_logger

logger = get_logger(__name__)

# Scores are sums of decimal weights; decisions compare at this precision.
_DECISION_DIGITS = 6

COUNTRY_ALIASES: dict[str, tuple[str, ...]] = {
    "netherlands": ("netherlands", "the netherlands", "holland", "nl"),
    "germany": ("germany", "deutschland", "de"),
    "uk": ("uk", "united kingdom", "england", "great britain"),
    "eu": ("eu", "europe"),
    "usa": ("usa", "us", "united states"),
}

_ORIGIN_PREFIX_RE = re.compile(r"\b(?:printed|made|manufactured)\s+in\s+", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")
_ALIAS_PATTERNS: list[tuple[str, re.Pattern[str]]] = [
    (canonical, re.compile(r"\b" + re.escape(alias) + r"\b"))
    for canonical, aliases in COUNTRY_ALIASES.items()
    for alias in sorted(aliases, key=len, reverse=True)
]


def canonical_country(value: str) -> str:
    """Map a country string to its alias-table key.

    "Printed in Holland", "Netherlands" and "NL" all become
    ``"netherlands"``.  Unknown countries come back lowercased with the
    origin prefix removed.
    """
    text = _ORIGIN_PREFIX_RE.sub("", value).strip().lower()
    text = _WHITESPACE_RE.sub(" ", text)
    for canonical, aliases in COUNTRY_ALIASES.items():
        if text in aliases:
            return canonical
    for canonical, pattern in _ALIAS_PATTERNS:
        if pattern.search(text):
            return canonical
    return text


def _normalize_catno(value: str) -> str:
    return _WHITESPACE_RE.sub(" ", value).strip().upper()


def _contains_either_way(a: str, b: str) -> bool:
    return a == b or a in b or b in a


def score_candidate(
    candidate: DiscogsCandidate,
    fields: NormalizedFields,
    config: ScoringConfig,
) -> DiscogsCandidate:
    """Return a copy of *candidate* with its score and reason tags set."""
    score = 0.0
    reasons: list[str] = []

    if fields.barcode and candidate.barcodes:
        ours = digits_only(fields.barcode)
        if any(digits_only(b) == ours for b in candidate.barcodes):
            score += config.barcode_weight
            reasons.append(f"barcode_match:+{config.barcode_weight:.2f}")

    if fields.catno and candidate.catno:
        ours = _normalize_catno(fields.catno)
        theirs = _normalize_catno(candidate.catno)
        if ours and theirs and _contains_either_way(ours, theirs):
            score += config.catno_weight
            reasons.append(f"catno_match:+{config.catno_weight:.2f} ({candidate.catno})")

    if fields.country and candidate.country:
        if canonical_country(fields.country) == canonical_country(candidate.country):
            score += config.country_weight
            reasons.append(f"country_match:+{config.country_weight:.2f} ({candidate.country})")

    if fields.label and candidate.label:
        ours = fields.label.strip().lower()
        theirs = candidate.label.strip().lower()
        if ours and theirs and _contains_either_way(ours, theirs):
            score += config.label_weight
            reasons.append(f"label_match:+{config.label_weight:.2f} ({candidate.label})")

    if fields.year_hint and candidate.year:
        if int(fields.year_hint) == candidate.year:
            score += config.year_weight
            reasons.append(f"year_match:+{config.year_weight:.2f} ({candidate.year})")

    return candidate.model_copy(update={"score": score, "reasons": reasons})


def disambiguate(
    candidates: list[DiscogsCandidate],
    fields: NormalizedFields,
    config: ScoringConfig,
    audit: AuditTrail,
) -> Verdict:
    """Score *candidates* and decide the match verdict.

    Parameters
    ----------
    candidates:
        Unscored candidates from the candidate finder.
    fields:
        Accepted normalized values of the scan.
    config:
        Weights, cap and thresholds.
    audit:
        Receives ``no_candidates`` or ``scoring_complete``, an optional
        ``confidence_cap``, then ``single_match`` or ``multiple_candidates``.

    Returns
    -------
    Verdict
        ``NeedsMorePhotos`` when nothing was found and neither barcode nor
        catno was read; ``NoMatch`` when nothing was found otherwise;
        ``SingleMatch`` when the capped top score reaches the threshold and
        leads the runner-up by at least ``min_gap``; else
        ``MultipleCandidates`` with the top ``top_n``.
    """
    if not candidates:
        if not fields.has_technical_identifier:
            audit.add("no_candidates", "No barcode or catno detected, requesting more photos")
            return NeedsMorePhotos()
        audit.add("no_candidates", "No Discogs results found despite technical identifiers")
        return NoMatch()

    scored = sorted(
        (score_candidate(c, fields, config) for c in candidates),
        key=lambda c: c.score,
        reverse=True,
    )
    ranked = scored[: config.top_n]
    top = scored[0]
    second = scored[1] if len(scored) > 1 else None

    audit.add(
        "scoring_complete",
        " | ".join(
            f"ID:{c.release_id} score:{c.score:.2f} [{', '.join(c.reasons)}]" for c in ranked
        ),
    )

    ceiling = 1.0
    if not fields.has_matrix_or_ifpi:
        ceiling = config.no_matrix_cap
        audit.add(
            "confidence_cap",
            f"Matrix/IFPI not detected → max confidence capped at {ceiling:.2f}",
        )

    effective = cap_confidence(top.score, ceiling)
    gap = top.score - second.score if second is not None else 1.0

    is_single = (
        round(effective, _DECISION_DIGITS) >= config.single_match_threshold
        and round(gap, _DECISION_DIGITS) >= config.min_gap
    )
    logger.info(
        "scan_verdict_scored",
        top_release=top.release_id,
        top_score=round(top.score, 3),
        effective=round(effective, 3),
        gap=round(gap, 3),
        single=is_single,
    )

    if is_single:
        audit.add(
            "single_match",
            f"Release {top.release_id} selected: score={effective:.2f}, gap={gap:.2f}",
        )
        return SingleMatch(
            release_id=top.release_id,
            candidates=ranked,
            confidence=effective,
            gap=gap,
        )

    audit.add(
        "multiple_candidates",
        f"No clear winner. Top: {top.release_id} ({effective:.2f}), gap: {gap:.2f}. "
        f"Returning {len(ranked)} candidates.",
    )
    return MultipleCandidates(candidates=ranked, confidence=effective, gap=gap)
