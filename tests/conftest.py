"""Shared pytest fixtures for the MusicScan CD scan test suite."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.interfaces.catalog_provider import ICatalogProvider
from src.interfaces.llm_provider import ILLMProvider
from src.models.catalog import CatalogSearchHit, ReleaseDetails, ReleaseLabel
from src.models.scoring import ScoringConfig
from src.providers.store.memory_scan_store import InMemoryScanStore
from src.providers.store.sqlite_scan_store import SQLiteScanStore
from src.services.audit_trail import AuditTrail

# Barcode printed on the Dark Side of the Moon reissue used across tests.
DSOTM_BARCODE = "5099902161724"
# A barcode with a correct EAN-13 check digit.
VALID_EAN = "4006381333931"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_config() -> dict[str, Any]:
    """Return a minimal resolved configuration for testing."""
    return {
        "app": {"name": "musicscan-cd", "version": "1.0.0-test"},
        "pipeline": {"version": "cd-scan-pipeline-test", "min_images": 2},
        "catalog": {"per_page": 10, "rate_limit_delay": 0, "fallback_format": "CD"},
        "scoring": {
            "barcode_weight": 0.50,
            "catno_weight": 0.30,
            "country_weight": 0.25,
            "label_weight": 0.10,
            "year_weight": 0.05,
            "no_matrix_cap": 0.79,
            "single_match_threshold": 0.85,
            "min_gap": 0.15,
            "top_n": 5,
        },
    }


@pytest.fixture
def scoring_config() -> ScoringConfig:
    return ScoringConfig()


@pytest.fixture
def audit() -> AuditTrail:
    return AuditTrail()


# ---------------------------------------------------------------------------
# Sample payloads
# ---------------------------------------------------------------------------


def extraction_reply(**fields: Any) -> str:
    """Build a vision-model reply: a JSON object wrapped in a little prose."""
    payload = {
        "artist": None,
        "title": None,
        "barcode_raw": None,
        "barcode_source": None,
        "catno_raw": None,
        "catno_source": None,
        "matrix_raw": None,
        "matrix_source": None,
        "ifpi_master_raw": None,
        "ifpi_mould_raw": None,
        "label_raw": None,
        "country_raw": None,
        "year_hint_raw": None,
        "year_hint_source": None,
        "notes": "test reply",
    }
    payload.update(fields)
    return "Here is what I can read:\n```json\n" + json.dumps(payload) + "\n```"


def make_hit(
    release_id: int,
    *,
    title: str = "Pink Floyd - The Dark Side Of The Moon",
    year: int | None = 2011,
    country: str | None = "Europe",
    labels: list[str] | None = None,
    catno: str | None = "CDP 7 46001 2",
    barcodes: list[str] | None = None,
) -> CatalogSearchHit:
    return CatalogSearchHit(
        release_id=release_id,
        title=title,
        year=year,
        country=country,
        labels=labels if labels is not None else ["EMI"],
        catno=catno,
        barcodes=barcodes if barcodes is not None else [DSOTM_BARCODE],
        formats=["CD", "Album"],
    )


@pytest.fixture
def sample_release() -> ReleaseDetails:
    return ReleaseDetails(
        release_id=2937018,
        title="The Dark Side Of The Moon",
        artists=["Pink Floyd"],
        labels=[ReleaseLabel(name="EMI", catno="CDP 7 46001 2")],
        country="Europe",
        year=2011,
        uri="https://www.discogs.com/release/2937018",
    )


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider whose vision_extract returns an empty extraction.

    Override with ``mock_llm_provider.vision_extract.return_value = ...``.
    """
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.supports_vision.return_value = True
    mock.vision_extract = AsyncMock(return_value=extraction_reply())
    return mock


@pytest.fixture
def mock_catalog_provider(sample_release: ReleaseDetails) -> ICatalogProvider:
    """Mock ICatalogProvider returning no hits and *sample_release* by id."""
    mock = MagicMock(spec=ICatalogProvider)
    mock.get_provider_name.return_value = "mock-discogs"
    mock.is_available.return_value = True
    mock.search_releases = AsyncMock(return_value=[])
    mock.get_release = AsyncMock(return_value=sample_release)
    return mock


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


@pytest.fixture
def memory_store() -> InMemoryScanStore:
    return InMemoryScanStore()


@pytest.fixture
async def sqlite_store(tmp_path: Path) -> SQLiteScanStore:
    """A SQLiteScanStore on a fresh database file under *tmp_path*."""
    store = SQLiteScanStore(db_path=tmp_path / "scans.db")
    await store.initialize()
    return store
