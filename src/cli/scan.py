# =============================================================================
# src/cli/scan.py: CLI Scan Command (Photos to Discogs match)
# =============================================================================
#
# Runs the CD identification pipeline from the shell, bypassing the API
# server:
#
#   1. Extraction: vision model reads barcode / catno / matrix / IFPI
#   2. Search: Discogs by barcode, then catno, then artist+title
#   3. Verdict: additive scoring, no-matrix cap, threshold + gap rule
#
# Typical usage:
#   python -m src.cli.scan front.jpg back.jpg hub.jpg
#   python -m src.cli.scan https://.../front.jpg https://.../back.jpg --json
#   python -m src.cli.scan a.jpg b.jpg --no-persist
#
# Local files are sent inline as data URIs; anything with a scheme is
# passed through as a URL.  --json implies --quiet so stdout holds only
# the JSON document.
# =============================================================================

"""Standalone CLI for the CD identification pipeline.

Usage::

    python -m src.cli.scan front.jpg back.jpg hub.jpg
    python -m src.cli.scan URL URL --json
    python -m src.cli.scan front.jpg back.jpg --session-id ID --user-id me

Exit code 0 on success (any verdict), 1 on invalid input or a pipeline
error.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import time
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from src.pipeline.orchestrator import ScanOutcome

_ALLOWED_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10 MB
_DEFAULT_USER = "cli"


# ---------------------------------------------------------------------------
# Input helpers
# ---------------------------------------------------------------------------


def _is_remote(ref: str) -> bool:
    return ref.startswith(("http://", "https://", "data:"))


def resolve_image_ref(ref: str) -> str:
    """Return *ref* unchanged if it is a URL, else a data URI of the local file.

    Raises
    ------
    ValueError
        If the local file is missing, has an unsupported extension, or is
        larger than 10 MB.
    """
    if _is_remote(ref):
        return ref

    from src.providers.llm.openai_provider import bytes_to_data_uri

    path = Path(ref).expanduser().resolve()
    if not path.exists():
        raise ValueError(f"File not found: {path}")
    if path.suffix.lower() not in _ALLOWED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type: {path.suffix}. "
            f"Allowed: {', '.join(sorted(_ALLOWED_EXTENSIONS))}"
        )
    data = path.read_bytes()
    if len(data) > _MAX_FILE_SIZE:
        raise ValueError(f"File too large: {len(data):,} bytes. Maximum: {_MAX_FILE_SIZE:,} bytes.")
    return bytes_to_data_uri(data)


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def _format_text_output(outcome: ScanOutcome) -> str:
    """Format a scan outcome as a human-readable report."""
    from src.models.catalog import release_url
    from src.utils.confidence import confidence_to_level

    result = outcome.result
    lines: list[str] = []
    sep = "=" * 60

    lines.append(sep)
    lines.append("  MusicScan CD Identification Report")
    lines.append(sep)
    lines.append(f"Session: {outcome.session_id}  |  {outcome.version}")
    lines.append("")

    lines.append(f"Status:      {result.match_status.value}")
    level = confidence_to_level(result.overall_confidence).value
    lines.append(f"Confidence:  {result.overall_confidence:.3f} ({level})")
    if result.release_id:
        lines.append(f"Release:     {result.release_id}  {release_url(result.release_id)}")
    lines.append("")

    lines.append("IDENTIFICATION")
    lines.append("-" * 40)
    for label, value in (
        ("Artist", result.artist),
        ("Title", result.title),
        ("Label", result.label),
        ("Catno", result.catno),
        ("Barcode", result.barcode),
        ("Country", result.country),
        ("Year", result.year),
        ("Matrix", result.matrix),
        ("IFPI master", result.ifpi_master),
        ("IFPI mould", result.ifpi_mould),
    ):
        if value is not None:
            lines.append(f"  {label + ':':<13}{value}")
    lines.append("")

    if result.candidates:
        lines.append("CANDIDATES")
        lines.append("-" * 40)
        for c in result.candidates:
            year = f" ({c['year']})" if c.get("year") else ""
            country = f" [{c['country']}]" if c.get("country") else ""
            lines.append(f"  {c['score']:.3f}  {c['release_id']}  {c['title']}{year}{country}")
            if c.get("reason"):
                lines.append(f"         {', '.join(c['reason'])}")
        lines.append("")

    if outcome.photo_guidance:
        lines.append("NEXT PHOTOS")
        lines.append("-" * 40)
        for g in outcome.photo_guidance:
            lines.append(f"  [{g.field}] {g.instruction}")
        lines.append("")

    return "\n".join(lines)


def _format_json_output(outcome: ScanOutcome) -> str:
    """Serialize a scan outcome exactly like the API response body."""
    from src.api.schemas import CDScanResponse

    response = CDScanResponse.from_outcome(outcome)
    return json.dumps(response.model_dump(mode="json", by_alias=True), indent=2)


# ---------------------------------------------------------------------------
# Pipeline runner
# ---------------------------------------------------------------------------


def _suppress_logs() -> None:
    """Send all structlog and stdlib logging to stderr at WARNING+ level.

    Must run before the pipeline modules are imported: structlog caches
    loggers on first use.
    """
    import os

    from src.utils.logging import configure_logging

    os.environ["LOG_LEVEL"] = "WARNING"
    configure_logging(log_level="WARNING", stream=sys.stderr)


async def _run(args: argparse.Namespace) -> int:
    """Resolve inputs, build the pipeline and run one scan.

    Returns 0 on success, 1 on invalid input or pipeline failure.
    """
    from src.config.loader import load_config
    from src.config.settings import Settings
    from src.pipeline.factory import build_pipeline
    from src.providers.store.memory_scan_store import InMemoryScanStore
    from src.providers.store.sqlite_scan_store import SQLiteScanStore
    from src.utils.errors import CDScanError

    try:
        image_refs = [resolve_image_ref(ref) for ref in args.images]
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    settings = Settings()
    config = load_config(settings=settings)
    min_images = int(config.get("pipeline", {}).get("min_images", 2))
    if len(image_refs) < min_images:
        print(f"Error: at least {min_images} photos are required", file=sys.stderr)
        return 1

    store = InMemoryScanStore() if args.no_persist else SQLiteScanStore(settings.scan_db_path)
    await store.initialize()
    pipeline = build_pipeline(settings, config, store)["pipeline"]

    print(f"Scanning {len(image_refs)} photos", file=sys.stderr)
    start = time.monotonic()
    try:
        outcome = await pipeline.run(image_refs, args.user_id, session_id=args.session_id)
    except CDScanError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    print(f"Done in {time.monotonic() - start:.1f}s", file=sys.stderr)

    if args.json_output:
        print(_format_json_output(outcome))
    else:
        print(_format_text_output(outcome))
    return 0


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the scan CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.scan",
        description=(
            "Identify a CD from photos: front cover, back cover and disc hub. "
            "Prints the Discogs verdict, ranked candidates and photo guidance."
        ),
    )
    parser.add_argument(
        "images",
        nargs="+",
        help="Photo files (JPEG, PNG, WEBP) or URLs, front / back / hub first.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        dest="json_output",
        help="Output the API response body as JSON.",
    )
    parser.add_argument(
        "--session-id",
        default=None,
        help="Reprocess an existing session (its stored result is replaced).",
    )
    parser.add_argument(
        "--user-id",
        default=_DEFAULT_USER,
        help=f"Owner recorded on the session (default: {_DEFAULT_USER}).",
    )
    parser.add_argument(
        "--no-persist",
        action="store_true",
        help="Keep the session in memory instead of the SQLite database.",
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress log output (implied by --json).",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entry point; returns the process exit code."""
    args = _build_parser().parse_args(argv)
    if args.quiet or args.json_output:
        _suppress_logs()
    return asyncio.run(_run(args))


if __name__ == "__main__":
    sys.exit(main())
