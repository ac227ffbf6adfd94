"""Pipeline orchestration for the CD identification flow."""

from src.pipeline.orchestrator import PIPELINE_VERSION, CDScanPipeline, ScanOutcome

__all__ = [
    "CDScanPipeline",
    "PIPELINE_VERSION",
    "ScanOutcome",
]
