"""Scan store implementations."""

from src.providers.store.memory_scan_store import InMemoryScanStore
from src.providers.store.sqlite_scan_store import SQLiteScanStore

__all__ = ["InMemoryScanStore", "SQLiteScanStore"]
