"""Append-only audit trail collected during one pipeline run.

Every stage receives the same :class:`AuditTrail` and appends
``{step, detail, timestamp}`` records to it.  At the end of the run the
trail is frozen into an :class:`~src.models.scan.AuditLog` and persisted
with the result.
"""

from __future__ import annotations

from src.models.scan import AuditEntry, AuditLog


class AuditTrail:
    """Mutable collector of :class:`AuditEntry` records.

    Entries can only be appended; the list handed out by :attr:`entries`
    is a copy.
    """

    def __init__(self) -> None:
        self._entries: list[AuditEntry] = []

    def add(self, step: str, detail: str) -> AuditEntry:
        entry = AuditEntry(step=step, detail=detail)
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> list[AuditEntry]:
        return list(self._entries)

    def steps(self) -> list[str]:
        return [e.step for e in self._entries]

    def to_log(self, version: str) -> AuditLog:
        """Freeze the trail into the persisted ``{version, entries}`` envelope."""
        return AuditLog(version=version, entries=list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)
