"""SQLite-backed scan store.

Persists sessions, image references, per-field extractions and the final
result to a local SQLite database (``data/cd_scans.db`` by default).
Uses ``aiosqlite`` for async I/O; every call opens its own short-lived
connection.

Results are upserted on ``session_id``: a reprocessed session overwrites
every column of its previous result.  Extraction rows are never updated;
each pipeline run appends a new numbered batch.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from src.interfaces.scan_store import IScanStore
from src.models.extraction import Extraction, FieldName
from src.models.result import MatchStatus, ScanResult
from src.models.scan import AuditLog, ImageKind, ScanImage, ScanSession, SessionStatus
from src.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/cd_scans.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS scan_sessions (
    id          TEXT PRIMARY KEY,
    user_id     TEXT NOT NULL,
    media_type  TEXT NOT NULL DEFAULT 'cd',
    status      TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS scan_images (
    id            INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id    TEXT    NOT NULL REFERENCES scan_sessions(id),
    position      INTEGER NOT NULL,
    kind          TEXT    NOT NULL,
    storage_path  TEXT    NOT NULL,
    created_at    TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
    """\
CREATE TABLE IF NOT EXISTS scan_extractions (
    id                 INTEGER PRIMARY KEY AUTOINCREMENT,
    session_id         TEXT    NOT NULL REFERENCES scan_sessions(id),
    run                INTEGER NOT NULL,
    field_name         TEXT    NOT NULL,
    raw_value          TEXT,
    normalized_value   TEXT,
    confidence         REAL    NOT NULL,
    source_image_kind  TEXT,
    extractor_version  TEXT    NOT NULL,
    created_at         TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
""",
    """\
CREATE TABLE IF NOT EXISTS scan_results (
    session_id          TEXT PRIMARY KEY REFERENCES scan_sessions(id),
    artist              TEXT,
    title               TEXT,
    label               TEXT,
    catno               TEXT,
    barcode             TEXT,
    country             TEXT,
    year                INTEGER,
    matrix              TEXT,
    ifpi_master         TEXT,
    ifpi_mould          TEXT,
    match_status        TEXT NOT NULL,
    release_id          INTEGER,
    candidates_json     TEXT NOT NULL,
    overall_confidence  REAL NOT NULL,
    audit_json          TEXT NOT NULL,
    updated_at          TEXT NOT NULL
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_scan_sessions_user ON scan_sessions(user_id, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_scan_images_session ON scan_images(session_id);",
    "CREATE INDEX IF NOT EXISTS idx_scan_extractions_session ON scan_extractions(session_id, run);",
]

_SESSION_COLUMNS = "id, user_id, media_type, status, created_at, updated_at"

_RESULT_COLUMNS = (
    "session_id, artist, title, label, catno, barcode, country, year, matrix, "
    "ifpi_master, ifpi_mould, match_status, release_id, candidates_json, "
    "overall_confidence, audit_json, updated_at"
)

_UPSERT_RESULT_SQL = f"""\
INSERT INTO scan_results ({_RESULT_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT(session_id)
DO UPDATE SET artist             = excluded.artist,
              title              = excluded.title,
              label              = excluded.label,
              catno              = excluded.catno,
              barcode            = excluded.barcode,
              country            = excluded.country,
              year               = excluded.year,
              matrix             = excluded.matrix,
              ifpi_master        = excluded.ifpi_master,
              ifpi_mould         = excluded.ifpi_mould,
              match_status       = excluded.match_status,
              release_id         = excluded.release_id,
              candidates_json    = excluded.candidates_json,
              overall_confidence = excluded.overall_confidence,
              audit_json         = excluded.audit_json,
              updated_at         = excluded.updated_at;
"""


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def _row_to_session(row: aiosqlite.Row) -> ScanSession:
    return ScanSession(
        id=row["id"],
        user_id=row["user_id"],
        media_type=row["media_type"],
        status=SessionStatus(row["status"]),
        created_at=datetime.fromisoformat(row["created_at"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


def _row_to_result(row: aiosqlite.Row) -> ScanResult:
    return ScanResult(
        session_id=row["session_id"],
        artist=row["artist"],
        title=row["title"],
        label=row["label"],
        catno=row["catno"],
        barcode=row["barcode"],
        country=row["country"],
        year=row["year"],
        matrix=row["matrix"],
        ifpi_master=row["ifpi_master"],
        ifpi_mould=row["ifpi_mould"],
        match_status=MatchStatus(row["match_status"]),
        release_id=row["release_id"],
        candidates=json.loads(row["candidates_json"]),
        overall_confidence=row["overall_confidence"],
        audit=AuditLog.model_validate_json(row["audit_json"]),
        updated_at=datetime.fromisoformat(row["updated_at"]),
    )


class SQLiteScanStore(IScanStore):
    """SQLite-backed scan persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> aiosqlite.Connection:
        return aiosqlite.connect(str(self._db_path))

    async def initialize(self) -> None:
        """Create the four scan tables and their indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._connect() as db:
                for table_sql in _CREATE_TABLES_SQL:
                    await db.execute(table_sql)
                for idx_sql in _CREATE_INDICES_SQL:
                    await db.execute(idx_sql)
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Could not initialize scan database: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("scan_db_initialized", path=str(self._db_path))

    # -- Sessions --------------------------------------------------------------

    async def create_session(self, user_id: str, media_type: str = "cd") -> ScanSession:
        session = ScanSession(user_id=user_id, media_type=media_type)
        try:
            async with self._connect() as db:
                await db.execute(
                    f"INSERT INTO scan_sessions ({_SESSION_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        session.id,
                        session.user_id,
                        session.media_type,
                        session.status.value,
                        session.created_at.isoformat(),
                        session.updated_at.isoformat(),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Could not create scan session: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("scan_session_created", session_id=session.id, user_id=user_id)
        return session

    async def get_session(self, session_id: str) -> ScanSession | None:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM scan_sessions WHERE id = ?",
                (session_id,),
            )
            row = await cursor.fetchone()
        return _row_to_session(row) if row else None

    async def update_status(self, session_id: str, status: SessionStatus) -> ScanSession:
        updated_at = _now().isoformat()
        async with self._connect() as db:
            cursor = await db.execute(
                "UPDATE scan_sessions SET status = ?, updated_at = ? WHERE id = ?",
                (status.value, updated_at, session_id),
            )
            await db.commit()
            changed = cursor.rowcount
        if not changed:
            raise PersistenceError(
                message=f"Scan session {session_id} not found",
                provider_name=self.get_provider_name(),
            )
        session = await self.get_session(session_id)
        assert session is not None
        return session

    async def list_sessions(self, user_id: str, limit: int = 50) -> list[ScanSession]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_SESSION_COLUMNS} FROM scan_sessions "
                "WHERE user_id = ? ORDER BY created_at DESC LIMIT ?",
                (user_id, limit),
            )
            rows = await cursor.fetchall()
        return [_row_to_session(r) for r in rows]

    # -- Images + extractions --------------------------------------------------

    async def add_images(self, session_id: str, image_refs: list[str]) -> list[ScanImage]:
        images = [
            ScanImage(
                session_id=session_id,
                position=i,
                kind=ImageKind.for_position(i),
                storage_path=ref,
            )
            for i, ref in enumerate(image_refs)
        ]
        async with self._connect() as db:
            await db.executemany(
                "INSERT INTO scan_images (session_id, position, kind, storage_path) "
                "VALUES (?, ?, ?, ?)",
                [(img.session_id, img.position, img.kind.value, img.storage_path) for img in images],
            )
            await db.commit()
        return images

    async def add_extractions(
        self,
        session_id: str,
        extractions: list[Extraction],
        extractor_version: str,
    ) -> None:
        async with self._connect() as db:
            cursor = await db.execute(
                "SELECT COALESCE(MAX(run), 0) FROM scan_extractions WHERE session_id = ?",
                (session_id,),
            )
            (last_run,) = await cursor.fetchone()
            run = last_run + 1
            await db.executemany(
                "INSERT INTO scan_extractions (session_id, run, field_name, raw_value, "
                "normalized_value, confidence, source_image_kind, extractor_version) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
                [
                    (
                        session_id,
                        run,
                        e.field_name.value,
                        e.raw_value,
                        e.normalized_value,
                        e.confidence,
                        e.source_image_kind,
                        extractor_version,
                    )
                    for e in extractions
                ],
            )
            await db.commit()
        logger.debug(
            "scan_extractions_stored", session_id=session_id, run=run, count=len(extractions)
        )

    async def get_extractions(self, session_id: str) -> list[Extraction]:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT field_name, raw_value, normalized_value, confidence, source_image_kind "
                "FROM scan_extractions WHERE session_id = ? AND run = "
                "(SELECT MAX(run) FROM scan_extractions WHERE session_id = ?) ORDER BY id",
                (session_id, session_id),
            )
            rows = await cursor.fetchall()
        return [
            Extraction(
                field_name=FieldName(r["field_name"]),
                raw_value=r["raw_value"],
                normalized_value=r["normalized_value"],
                confidence=r["confidence"],
                source_image_kind=r["source_image_kind"],
            )
            for r in rows
        ]

    # -- Results ---------------------------------------------------------------

    async def upsert_result(self, result: ScanResult) -> None:
        try:
            async with self._connect() as db:
                await db.execute(
                    _UPSERT_RESULT_SQL,
                    (
                        result.session_id,
                        result.artist,
                        result.title,
                        result.label,
                        result.catno,
                        result.barcode,
                        result.country,
                        result.year,
                        result.matrix,
                        result.ifpi_master,
                        result.ifpi_mould,
                        result.match_status.value,
                        result.release_id,
                        json.dumps(result.candidates),
                        result.overall_confidence,
                        result.audit.model_dump_json(),
                        result.updated_at.isoformat(),
                    ),
                )
                await db.commit()
        except aiosqlite.Error as exc:
            raise PersistenceError(
                message=f"Could not store result for {result.session_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info(
            "scan_result_upserted",
            session_id=result.session_id,
            match_status=result.match_status.value,
            release_id=result.release_id,
        )

    async def get_result(self, session_id: str) -> ScanResult | None:
        async with self._connect() as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT {_RESULT_COLUMNS} FROM scan_results WHERE session_id = ?",
                (session_id,),
            )
            row = await cursor.fetchone()
        return _row_to_result(row) if row else None

    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""
        return "sqlite_scan_store"
