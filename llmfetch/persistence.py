"""Async SQLite persistence for extraction jobs and their dynamically created tables."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

import aiosqlite

from .errors import JobNotFound, ValidationError
from .utils.naming import column_name, quote_identifier, table_name_for

logger = logging.getLogger(__name__)

_COUNTER_KEY = "job_counter"
_RESERVED_COLUMNS = {"id"}


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc).replace(microsecond=0)


@dataclass
class Job:
    id: int
    created_at: datetime
    fields: List[str]
    table_name: str
    columns: List[str]
    field_counts: Dict[str, int] = field(default_factory=dict)
    row_count: int = 0

    def column_for(self, display_name: str) -> Optional[str]:
        try:
            return self.columns[self.fields.index(display_name)]
        except ValueError:
            return None


@dataclass
class Row:
    id: int
    values: Dict[str, Optional[str]]

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"id": self.id}
        payload.update(self.values)
        return payload


def _validate_fields(fields: Sequence[str]) -> List[Tuple[str, str]]:
    if isinstance(fields, (str, bytes)) or not fields:
        raise ValidationError("fields must be a non-empty list of names")

    pairs: List[Tuple[str, str]] = []
    seen_names: set[str] = set()
    seen_columns: Dict[str, str] = {}
    for name in fields:
        if not isinstance(name, str) or not name.strip():
            raise ValidationError("field names must be non-empty strings")
        if name in seen_names:
            raise ValidationError(f"duplicate field name: {name!r}")
        col = column_name(name)
        if col in _RESERVED_COLUMNS:
            raise ValidationError(f"field {name!r} maps to reserved column {col!r}")
        if col in seen_columns:
            # Sanitization is not injective; refuse rather than merge columns.
            raise ValidationError(
                f"fields {seen_columns[col]!r} and {name!r} both map to column {col!r}"
            )
        seen_names.add(name)
        seen_columns[col] = name
        pairs.append((name, col))
    return pairs


def _encode_value(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, tuple):
        value = list(value)
    # Structured values and booleans are stored as JSON text
    if isinstance(value, (list, dict, bool)):
        return json.dumps(value, ensure_ascii=False)
    return str(value)


class JobStore:
    def __init__(self, db_path: Path, *, busy_timeout: float = 30.0) -> None:
        self.db_path = Path(db_path)
        self._busy_timeout = busy_timeout
        self._init_lock = asyncio.Lock()
        self._create_lock = asyncio.Lock()
        self._initialized = False

    async def init(self) -> None:
        async with self._init_lock:
            if self._initialized:
                return

            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = await aiosqlite.connect(self.db_path, timeout=self._busy_timeout)
            try:
                # WAL keeps repeated CREATE TABLE cheap
                await conn.execute("PRAGMA journal_mode=WAL;")
                await conn.execute("PRAGMA synchronous=NORMAL;")
                await conn.execute("PRAGMA foreign_keys=ON;")

                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS _metadata (
                        key TEXT PRIMARY KEY,
                        value INTEGER NOT NULL
                    )
                    """
                )

                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS jobs (
                        id INTEGER PRIMARY KEY,
                        table_name TEXT NOT NULL UNIQUE,
                        created_at TEXT NOT NULL
                    )
                    """
                )

                await conn.execute(
                    """
                    CREATE TABLE IF NOT EXISTS job_fields (
                        job_id INTEGER NOT NULL,
                        position INTEGER NOT NULL,
                        display_name TEXT NOT NULL,
                        column_name TEXT NOT NULL,
                        PRIMARY KEY (job_id, position),
                        UNIQUE (job_id, column_name),
                        FOREIGN KEY(job_id) REFERENCES jobs(id) ON DELETE CASCADE
                    )
                    """
                )

                await conn.commit()
            finally:
                await conn.close()
            self._initialized = True

    async def _conn(self) -> aiosqlite.Connection:
        await self.init()
        conn = await aiosqlite.connect(self.db_path, timeout=self._busy_timeout)
        await conn.execute("PRAGMA foreign_keys=ON;")
        conn.row_factory = aiosqlite.Row
        return conn

    async def _load_job(self, conn: aiosqlite.Connection, job_id: int) -> Optional[Job]:
        cur = await conn.execute("SELECT id, table_name, created_at FROM jobs WHERE id=?", (int(job_id),))
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None

        cur = await conn.execute(
            "SELECT display_name, column_name FROM job_fields WHERE job_id=? ORDER BY position ASC",
            (int(job_id),),
        )
        field_rows = await cur.fetchall()
        await cur.close()
        return Job(
            id=int(row["id"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            fields=[r["display_name"] for r in field_rows],
            table_name=row["table_name"],
            columns=[r["column_name"] for r in field_rows],
        )

    # Jobs
    async def create_job(self, fields: Sequence[str]) -> int:
        pairs = _validate_fields(fields)
        logger.info("Creating job table for fields %s", json.dumps([name for name, _ in pairs]))

        async with self._create_lock:
            conn = await self._conn()
            try:
                await conn.execute("BEGIN IMMEDIATE")
                cur = await conn.execute(
                    """
                    INSERT INTO _metadata (key, value) VALUES (?, 1)
                    ON CONFLICT(key) DO UPDATE SET value = value + 1
                    RETURNING value
                    """,
                    (_COUNTER_KEY,),
                )
                counter = await cur.fetchone()
                await cur.close()
                job_id = int(counter[0])

                created_at = _utc_now()
                table = table_name_for(job_id, created_at)
                column_defs = ", ".join(f"{quote_identifier(col)} TEXT" for _, col in pairs)
                await conn.execute(
                    f"CREATE TABLE {quote_identifier(table)} ("
                    f"id INTEGER PRIMARY KEY AUTOINCREMENT, {column_defs})"
                )
                await conn.execute(
                    "INSERT INTO jobs (id, table_name, created_at) VALUES (?, ?, ?)",
                    (job_id, table, created_at.isoformat()),
                )
                await conn.executemany(
                    "INSERT INTO job_fields (job_id, position, display_name, column_name) VALUES (?, ?, ?, ?)",
                    [(job_id, position, name, col) for position, (name, col) in enumerate(pairs)],
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise
            finally:
                await conn.close()

        logger.info("Created job %s (table %s)", job_id, table)
        return job_id

    async def get_job(self, job_id: int) -> Optional[Job]:
        conn = await self._conn()
        try:
            return await self._load_job(conn, job_id)
        finally:
            await conn.close()

    async def list_jobs(self) -> List[Job]:
        conn = await self._conn()
        try:
            cur = await conn.execute("SELECT id FROM jobs ORDER BY id DESC")
            ids = [int(r["id"]) for r in await cur.fetchall()]
            await cur.close()

            jobs: List[Job] = []
            for job_id in ids:
                job = await self._load_job(conn, job_id)
                if job is None:
                    continue
                await self._fill_counts(conn, job)
                jobs.append(job)
            return jobs
        finally:
            await conn.close()

    async def _fill_counts(self, conn: aiosqlite.Connection, job: Job) -> None:
        parts = ["COUNT(*)"]
        for col in job.columns:
            quoted = quote_identifier(col)
            parts.append(f"SUM(CASE WHEN {quoted} IS NOT NULL AND {quoted} != '' THEN 1 ELSE 0 END)")
        cur = await conn.execute(f"SELECT {', '.join(parts)} FROM {quote_identifier(job.table_name)}")
        row = await cur.fetchone()
        await cur.close()
        job.row_count = int(row[0] or 0)
        job.field_counts = {name: int(row[i + 1] or 0) for i, name in enumerate(job.fields)}

    async def delete_job(self, job_id: int) -> bool:
        conn = await self._conn()
        try:
            await conn.execute("BEGIN IMMEDIATE")
            job = await self._load_job(conn, job_id)
            if job is None:
                await conn.rollback()
                return False
            await conn.execute(f"DROP TABLE IF EXISTS {quote_identifier(job.table_name)}")
            await conn.execute("DELETE FROM job_fields WHERE job_id=?", (job.id,))
            await conn.execute("DELETE FROM jobs WHERE id=?", (job.id,))
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise
        finally:
            await conn.close()

        logger.info("Deleted job %s (table %s)", job.id, job.table_name)
        return True

    # Rows
    async def insert_row(self, job_id: int, data: Mapping[str, Any]) -> int:
        conn = await self._conn()
        try:
            job = await self._load_job(conn, job_id)
            if job is None:
                raise JobNotFound(job_id)

            columns: List[str] = []
            values: List[Optional[str]] = []
            for name, value in data.items():
                col = job.column_for(name)
                if col is None:
                    raise ValidationError(f"field {name!r} is not declared by job {job.id}")
                columns.append(quote_identifier(col))
                values.append(_encode_value(value))

            table = quote_identifier(job.table_name)
            if columns:
                placeholders = ", ".join("?" for _ in columns)
                sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
            else:
                sql = f"INSERT INTO {table} DEFAULT VALUES"
            cur = await conn.execute(sql, tuple(values))
            row_id = int(cur.lastrowid)
            await cur.close()
            await conn.commit()
            logger.debug("Inserted row %s into job %s", row_id, job.id)
            return row_id
        finally:
            await conn.close()

    async def read_rows(self, job_id: int, row_id: Optional[int] = None) -> List[Row]:
        conn = await self._conn()
        try:
            job = await self._load_job(conn, job_id)
            if job is None:
                return []

            selected = ", ".join(["id"] + [quote_identifier(col) for col in job.columns])
            sql = f"SELECT {selected} FROM {quote_identifier(job.table_name)}"
            params: Tuple[Any, ...] = ()
            if row_id is not None:
                sql += " WHERE id=?"
                params = (int(row_id),)
            sql += " ORDER BY id ASC"

            cur = await conn.execute(sql, params)
            rows = await cur.fetchall()
            await cur.close()
            return [
                Row(id=int(r[0]), values={name: r[i + 1] for i, name in enumerate(job.fields)})
                for r in rows
            ]
        finally:
            await conn.close()

    async def delete_row(self, job_id: int, row_id: int) -> bool:
        conn = await self._conn()
        try:
            job = await self._load_job(conn, job_id)
            if job is None:
                return False
            cur = await conn.execute(
                f"DELETE FROM {quote_identifier(job.table_name)} WHERE id=?",
                (int(row_id),),
            )
            deleted = cur.rowcount > 0
            await cur.close()
            await conn.commit()
            return deleted
        finally:
            await conn.close()
