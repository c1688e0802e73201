from __future__ import annotations

import json
import os
import sqlite3
import threading
from datetime import datetime, timezone
from typing import Protocol

from app.normalize.normalize_record import load_resume_record
from app.schemas.resume import ResumeRecord


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ResumeRepository(Protocol):
    def get(self, user_id: str) -> ResumeRecord | None:
        """Return the stored record for ``user_id`` or None."""

    def put(self, user_id: str, record: ResumeRecord) -> None:
        """Store ``record`` for ``user_id``, replacing any previous one."""


class InMemoryResumeRepository:
    def __init__(self) -> None:
        self._records: dict[str, ResumeRecord] = {}

    def get(self, user_id: str) -> ResumeRecord | None:
        return self._records.get(user_id)

    def put(self, user_id: str, record: ResumeRecord) -> None:
        self._records[user_id] = record

    def __len__(self) -> int:
        return len(self._records)


class SqliteResumeRepository:
    """One JSON blob per user. Stored payloads are canonicalized on read."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    def _get_connection(self) -> sqlite3.Connection:
        with self._lock:
            if self._conn is not None:
                return self._conn

            directory = os.path.dirname(self._db_path)
            if directory:
                os.makedirs(directory, exist_ok=True)

            conn = sqlite3.connect(
                self._db_path,
                check_same_thread=False,
                timeout=5,
                isolation_level=None,
            )
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA busy_timeout=5000;")
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS resumes (
                    user_id TEXT PRIMARY KEY,
                    resume_json TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                );
                """
            )
            self._conn = conn
            return conn

    def init(self) -> None:
        self._get_connection()

    def get(self, user_id: str) -> ResumeRecord | None:
        conn = self._get_connection()
        with self._lock:
            cur = conn.execute("SELECT resume_json FROM resumes WHERE user_id = ?", (user_id,))
            row = cur.fetchone()
        if not row:
            return None
        return load_resume_record(json.loads(row[0]) if row[0] else {})

    def put(self, user_id: str, record: ResumeRecord) -> None:
        conn = self._get_connection()
        payload = record.model_dump_json(by_alias=True)
        with self._lock:
            conn.execute(
                """
                INSERT INTO resumes (user_id, resume_json, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    resume_json = excluded.resume_json,
                    updated_at = excluded.updated_at
                """,
                (user_id, payload, _utc_now().isoformat()),
            )

    def delete(self, user_id: str) -> None:
        conn = self._get_connection()
        with self._lock:
            conn.execute("DELETE FROM resumes WHERE user_id = ?", (user_id,))

    def close(self) -> None:
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
