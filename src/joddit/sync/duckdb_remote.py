"""DuckDB-backed remote store.

Runs the remote ``notes`` table and its statements against an embedded DuckDB
database.  Used for development, tests, and single-machine deployments where
a file on shared storage stands in for the hosted Postgres database.

Environment variables (optional; the direct kwarg takes precedence):
    JODDIT_REMOTE_DB   – path of the DuckDB file (default: in-memory)
"""

from __future__ import annotations

import logging
import os
import threading
from pathlib import Path

import duckdb

from joddit.exceptions import RemoteStoreError
from joddit.note import Note

logger = logging.getLogger(__name__)

_COLUMNS = [
    "id",
    "user_id",
    "title",
    "content",
    "segments",
    "created_at",
    "updated_at",
    "is_pinned",
    "category",
    "is_deleted",
]


class DuckDBRemoteStore:
    """Remote store over a local DuckDB database file (or ``:memory:``)."""

    def __init__(self, db_path: Path | str | None = None) -> None:
        self._db_path = str(db_path or os.getenv("JODDIT_REMOTE_DB", ":memory:"))
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(self._db_path)
        # One connection shared by the app thread and the sync worker
        self._lock = threading.Lock()
        self._ensure_schema()

    def _ensure_schema(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS notes (
                id          VARCHAR PRIMARY KEY,
                user_id     VARCHAR NOT NULL,
                title       VARCHAR NOT NULL DEFAULT '',
                content     TEXT    NOT NULL DEFAULT '',
                segments    JSON,
                created_at  BIGINT  NOT NULL,
                updated_at  BIGINT  NOT NULL,
                is_pinned   BOOLEAN NOT NULL DEFAULT false,
                category    VARCHAR,
                is_deleted  BOOLEAN NOT NULL DEFAULT false
            );
        """)

    # ------------------------------------------------------------------
    # Notes
    # ------------------------------------------------------------------

    def fetch(self, user_id: str, credential: str | None = None) -> list[Note]:
        try:
            with self._lock:
                rows = self.conn.execute(
                    f"""
                    SELECT {", ".join(_COLUMNS)} FROM notes
                    WHERE user_id = ? AND is_deleted = false
                    ORDER BY updated_at DESC
                    """,
                    [user_id],
                ).fetchall()
            return [Note.from_row(dict(zip(_COLUMNS, row))) for row in rows]
        except (duckdb.Error, AttributeError, KeyError, TypeError, ValueError) as e:
            logger.warning("Remote fetch failed for %s: %s", user_id, e)
            return []

    def upsert(self, user_id: str, note: Note, credential: str | None = None) -> None:
        row = note.to_row(user_id)
        try:
            with self._lock:
                self.conn.execute(
                    """
                    INSERT INTO notes (
                        id, user_id, title, content, segments,
                        created_at, updated_at, is_pinned, category, is_deleted
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    ON CONFLICT (id) DO UPDATE SET
                        title      = excluded.title,
                        content    = excluded.content,
                        segments   = excluded.segments,
                        updated_at = excluded.updated_at,
                        is_pinned  = excluded.is_pinned,
                        category   = excluded.category,
                        is_deleted = excluded.is_deleted;
                    """,
                    [row[c] for c in _COLUMNS],
                )
        except duckdb.Error as e:
            raise RemoteStoreError(f"upsert of note {note.id} failed", str(e)) from e

    def soft_delete(self, user_id: str, note_id: str, credential: str | None = None) -> None:
        try:
            with self._lock:
                self.conn.execute(
                    "UPDATE notes SET is_deleted = true WHERE id = ? AND user_id = ?",
                    [note_id, user_id],
                )
        except duckdb.Error as e:
            raise RemoteStoreError(f"soft delete of note {note_id} failed", str(e)) from e

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    def row(self, note_id: str) -> dict | None:
        """Return the raw row for *note_id*, deleted or not."""
        with self._lock:
            found = self.conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM notes WHERE id = ?", [note_id]
            ).fetchone()
        return dict(zip(_COLUMNS, found)) if found else None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "DuckDBRemoteStore":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
