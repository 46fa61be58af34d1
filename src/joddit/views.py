"""NoteTable — list views over the current note set.

Loads notes into an in-memory DuckDB table and answers the home screen's
questions (filter by category, search, pinned-first ordering, per-category
counts) as :mod:`polars` DataFrames.

Usage::

    table = NoteTable(service.get_notes(user_id))
    df = table.table_view(category="Ideas", search="design")
    counts = table.category_counts()     # {"All": 5, "Ideas": 2, ...}
"""

from __future__ import annotations

import json

import duckdb
import polars as pl

from joddit.note import Note

#: Pseudo-category covering every note in :meth:`NoteTable.category_counts`
ALL = "All"


class NoteTable:
    """In-memory DuckDB table over a snapshot of notes."""

    def __init__(self, notes: list[Note]) -> None:
        self.conn: duckdb.DuckDBPyConnection = duckdb.connect(":memory:")
        self.refresh(notes)

    # ------------------------------------------------------------------
    # Build / refresh
    # ------------------------------------------------------------------

    def refresh(self, notes: list[Note]) -> None:
        """(Re-)populate the table from *notes*; deleted notes are left out."""
        self.conn.execute("""
            CREATE OR REPLACE TABLE notes (
                id          VARCHAR PRIMARY KEY,
                title       VARCHAR,
                content     TEXT,
                category    VARCHAR,
                is_pinned   BOOLEAN,
                is_synced   BOOLEAN,
                created_at  BIGINT,
                updated_at  BIGINT,
                segments    JSON
            )
        """)
        rows = [
            (
                n.id,
                n.title,
                n.content,
                n.category,
                n.is_pinned,
                n.is_synced,
                n.created_at,
                n.updated_at,
                json.dumps([s.to_dict() for s in n.segments]),
            )
            for n in notes
            if not n.is_deleted
        ]
        if rows:
            self.conn.executemany("INSERT OR REPLACE INTO notes VALUES (?,?,?,?,?,?,?,?,?)", rows)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def table_view(
        self,
        *,
        category: str | None = None,
        search: str | None = None,
        pinned_first: bool = True,
    ) -> pl.DataFrame:
        """Return notes as a Polars DataFrame, optionally filtered.

        Parameters
        ----------
        category:
            Only include notes filed under this category (``"All"`` or
            ``None`` for every note).
        search:
            Case-insensitive substring filter on title or content.
        pinned_first:
            Put pinned notes ahead of the rest; within each group the most
            recently updated come first.
        """
        where: list[str] = []
        params: list[str] = []
        if category and category != ALL:
            where.append("category = ?")
            params.append(category)
        if search:
            where.append("(title ILIKE ? OR content ILIKE ?)")
            pattern = f"%{search}%"
            params.extend([pattern, pattern])

        clause = f"WHERE {' AND '.join(where)}" if where else ""
        order = "is_pinned DESC, updated_at DESC" if pinned_first else "updated_at DESC"
        sql = f"""
            SELECT id, title, content, category, is_pinned, is_synced, updated_at
            FROM notes {clause}
            ORDER BY {order}
        """
        return self.conn.execute(sql, params).pl()

    def category_counts(self) -> dict[str, int]:
        """Return ``{"All": total, <category>: count, ...}``."""
        df = self.conn.execute(
            "SELECT category, COUNT(*) AS n FROM notes GROUP BY category ORDER BY category"
        ).pl()
        counts = {ALL: int(df["n"].sum()) if df.height else 0}
        for row in df.iter_rows(named=True):
            counts[row["category"]] = int(row["n"])
        return counts

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> "NoteTable":
        return self

    def __exit__(self, *_: object) -> None:
        self.close()
