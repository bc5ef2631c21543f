from __future__ import annotations

import sqlite3
from contextlib import AbstractContextManager
from datetime import datetime, timezone
from pathlib import Path


class BookmarkStore(AbstractContextManager["BookmarkStore"]):
    """Bookmarked listing ids kept in a local sqlite file."""

    def __init__(self, db_path: Path | str):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.db_path)
        self.conn.row_factory = sqlite3.Row
        self._init_schema()

    def _init_schema(self) -> None:
        with self.conn:
            self.conn.execute(
                """
                CREATE TABLE IF NOT EXISTS bookmarked_listings (
                    job_id INTEGER PRIMARY KEY,
                    bookmarked_at TEXT NOT NULL
                )
                """
            )

    def add(self, job_id: int, bookmarked_at_utc: str | None = None) -> bool:
        bookmarked_at = (
            bookmarked_at_utc or datetime.now(timezone.utc).replace(microsecond=0).isoformat()
        )
        with self.conn:
            cursor = self.conn.execute(
                """
                INSERT OR IGNORE INTO bookmarked_listings (job_id, bookmarked_at)
                VALUES (?, ?)
                """,
                (job_id, bookmarked_at),
            )
        return cursor.rowcount == 1

    def remove(self, job_id: int) -> bool:
        with self.conn:
            cursor = self.conn.execute(
                "DELETE FROM bookmarked_listings WHERE job_id = ?",
                (job_id,),
            )
        return cursor.rowcount == 1

    def is_bookmarked(self, job_id: int) -> bool:
        row = self.conn.execute(
            "SELECT 1 FROM bookmarked_listings WHERE job_id = ? LIMIT 1",
            (job_id,),
        ).fetchone()
        return row is not None

    def ids(self) -> set[int]:
        rows = self.conn.execute("SELECT job_id FROM bookmarked_listings").fetchall()
        return {int(row["job_id"]) for row in rows}

    def count(self) -> int:
        row = self.conn.execute("SELECT COUNT(*) AS c FROM bookmarked_listings").fetchone()
        return int(row["c"]) if row else 0

    def close(self) -> None:
        self.conn.close()

    def __exit__(self, exc_type, exc, exc_tb) -> None:
        self.close()
