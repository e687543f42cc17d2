"""SQLite-backed store of existing titles for the duplicate-title guard."""

from __future__ import annotations

import logging
import sqlite3
from datetime import UTC, datetime
from pathlib import Path

from seedtopics.models import NewsTopic

logger = logging.getLogger(__name__)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS titles (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'DRAFT',
    seed_title  TEXT NOT NULL DEFAULT '',
    inserted_at TEXT NOT NULL
);
"""

STATUSES: tuple[str, ...] = ("PUBLISHED", "DRAFT", "GENERATED")


class TitleStore:
    """Append-only archive of published, drafted and generated titles."""

    def __init__(self, db_path: Path) -> None:
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._init_db()

    # ── public ──────────────────────────────────────────────────────────

    def existing_titles(self, limit: int = 300) -> list[str]:
        """Return distinct titles, newest first."""
        con = self._connect()
        try:
            cur = con.execute(
                "SELECT title FROM titles GROUP BY title ORDER BY MAX(id) DESC LIMIT ?",
                (limit,),
            )
            return [row[0] for row in cur.fetchall()]
        finally:
            con.close()

    def insert(self, title: str, status: str = "DRAFT", seed_title: str = "") -> None:
        if status not in STATUSES:
            raise ValueError(f"Unknown title status '{status}'")
        con = self._connect()
        try:
            con.execute(
                "INSERT INTO titles (title, status, seed_title, inserted_at) VALUES (?, ?, ?, ?)",
                (title, status, seed_title, datetime.now(UTC).isoformat()),
            )
            con.commit()
        finally:
            con.close()

    def insert_many(self, topics: list[NewsTopic], seed_title: str = "") -> int:
        """Log generated topic titles; return count of inserted rows."""
        now = datetime.now(UTC).isoformat()
        rows = [(t.title, "GENERATED", seed_title, now) for t in topics]
        con = self._connect()
        try:
            con.executemany(
                "INSERT INTO titles (title, status, seed_title, inserted_at) VALUES (?, ?, ?, ?)",
                rows,
            )
            con.commit()
        finally:
            con.close()
        logger.info("Logged %d generated titles", len(rows))
        return len(rows)

    # ── private ─────────────────────────────────────────────────────────

    def _connect(self) -> sqlite3.Connection:
        return sqlite3.connect(str(self._db_path))

    def _init_db(self) -> None:
        con = self._connect()
        con.executescript(_SCHEMA)
        con.close()
