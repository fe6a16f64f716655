from __future__ import annotations

import sqlite3


def _has_table(conn: sqlite3.Connection, table: str) -> bool:
    cur = conn.cursor()
    cur.execute("SELECT 1 FROM sqlite_master WHERE type='table' AND name=? LIMIT 1", (table,))
    return cur.fetchone() is not None


def _has_column(conn: sqlite3.Connection, table: str, column: str) -> bool:
    cur = conn.cursor()
    cur.execute(f"PRAGMA table_info({table})")
    return any(str(row[1]) == column for row in cur.fetchall())


def _ensure_space_events_table(cur: sqlite3.Cursor) -> None:
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS space_events (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            event_type TEXT NOT NULL,
            space_id INTEGER NOT NULL,
            actor_id INTEGER,
            reason TEXT,
            created_at_utc TEXT NOT NULL
        )
        """
    )
    cur.execute("CREATE INDEX IF NOT EXISTS idx_space_events_space_id ON space_events(space_id)")
    cur.execute("CREATE INDEX IF NOT EXISTS idx_space_events_created_at ON space_events(created_at_utc)")


def upgrade(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    conn.execute("BEGIN")
    try:
        _ensure_space_events_table(cur)
        # older hand-made databases may lack the reason column
        if _has_table(conn, "space_events") and not _has_column(conn, "space_events", "reason"):
            cur.execute("ALTER TABLE space_events ADD COLUMN reason TEXT")
        conn.commit()
    except Exception:
        conn.rollback()
        raise
