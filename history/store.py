from __future__ import annotations

import sqlite3


def insert_interaction_sync(conn: sqlite3.Connection, payload: dict) -> int:
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO interactions (
            conversation_id, user_id,
            request_text, response_text,
            thread_id, run_id,
            created_at_utc
        ) VALUES (?, ?, ?, ?, ?, ?, ?)
        """,
        (
            str(payload["conversation_id"]),
            payload.get("user_id"),
            payload["request_text"],
            payload["response_text"],
            payload.get("thread_id"),
            payload.get("run_id"),
            payload["created_at_utc"],
        ),
    )
    conn.commit()
    return int(cur.lastrowid)


def insert_space_event_sync(conn: sqlite3.Connection, payload: dict) -> int:
    cur = conn.cursor()
    cur.execute(
        """
        INSERT INTO space_events (event_type, space_id, actor_id, reason, created_at_utc)
        VALUES (?, ?, ?, ?, ?)
        """,
        (
            payload["event_type"],
            int(payload["space_id"]),
            payload.get("actor_id"),
            payload.get("reason"),
            payload["created_at_utc"],
        ),
    )
    conn.commit()
    return int(cur.lastrowid)


def fetch_recent_interactions_sync(
    conn: sqlite3.Connection,
    conversation_id: str,
    limit: int = 10,
) -> list[tuple[str, int | None, str, str]]:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT created_at_utc, user_id, request_text, response_text
        FROM interactions
        WHERE conversation_id = ?
        ORDER BY created_at_utc DESC, id DESC
        LIMIT ?
        """,
        (str(conversation_id), max(1, int(limit))),
    )
    return cur.fetchall()


def fetch_space_events_sync(conn: sqlite3.Connection, space_id: int) -> list[tuple[str, int | None, str | None, str]]:
    cur = conn.cursor()
    cur.execute(
        """
        SELECT event_type, actor_id, reason, created_at_utc
        FROM space_events
        WHERE space_id = ?
        ORDER BY id ASC
        """,
        (int(space_id),),
    )
    return cur.fetchall()


def history_counts_sync(conn: sqlite3.Connection) -> dict[str, int]:
    cur = conn.cursor()
    cur.execute("SELECT COUNT(*) FROM interactions")
    interactions = int(cur.fetchone()[0])
    cur.execute("SELECT event_type, COUNT(*) FROM space_events GROUP BY event_type")
    out = {"interactions": interactions, "spaces_created": 0, "spaces_deleted": 0}
    for event_type, n in cur.fetchall():
        if event_type == "Created":
            out["spaces_created"] = int(n)
        elif event_type == "Deleted":
            out["spaces_deleted"] = int(n)
    return out
