from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import Any

from history.store import fetch_recent_interactions_sync
from history.store import history_counts_sync
from history.store import insert_interaction_sync
from history.store import insert_space_event_sync


def utc_iso(dt: datetime | None = None) -> str:
    dt = dt or datetime.now(timezone.utc)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).isoformat()


class InteractionRecorder:
    """Best-effort history writer. Every failure is logged and swallowed."""

    def __init__(self, *, db_lock: asyncio.Lock, db_conn: Any) -> None:
        self.db_lock = db_lock
        self.db_conn = db_conn

    async def _write(self, label: str, func, payload: dict) -> int | None:
        try:
            async with self.db_lock:
                return await asyncio.to_thread(func, self.db_conn, payload)
        except Exception as e:
            print(f"[History] {label} write failed: {str(e)[:180]}")
            return None

    async def record_interaction(
        self,
        *,
        conversation_id: str,
        user_id: int | None,
        request_text: str,
        response_text: str,
        thread_id: str | None = None,
        run_id: str | None = None,
    ) -> int | None:
        return await self._write(
            "interaction",
            insert_interaction_sync,
            {
                "conversation_id": str(conversation_id),
                "user_id": int(user_id) if user_id is not None else None,
                "request_text": request_text or "",
                "response_text": response_text or "",
                "thread_id": thread_id,
                "run_id": run_id,
                "created_at_utc": utc_iso(),
            },
        )

    async def record_space_event(
        self,
        event_type: str,
        *,
        space_id: int,
        actor_id: int | None = None,
        reason: str | None = None,
    ) -> int | None:
        return await self._write(
            "space_event",
            insert_space_event_sync,
            {
                "event_type": event_type,
                "space_id": int(space_id),
                "actor_id": int(actor_id) if actor_id is not None else None,
                "reason": reason,
                "created_at_utc": utc_iso(),
            },
        )

    async def recent_interactions(self, conversation_id: str, limit: int = 5) -> list[tuple]:
        try:
            async with self.db_lock:
                return await asyncio.to_thread(
                    fetch_recent_interactions_sync,
                    self.db_conn,
                    str(conversation_id),
                    limit,
                )
        except Exception as e:
            print(f"[History] interaction read failed: {str(e)[:180]}")
            return []

    async def counts(self) -> dict[str, int]:
        try:
            async with self.db_lock:
                return await asyncio.to_thread(history_counts_sync, self.db_conn)
        except Exception as e:
            print(f"[History] counts read failed: {str(e)[:180]}")
            return {}
