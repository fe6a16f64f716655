from __future__ import annotations

from collections import OrderedDict
from typing import Awaitable, Callable

from relay.keyed_locks import KeyedLocks


class ThreadRegistry:
    """Maps a Discord conversation id to the backend thread that holds its context.

    Bindings are created on first use and never rewritten. Creation is
    serialized per conversation so concurrent first messages share one
    backend thread. The map is a bounded LRU; a conversation whose creation
    is in flight is never evicted.
    """

    def __init__(
        self,
        *,
        create_thread: Callable[[], Awaitable[str]],
        max_entries: int = 10000,
    ) -> None:
        self._create_thread = create_thread
        self.max_entries = max(1, int(max_entries or 1))
        self._bindings: OrderedDict[str, str] = OrderedDict()
        self._key_locks = KeyedLocks()

    def __len__(self) -> int:
        return len(self._bindings)

    def get(self, conversation_id: str) -> str | None:
        key = str(conversation_id)
        thread_id = self._bindings.get(key)
        if thread_id is not None:
            self._bindings.move_to_end(key)
        return thread_id

    async def resolve_or_create(self, conversation_id: str) -> str:
        key = str(conversation_id)
        existing = self.get(key)
        if existing is not None:
            return existing

        async with self._key_locks.hold(key):
            existing = self.get(key)
            if existing is not None:
                return existing
            thread_id = str(await self._create_thread())
            self._bindings[key] = thread_id
            self._evict()
            print(f"[Relay] thread bound conversation={key} thread={thread_id}")
            return thread_id

    def _evict(self) -> None:
        for key in list(self._bindings.keys()):
            if len(self._bindings) <= self.max_entries:
                break
            if self._key_locks.in_use(key):
                continue
            thread_id = self._bindings.pop(key)
            print(f"[Relay] thread binding evicted conversation={key} thread={thread_id}")
