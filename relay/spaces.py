from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field
from typing import Any, Callable


SPACE_CREATED = "Created"
SPACE_DELETED = "Deleted"


@dataclass(frozen=True, slots=True)
class PermissionPolicy:
    deny_default_view: bool = True
    owner_allow: tuple[str, ...] = ("view_channel", "send_messages", "read_message_history")


@dataclass(slots=True)
class EphemeralSpace:
    space_id: int
    owner_id: int
    created_at: float
    handle: Any
    timer: asyncio.Task | None = field(default=None, repr=False)
    # set once the space leaves the registry; aborts in-flight run polls
    closed: asyncio.Event = field(default_factory=asyncio.Event, repr=False)


class EphemeralSpaceManager:
    """Owns the registry of private ticket channels and their deletion timers.

    A space is deleted by whichever fires first: its lifetime timer or the
    owner's close button. Both paths go through `_delete_and_deregister`,
    which removes the registry entry and cancels the timer before the first
    suspension point, so only one caller ever reaches the platform delete.
    """

    def __init__(
        self,
        *,
        platform: Any,
        recorder: Any = None,
        lifetime_seconds: float = 600.0,
        greeting: str = "",
        control_id: str = "close_ticket",
        policy: PermissionPolicy | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._platform = platform
        self._recorder = recorder
        self.lifetime_seconds = max(0.0, float(lifetime_seconds))
        self.greeting = greeting
        self.control_id = control_id
        self.policy = policy or PermissionPolicy()
        self._clock = clock
        self._spaces: dict[int, EphemeralSpace] = {}

    def __len__(self) -> int:
        return len(self._spaces)

    def is_active(self, space_id: int) -> bool:
        return int(space_id) in self._spaces

    def get(self, space_id: int) -> EphemeralSpace | None:
        return self._spaces.get(int(space_id))

    def closed_event(self, space_id: int) -> asyncio.Event | None:
        space = self._spaces.get(int(space_id))
        return space.closed if space is not None else None

    async def create(self, guild: Any, owner_id: int) -> Any:
        handle = await self._platform.create_private_space(guild, int(owner_id), self.policy)
        space = EphemeralSpace(
            space_id=int(handle.id),
            owner_id=int(owner_id),
            created_at=self._clock(),
            handle=handle,
        )
        self._spaces[space.space_id] = space
        space.timer = asyncio.create_task(self._expire_after_delay(space.space_id))
        print(
            f"[Spaces] action=create result=ok space={space.space_id} owner={space.owner_id} "
            f"lifetime_s={self.lifetime_seconds:.0f}"
        )

        # Created must be on record before the close button becomes usable
        if self._recorder is not None:
            await self._recorder.record_space_event(
                SPACE_CREATED,
                space_id=space.space_id,
                actor_id=space.owner_id,
            )

        try:
            await self._platform.post_message_with_control(handle, self.greeting, self.control_id)
        except Exception as e:
            print(f"[Spaces] action=greet result=error space={space.space_id} error={str(e)[:180]}")
        return handle

    async def close_by_timer(self, space_id: int) -> bool:
        return await self._delete_and_deregister(int(space_id), actor_id=None, reason="timer")

    async def close_by_user(self, space_id: int, actor_id: int | None = None) -> bool:
        return await self._delete_and_deregister(
            int(space_id),
            actor_id=int(actor_id) if actor_id is not None else None,
            reason="user",
        )

    async def shutdown(self) -> None:
        for space in list(self._spaces.values()):
            self._cancel_timer(space)
            space.closed.set()
        print(f"[Spaces] action=shutdown pending_spaces={len(self._spaces)}")

    def _detach(self, space_id: int) -> EphemeralSpace | None:
        space = self._spaces.pop(space_id, None)
        if space is None:
            return None
        self._cancel_timer(space)
        space.closed.set()
        return space

    @staticmethod
    def _cancel_timer(space: EphemeralSpace) -> None:
        timer = space.timer
        space.timer = None
        if timer is None or timer.done():
            return
        try:
            current = asyncio.current_task()
        except RuntimeError:
            current = None
        if timer is not current:
            timer.cancel()

    async def _delete_and_deregister(self, space_id: int, *, actor_id: int | None, reason: str) -> bool:
        # no await between the presence check and the removal
        space = self._detach(space_id)
        if space is None:
            return False

        try:
            await self._platform.delete_space(space.handle)
        except Exception as e:
            print(
                f"[Spaces] action=delete result=error space={space_id} reason={reason} "
                f"error={str(e)[:180]}"
            )
            # keep it closable from the button; the timer is already gone
            space.closed = asyncio.Event()
            self._spaces.setdefault(space_id, space)
            return False

        print(f"[Spaces] action=delete result=ok space={space_id} reason={reason} actor={actor_id}")
        if self._recorder is not None:
            await self._recorder.record_space_event(
                SPACE_DELETED,
                space_id=space_id,
                actor_id=actor_id,
                reason=reason,
            )
        return True

    async def _expire_after_delay(self, space_id: int) -> None:
        await asyncio.sleep(self.lifetime_seconds)
        await self.close_by_timer(space_id)
