from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable


TERMINAL_STATES = {"cancelled", "failed", "completed", "expired", "incomplete"}

OUTCOME_COMPLETED = "completed"
OUTCOME_FAILED = "failed"
OUTCOME_CANCELLED = "cancelled"
OUTCOME_EXPIRED = "expired"
OUTCOME_TIMED_OUT = "timed_out"
OUTCOME_ABORTED = "aborted"


class RunDriverError(RuntimeError):
    """Polling could not observe the run (transport failure)."""


@dataclass(frozen=True, slots=True)
class RunOutcome:
    kind: str
    reply_text: str | None = None
    error_code: str | None = None

    @classmethod
    def completed(cls, reply_text: str) -> "RunOutcome":
        return cls(kind=OUTCOME_COMPLETED, reply_text=reply_text)

    @classmethod
    def failed(cls, error_code: str | None = None) -> "RunOutcome":
        return cls(kind=OUTCOME_FAILED, error_code=error_code)

    @property
    def is_completed(self) -> bool:
        return self.kind == OUTCOME_COMPLETED


def pick_reply_text(messages: list[Any], run_id: str) -> str:
    """Newest assistant message produced by `run_id`; messages arrive newest first."""
    fallback: str | None = None
    for message in messages:
        if getattr(message, "role", None) != "assistant":
            continue
        msg_run_id = getattr(message, "run_id", None)
        if msg_run_id is None or str(msg_run_id) == str(run_id):
            return str(getattr(message, "text", "") or "")
        if fallback is None:
            fallback = str(getattr(message, "text", "") or "")
    return fallback or ""


class RunDriver:
    def __init__(
        self,
        *,
        backend: Any,
        poll_interval_seconds: float = 1.0,
        max_wait_seconds: float = 120.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._backend = backend
        self.poll_interval_seconds = max(0.0, float(poll_interval_seconds))
        # 0 disables the deadline
        self.max_wait_seconds = max(0.0, float(max_wait_seconds or 0.0))
        self._sleep = sleep
        self._clock = clock

    async def drive(
        self,
        thread_id: str,
        run_id: str,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> RunOutcome:
        started = self._clock()
        while True:
            if cancel_event is not None and cancel_event.is_set():
                await self._cancel_run_quietly(thread_id, run_id)
                print(f"[Relay] run aborted thread={thread_id} run={run_id}")
                return RunOutcome(kind=OUTCOME_ABORTED)

            try:
                status = await self._backend.get_run_status(thread_id, run_id)
            except Exception as e:
                print(f"[Relay] Error retrieving the run status: {e}")
                raise RunDriverError(f"run status unavailable for {run_id}") from e

            if status.status in TERMINAL_STATES:
                return await self._finish(thread_id, run_id, status)

            if self.max_wait_seconds and (self._clock() - started) >= self.max_wait_seconds:
                await self._cancel_run_quietly(thread_id, run_id)
                print(
                    f"[Relay] run timed out thread={thread_id} run={run_id} "
                    f"last_status={status.status} max_wait_s={self.max_wait_seconds:.0f}"
                )
                return RunOutcome(kind=OUTCOME_TIMED_OUT)

            await self._sleep(self.poll_interval_seconds)

    async def _finish(self, thread_id: str, run_id: str, status) -> RunOutcome:
        if status.status == "completed":
            try:
                messages = await self._backend.list_messages(thread_id)
            except Exception as e:
                raise RunDriverError(f"could not list messages for {thread_id}") from e
            return RunOutcome.completed(pick_reply_text(messages, run_id))

        if status.status == "failed":
            error_code = status.error_code
            if error_code is None:
                try:
                    detail = await self._backend.get_run_status(thread_id, run_id)
                    error_code = detail.error_code
                except Exception as e:
                    print(f"[Relay] could not fetch failure detail run={run_id}: {e}")
            print(f"[Relay] Run failed for thread ID {thread_id} error_code={error_code}")
            return RunOutcome.failed(error_code)

        if status.status == "incomplete":
            # stopped at a token or content limit
            print(f"[Relay] Run incomplete for thread ID {thread_id} reason={status.error_code}")
            return RunOutcome.failed(status.error_code or "incomplete")

        if status.status == "cancelled":
            return RunOutcome(kind=OUTCOME_CANCELLED)
        return RunOutcome(kind=OUTCOME_EXPIRED)

    async def _cancel_run_quietly(self, thread_id: str, run_id: str) -> None:
        cancel = getattr(self._backend, "cancel_run", None)
        if cancel is None:
            return
        try:
            await cancel(thread_id, run_id)
        except Exception as e:
            print(f"[Relay] run cancel failed run={run_id}: {str(e)[:160]}")
