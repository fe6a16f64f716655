from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

from relay.keyed_locks import KeyedLocks
from relay.run_driver import OUTCOME_ABORTED
from relay.run_driver import OUTCOME_CANCELLED
from relay.run_driver import OUTCOME_COMPLETED
from relay.run_driver import OUTCOME_EXPIRED
from relay.run_driver import OUTCOME_FAILED
from relay.run_driver import OUTCOME_TIMED_OUT
from relay.run_driver import RunOutcome


@dataclass(frozen=True, slots=True)
class InboundMessage:
    conversation_id: str
    author_id: int
    text: str
    channel_kind: str = "text"
    source: Any = None


def truncate_reply(text: str, limit: int = 1999) -> str:
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit]


class DispatchOrchestrator:
    """Relays one admitted message to the assistant and the reply back to Discord.

    Messages from the same conversation are handled one at a time; different
    conversations interleave freely at every await.
    """

    def __init__(
        self,
        *,
        backend: Any,
        thread_registry: Any,
        rate_governor: Any,
        run_driver: Any,
        platform: Any,
        notices: Any,
        recorder: Any = None,
        assistant_id: str | None = None,
        reply_char_limit: int = 1999,
        rate_limit_penalty_seconds: float = 20.0,
        rate_limit_error_code: str = "rate_limit_exceeded",
    ) -> None:
        self.backend = backend
        self.thread_registry = thread_registry
        self.rate_governor = rate_governor
        self.run_driver = run_driver
        self.platform = platform
        self.notices = notices
        self.recorder = recorder
        self.assistant_id = assistant_id
        self.reply_char_limit = max(1, int(reply_char_limit))
        self.rate_limit_penalty_seconds = float(rate_limit_penalty_seconds)
        self.rate_limit_error_code = rate_limit_error_code
        self._conversation_locks = KeyedLocks()

    def is_busy(self, conversation_id: str) -> bool:
        return self._conversation_locks.in_use(str(conversation_id))

    async def dispatch(
        self,
        inbound: InboundMessage,
        *,
        cancel_event: asyncio.Event | None = None,
    ) -> RunOutcome | None:
        async with self._conversation_locks.hold(str(inbound.conversation_id)):
            return await self._dispatch_locked(inbound, cancel_event)

    async def _dispatch_locked(
        self,
        inbound: InboundMessage,
        cancel_event: asyncio.Event | None,
    ) -> RunOutcome | None:
        # queued behind a run whose conversation has since closed
        if cancel_event is not None and cancel_event.is_set():
            print(f"[Relay] dispatch skipped; conversation closed conversation={inbound.conversation_id}")
            return RunOutcome(kind=OUTCOME_ABORTED)

        if not self.rate_governor.check_admit():
            print(
                f"[Relay] admission denied conversation={inbound.conversation_id} "
                f"wait_s={self.rate_governor.remaining():.1f}"
            )
            await self._send(inbound, self.notices.rate_limited)
            return None

        thread_id = ""
        run_id = ""
        try:
            thread_id = await self.thread_registry.resolve_or_create(inbound.conversation_id)
            await self._typing(inbound)
            await self.backend.append_message(thread_id, inbound.text)
            run_id = await self.backend.create_run(thread_id, self.assistant_id)
            outcome = await self.run_driver.drive(thread_id, run_id, cancel_event=cancel_event)
        except Exception as e:
            print(f"[Relay] Error during message processing: {e}")
            await self._send(inbound, self.notices.processing_error)
            return None

        await self._deliver(inbound, thread_id, run_id, outcome)
        return outcome

    async def _deliver(self, inbound: InboundMessage, thread_id: str, run_id: str, outcome: RunOutcome) -> None:
        if outcome.kind == OUTCOME_COMPLETED:
            reply = truncate_reply(outcome.reply_text or self.notices.empty_reply, self.reply_char_limit)
            print(f"[Relay] reply ready conversation={inbound.conversation_id} chars={len(reply)}")
            if not await self._send(inbound, reply):
                return
            if self.recorder is not None:
                await self.recorder.record_interaction(
                    conversation_id=inbound.conversation_id,
                    user_id=inbound.author_id,
                    request_text=inbound.text,
                    response_text=reply,
                    thread_id=thread_id,
                    run_id=run_id,
                )
            return

        if outcome.kind == OUTCOME_FAILED:
            if outcome.error_code == self.rate_limit_error_code:
                self.rate_governor.penalize(self.rate_limit_penalty_seconds)
            await self._send(inbound, self.notices.run_failed)
            return

        if outcome.kind == OUTCOME_CANCELLED:
            await self._send(inbound, self.notices.run_cancelled)
        elif outcome.kind == OUTCOME_EXPIRED:
            await self._send(inbound, self.notices.run_expired)
        elif outcome.kind == OUTCOME_TIMED_OUT:
            await self._send(inbound, self.notices.run_timed_out)
        elif outcome.kind == OUTCOME_ABORTED:
            print(f"[Relay] run aborted; no reply conversation={inbound.conversation_id}")

    async def _typing(self, inbound: InboundMessage) -> None:
        try:
            await self.platform.send_typing(inbound)
        except Exception as e:
            print(f"[Relay] typing indicator failed conversation={inbound.conversation_id}: {str(e)[:160]}")

    async def _send(self, inbound: InboundMessage, text: str) -> bool:
        try:
            await self.platform.send_reply(inbound, text)
            return True
        except Exception as e:
            print(f"[Relay] reply failed conversation={inbound.conversation_id}: {str(e)[:160]}")
            return False
