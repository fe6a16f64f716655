from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any


class BackendError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class RunStatus:
    status: str
    error_code: str | None = None


@dataclass(frozen=True, slots=True)
class ThreadMessage:
    role: str
    text: str
    run_id: str | None = None


def _message_text(message: Any) -> str:
    parts: list[str] = []
    for block in getattr(message, "content", None) or []:
        if getattr(block, "type", None) != "text":
            continue
        text_obj = getattr(block, "text", None)
        value = getattr(text_obj, "value", None)
        if value:
            parts.append(str(value))
    return "\n".join(parts)


class AssistantsBackend:
    """Async facade over the OpenAI Assistants API.

    The SDK client is synchronous; every call runs in a worker thread so a
    slow request never stalls the Discord event loop.
    """

    def __init__(self, *, client: Any, assistant_id: str) -> None:
        self.client = client
        self.assistant_id = str(assistant_id or "").strip()

    async def _call(self, label: str, func, /, **kwargs) -> Any:
        try:
            return await asyncio.to_thread(func, **kwargs)
        except Exception as e:
            raise BackendError(f"{label} failed: {str(e)[:200]}") from e

    async def create_thread(self) -> str:
        thread = await self._call("threads.create", self.client.beta.threads.create)
        return str(thread.id)

    async def append_message(self, thread_id: str, content: str, role: str = "user") -> str:
        msg = await self._call(
            "messages.create",
            self.client.beta.threads.messages.create,
            thread_id=thread_id,
            role=role,
            content=content,
        )
        return str(msg.id)

    async def create_run(self, thread_id: str, assistant_id: str | None = None) -> str:
        run = await self._call(
            "runs.create",
            self.client.beta.threads.runs.create,
            thread_id=thread_id,
            assistant_id=assistant_id or self.assistant_id,
        )
        return str(run.id)

    async def get_run_status(self, thread_id: str, run_id: str) -> RunStatus:
        run = await self._call(
            "runs.retrieve",
            self.client.beta.threads.runs.retrieve,
            run_id=run_id,
            thread_id=thread_id,
        )
        last_error = getattr(run, "last_error", None)
        code = getattr(last_error, "code", None) if last_error is not None else None
        if not code:
            incomplete = getattr(run, "incomplete_details", None)
            code = getattr(incomplete, "reason", None) if incomplete is not None else None
        return RunStatus(status=str(run.status), error_code=str(code) if code else None)

    async def list_messages(self, thread_id: str, limit: int = 20) -> list[ThreadMessage]:
        page = await self._call(
            "messages.list",
            self.client.beta.threads.messages.list,
            thread_id=thread_id,
            order="desc",
            limit=max(1, min(int(limit), 100)),
        )
        out: list[ThreadMessage] = []
        for message in getattr(page, "data", None) or []:
            out.append(
                ThreadMessage(
                    role=str(getattr(message, "role", "") or ""),
                    text=_message_text(message),
                    run_id=getattr(message, "run_id", None),
                )
            )
        return out

    async def cancel_run(self, thread_id: str, run_id: str) -> None:
        await self._call(
            "runs.cancel",
            self.client.beta.threads.runs.cancel,
            run_id=run_id,
            thread_id=thread_id,
        )
