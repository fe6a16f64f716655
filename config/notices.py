from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path

import yaml


@dataclass(slots=True)
class Notices:
    version: str = "notices_v1"
    greeting: str = "Hello, I'm IO ASSISTANT. How can I help you?"
    space_created: str = "Private channel {channel} created. It will be deleted in {minutes} minutes."
    space_create_failed: str = "Failed to create private channel."
    session_started: str = "You have started a DM session with the bot. You have {minutes} minutes to interact."
    session_expired: str = "Your session has expired or was not started. Use !create to start a new session."
    rate_limited: str = "Please wait a moment before making the next request."
    run_failed: str = "An error occurred while processing your request. Please try again later."
    run_cancelled: str = "Your request was cancelled before a reply was ready. Please send it again."
    run_expired: str = "Your request expired before a reply was ready. Please send it again."
    run_timed_out: str = "The assistant took too long to answer. Please try again in a moment."
    processing_error: str = "An error occurred while processing your message."
    empty_reply: str = "(no output)"


def load_notices(path: str | Path | None) -> tuple[Notices, str | None]:
    """
    Returns (notices, warning_message). warning_message is None on clean load.

    Keys missing from the file keep their built-in text.
    """
    defaults = Notices()
    if not path:
        return (defaults, "Notices path missing; using built-in defaults.")

    p = Path(path)
    if not p.exists():
        return (defaults, f"Notices file not found at {p}; using built-in defaults.")

    try:
        payload = yaml.safe_load(p.read_text(encoding="utf-8"))
    except Exception as exc:
        return (defaults, f"Failed to read notices from {p}: {exc}; using built-in defaults.")

    if not isinstance(payload, dict):
        return (defaults, f"Invalid notices format in {p}; using built-in defaults.")

    values: dict[str, str] = {}
    for f in fields(Notices):
        raw = payload.get(f.name)
        text = str(raw).strip() if raw is not None else ""
        values[f.name] = text or getattr(defaults, f.name)
    return (Notices(**values), None)
