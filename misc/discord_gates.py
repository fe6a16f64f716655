from __future__ import annotations

import discord


def message_is_relayable(message: discord.Message) -> bool:
    author = getattr(message, "author", None)
    if author is None or getattr(author, "bot", False):
        return False
    return bool((getattr(message, "content", None) or "").strip())


def in_trigger_channel(channel_id: int | None, trigger_channel_id: int) -> bool:
    if not trigger_channel_id or channel_id is None:
        return False
    return int(channel_id) == int(trigger_channel_id)


def classify_channel_kind(message: discord.Message) -> str:
    if getattr(message, "guild", None) is None:
        return "dm"
    if isinstance(message.channel, discord.Thread):
        return "thread"
    return "text"
