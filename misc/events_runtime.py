from __future__ import annotations

import discord
from discord.ext import commands
from misc.discord_gates import classify_channel_kind
from misc.discord_gates import message_is_relayable
from misc.runtime_deps import RuntimeBootDeps
from misc.runtime_deps import RuntimeDeps
from relay.dispatch import InboundMessage


def command_name(content: str | None, prefix: str) -> str | None:
    """Command word after the prefix, e.g. "!create now" -> "create"."""
    text = (content or "").lstrip()
    if not prefix or not text.startswith(prefix):
        return None
    parts = text[len(prefix):].split(maxsplit=1)
    return parts[0] if parts else None


async def _notify_session_expired(message: discord.Message, deps: RuntimeDeps) -> None:
    try:
        await message.author.send(deps.notices.session_expired)
    except discord.HTTPException as e:
        print(f"[Sessions] expiry notice failed user={message.author.id}: {str(e)[:160]}")


async def route_message(message: discord.Message, *, deps: RuntimeDeps) -> bool:
    """Gate one non-command message and relay it; returns True if it was dispatched."""
    channel_id = int(message.channel.id)
    author_id = int(message.author.id)

    if message.guild is None:
        if not deps.session_manager.is_admitted(author_id):
            print(f"[Sessions] Session ended or not started for {author_id}")
            await _notify_session_expired(message, deps)
            return False
        cancel_event = deps.shutdown_event
    elif deps.space_manager.is_active(channel_id):
        cancel_event = deps.space_manager.closed_event(channel_id)
    else:
        return False

    inbound = InboundMessage(
        conversation_id=str(channel_id),
        author_id=author_id,
        text=message.content,
        channel_kind=classify_channel_kind(message),
        source=message,
    )
    await deps.orchestrator.dispatch(inbound, cancel_event=cancel_event)
    return True


def register_runtime_events(
    bot: commands.Bot,
    *,
    deps: RuntimeDeps,
    boot: RuntimeBootDeps,
) -> None:
    @bot.event
    async def on_ready():
        if not getattr(bot, "_close_panel_registered", False):
            # persistent view: buttons keep answering after a restart
            bot.add_view(boot.close_panel_factory(boot.close_control_id))
            bot._close_panel_registered = True

        print(f"IO Assistant is online as {bot.user}")
        if not boot.trigger_channel_id:
            print("[CFG] IONET_TRIGGER_CHANNEL_ID is not set; !create and !createPrivateChannel are disabled")

    @bot.event
    async def on_message(message: discord.Message):
        if not message_is_relayable(message):
            return

        name = command_name(message.content, deps.command_prefix)
        if name and bot.get_command(name) is not None:
            await bot.process_commands(message)
            return

        # unknown "!..." text is ordinary chat for the assistant
        await route_message(message, deps=deps)
