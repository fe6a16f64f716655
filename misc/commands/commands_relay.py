from __future__ import annotations

import discord
from discord.ext import commands
from config.defaults import SESSION_START_COMMAND
from config.defaults import SPACE_CREATE_COMMAND
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates


def _minutes(seconds: float) -> int:
    return max(1, int(round(float(seconds) / 60.0)))


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    @bot.command(name=SESSION_START_COMMAND)
    async def cmd_start_session(ctx: commands.Context):
        # start triggers anywhere else are ignored
        if not gates.in_trigger_channel(ctx):
            return

        deps.session_manager.start_session(int(ctx.author.id))
        text = deps.notices.session_started.format(minutes=_minutes(deps.session_window_seconds))
        try:
            await ctx.author.send(text)
        except discord.HTTPException as e:
            print(f"[Sessions] could not DM user={ctx.author.id}: {str(e)[:160]}")
            await ctx.reply(
                "I couldn't DM you. Check that direct messages from server members are enabled.",
                mention_author=False,
            )

    @bot.command(name=SPACE_CREATE_COMMAND)
    @commands.guild_only()
    async def cmd_create_private_channel(ctx: commands.Context):
        if not gates.in_trigger_channel(ctx):
            return

        try:
            channel = await deps.space_manager.create(ctx.guild, int(ctx.author.id))
        except Exception as e:
            print(f"[Spaces] Error creating private channel: {e}")
            await ctx.reply(deps.notices.space_create_failed)
            return

        mention = getattr(channel, "mention", f"<#{channel.id}>")
        await ctx.reply(
            deps.notices.space_created.format(
                channel=mention,
                minutes=_minutes(deps.space_lifetime_seconds),
            )
        )
