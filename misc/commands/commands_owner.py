from __future__ import annotations

import asyncio

from discord.ext import commands
from misc.commands.command_deps import CommandDeps
from misc.commands.command_deps import CommandGates


def register(
    bot: commands.Bot,
    *,
    deps: CommandDeps,
    gates: CommandGates,
) -> None:
    @bot.command(name="relaystatus")
    async def cmd_relaystatus(ctx: commands.Context):
        if not gates.user_is_owner(ctx.author):
            await ctx.send("This command is owner-only.")
            return

        lines = [
            "Relay status:",
            f"- thread_bindings: {len(deps.thread_registry)}",
            f"- dm_sessions: {len(deps.session_manager)}",
            f"- private_channels: {len(deps.space_manager)}",
            f"- rate_gate_wait_s: {deps.rate_governor.remaining():.1f}",
        ]
        if deps.recorder is not None:
            counts = await deps.recorder.counts()
            lines.append(f"- interactions_recorded: {counts.get('interactions', 0)}")
            lines.append(
                f"- private_channels_created/deleted: "
                f"{counts.get('spaces_created', 0)}/{counts.get('spaces_deleted', 0)}"
            )
        else:
            lines.append("- history: disabled")
        await ctx.send("\n".join(lines))

    @bot.command(name="relayhistory")
    async def cmd_relayhistory(ctx: commands.Context, limit: int = 5):
        if not gates.user_is_owner(ctx.author):
            await ctx.send("This command is owner-only.")
            return
        if deps.recorder is None:
            await ctx.send("History recording is disabled.")
            return

        lim = max(1, min(int(limit or 5), 25))
        rows = await deps.recorder.recent_interactions(str(ctx.channel.id), lim)
        if not rows:
            await ctx.send("No recorded interactions for this channel.")
            return

        lines = [f"Recent interactions (latest {len(rows)}):"]
        for ts, uid, request_text, response_text in rows:
            req = " ".join((request_text or "").split())
            resp = " ".join((response_text or "").split())
            if len(req) > 90:
                req = req[:89] + "..."
            if len(resp) > 120:
                resp = resp[:119] + "..."
            lines.append(f"- {ts} user={uid}\n  Q: {req}\n  A: {resp}")
        await deps.send_chunked(ctx.channel, "```\n" + "\n".join(lines)[:7000] + "\n```")

    @bot.command(name="dbmigrations")
    async def cmd_dbmigrations(ctx: commands.Context, limit: int = 30):
        if not gates.user_is_owner(ctx.author):
            await ctx.send("This command is owner-only.")
            return
        if deps.db_conn is None:
            await ctx.send("History database is disabled.")
            return

        lim = max(1, min(int(limit or 30), 200))
        async with deps.db_lock:
            rows = await asyncio.to_thread(deps.list_schema_migrations_sync, deps.db_conn, lim)
        if not rows:
            await ctx.send("No schema migrations recorded.")
            return
        lines = [f"Schema migrations (latest {len(rows)}):"]
        for version, name, applied_at in rows:
            lines.append(f"- {version}_{name} applied={applied_at}")
        await deps.send_chunked(ctx.channel, "```\n" + "\n".join(lines) + "\n```")
