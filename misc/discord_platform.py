from __future__ import annotations

from typing import Any, Callable

import discord

from relay.spaces import PermissionPolicy


def build_overwrites(
    guild: discord.Guild,
    owner: discord.abc.Snowflake,
    policy: PermissionPolicy,
) -> dict[Any, discord.PermissionOverwrite]:
    overwrites: dict[Any, discord.PermissionOverwrite] = {}
    if policy.deny_default_view:
        overwrites[guild.default_role] = discord.PermissionOverwrite(view_channel=False)
    overwrites[owner] = discord.PermissionOverwrite(**{perm: True for perm in policy.owner_allow})
    if guild.me is not None:
        # the bot must keep seeing the channel it relays in
        overwrites[guild.me] = discord.PermissionOverwrite(
            view_channel=True,
            send_messages=True,
            read_message_history=True,
            manage_channels=True,
        )
    return overwrites


class DiscordPlatform:
    """Discord side of the relay: replies, typing, private ticket channels."""

    def __init__(
        self,
        *,
        panel_factory: Callable[[str], discord.ui.View] | None = None,
        category_id: int = 0,
        channel_prefix: str = "private-",
    ) -> None:
        self.panel_factory = panel_factory
        self.category_id = int(category_id or 0)
        self.channel_prefix = channel_prefix

    async def send_reply(self, inbound, text: str) -> None:
        source = inbound.source
        reply = getattr(source, "reply", None)
        if reply is not None:
            await reply(text)
            return
        await source.channel.send(text)

    async def send_typing(self, inbound) -> None:
        await inbound.source.channel.typing()

    async def _resolve_owner(self, guild: discord.Guild, owner_id: int) -> discord.abc.Snowflake:
        member = guild.get_member(int(owner_id))
        if member is not None:
            return member
        try:
            return await guild.fetch_member(int(owner_id))
        except discord.HTTPException:
            return discord.Object(id=int(owner_id), type=discord.Member)

    async def create_private_space(
        self,
        guild: discord.Guild,
        owner_id: int,
        policy: PermissionPolicy,
    ) -> discord.TextChannel:
        owner = await self._resolve_owner(guild, owner_id)
        category = None
        if self.category_id:
            candidate = guild.get_channel(self.category_id)
            if isinstance(candidate, discord.CategoryChannel):
                category = candidate
            else:
                print(f"[Spaces] category {self.category_id} not found; creating at top level")
        return await guild.create_text_channel(
            f"{self.channel_prefix}{int(owner_id)}",
            category=category,
            overwrites=build_overwrites(guild, owner, policy),
            reason=f"Private ticket for {int(owner_id)}",
        )

    async def delete_space(self, handle: discord.abc.GuildChannel) -> None:
        try:
            await handle.delete(reason="Private ticket closed")
        except discord.NotFound:
            print(f"[Spaces] channel {handle.id} already gone")

    async def post_message_with_control(self, handle: discord.TextChannel, text: str, control_id: str) -> None:
        if self.panel_factory is None:
            raise RuntimeError("close-ticket panel factory is not configured")
        await handle.send(content=text, view=self.panel_factory(control_id))
