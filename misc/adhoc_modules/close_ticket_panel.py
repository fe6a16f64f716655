from __future__ import annotations

from typing import Any, Awaitable, Callable

import discord


async def on_control_activated(
    control_id: str,
    space_id: int,
    actor_id: int,
    *,
    space_manager: Any,
    close_control_id: str = "close_ticket",
) -> bool:
    """Route a button press; only the close-ticket control is recognized."""
    if control_id != close_control_id:
        return False
    return await space_manager.close_by_user(int(space_id), int(actor_id))


def build_close_ticket_panel(
    *,
    control_id: str,
    on_close: Callable[[str, int, int], Awaitable[bool]],
    label: str = "Close ticket",
) -> discord.ui.View:
    class CloseTicketPanel(discord.ui.View):
        def __init__(self):
            super().__init__(timeout=None)
            button = discord.ui.Button(
                label=label,
                style=discord.ButtonStyle.danger,
                custom_id=control_id,
            )
            button.callback = self.close_button
            self.add_item(button)

        async def close_button(self, interaction: discord.Interaction):
            channel_id = interaction.channel_id
            if channel_id is None:
                return

            # the channel may vanish before we could answer
            await interaction.response.defer(ephemeral=True, thinking=False)
            closed = await on_close(control_id, int(channel_id), int(interaction.user.id))
            if closed:
                print(f"[Spaces] Channel {channel_id} has been deleted by user interaction.")
                return
            try:
                await interaction.followup.send(
                    "This ticket is already closed or could not be closed right now.",
                    ephemeral=True,
                )
            except discord.HTTPException as e:
                print(f"[Spaces] close followup failed channel={channel_id}: {str(e)[:160]}")

    return CloseTicketPanel()
