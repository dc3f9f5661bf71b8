"""
Recovery panel shown when a panel fails to render.

Replaces the broken panel with a short explanation and a Reload button that
mounts a fresh copy of it.
"""

import discord
from typing import Awaitable, Callable

from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class RecoveryView(discord.ui.View):
    """Reload button for a crashed panel."""

    def __init__(self, reload: Callable[[discord.Interaction], Awaitable[None]], timeout: float = 300):
        super().__init__(timeout=timeout)
        self.reload = reload

    @discord.ui.button(label="Reload", style=discord.ButtonStyle.primary, emoji="🔄")
    async def reload_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        self.stop()
        try:
            await self.reload(interaction)
        except Exception as e:
            logger.error(f"Reload failed: {e}", exc_info=True)
            embed = ErrorEmbeds.recovery("Reloading failed as well. Please run the command again.")
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
