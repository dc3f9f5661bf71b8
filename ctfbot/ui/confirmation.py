"""
Yes/no confirmation gate for destructive panel actions.

The optimistic mutator awaits a confirmer with the prompt text; the confirmer
built here posts an ephemeral prompt and resolves once the admin answers or
the prompt times out.
"""

import discord
from typing import Awaitable, Callable, Optional

from ctfbot.utils.logger import setup_logger

logger = setup_logger(__name__)

CONFIRM_TIMEOUT_SECONDS = 60


class ConfirmationView(discord.ui.View):
    """Two-button prompt; ``value`` is True, False, or None on timeout."""

    def __init__(self, timeout: float = CONFIRM_TIMEOUT_SECONDS):
        super().__init__(timeout=timeout)
        self.value: Optional[bool] = None

    async def _finish(self, interaction: discord.Interaction, value: bool, text: str):
        self.value = value
        for item in self.children:
            item.disabled = True
        await interaction.response.edit_message(content=text, embed=None, view=self)
        self.stop()

    @discord.ui.button(label="Confirm", style=discord.ButtonStyle.danger, emoji="🗑️")
    async def confirm_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._finish(interaction, True, "✅ Confirmed.")

    @discord.ui.button(label="Cancel", style=discord.ButtonStyle.gray, emoji="❌")
    async def cancel_button(self, interaction: discord.Interaction, button: discord.ui.Button):
        await self._finish(interaction, False, "Operation cancelled.")

    async def on_timeout(self):
        # Unanswered prompts count as a no
        self.value = False


def make_confirmer(get_interaction: Callable[[], Optional[discord.Interaction]]) -> Callable[[str], Awaitable[bool]]:
    """
    Build a confirmer that prompts on whichever interaction is current.

    Args:
        get_interaction: Returns the interaction that triggered the mutation
    """
    async def confirm(prompt: str) -> bool:
        interaction = get_interaction()
        if interaction is None:
            logger.warning("Confirmation requested without an interaction; declining")
            return False

        view = ConfirmationView()
        embed = discord.Embed(
            title="⚠️ Confirm Action",
            description=prompt,
            color=discord.Color.orange()
        )
        if interaction.response.is_done():
            await interaction.followup.send(embed=embed, view=view, ephemeral=True)
        else:
            await interaction.response.send_message(embed=embed, view=view, ephemeral=True)
        await view.wait()
        return bool(view.value)

    return confirm
