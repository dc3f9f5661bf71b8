"""
Search input for list panels.

Discord has no live text box on messages, so each submitted search is one
"keystroke" into the panel's debounced pipeline.
"""

import discord
from typing import Awaitable, Callable

from ctfbot.utils.logger import setup_logger

logger = setup_logger(__name__)


class SearchModal(discord.ui.Modal):
    """Single-field modal that hands the entered term to ``on_submit_term``."""

    def __init__(
        self,
        on_submit_term: Callable[[discord.Interaction, str], Awaitable[None]],
        title: str = "Search",
        label: str = "Search term",
        placeholder: str = "Leave empty to clear",
        current: str = ""
    ):
        super().__init__(title=title, timeout=300)
        self.on_submit_term = on_submit_term
        self.term_input = discord.ui.TextInput(
            label=label,
            placeholder=placeholder,
            default=current or None,
            required=False,
            max_length=100
        )
        self.add_item(self.term_input)

    async def on_submit(self, interaction: discord.Interaction):
        term = (self.term_input.value or "").strip()
        logger.debug(f"Search submitted by {interaction.user}: {term!r}")
        await self.on_submit_term(interaction, term)
