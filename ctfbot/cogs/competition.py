import discord
from discord import app_commands
from discord.ext import commands
from ctfbot.services.rate_limiter import rate_limit
from ctfbot.views.competition import CompetitionView
import logging

logger = logging.getLogger(__name__)

class CompetitionCog(commands.Cog):
    """Competition challenge browser"""
    
    def __init__(self, bot):
        self.bot = bot
    
    @app_commands.command(name="competitions", description="Browse competition challenges by contest")
    @rate_limit("competitions", limit=5, window=60)
    async def competitions(self, interaction: discord.Interaction):
        """Open the competition browser."""
        view = CompetitionView(self.bot.challenge_service, owner_id=interaction.user.id)
        try:
            await view.mount(interaction)
        except Exception as e:
            await view.on_error(interaction, e, None)

async def setup(bot):
    await bot.add_cog(CompetitionCog(bot))
