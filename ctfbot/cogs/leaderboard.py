import discord
from discord import app_commands
from discord.ext import commands
from typing import Optional
from ctfbot.data_models.leaderboard import LeaderboardMode
from ctfbot.services.rate_limiter import rate_limit
from ctfbot.views.leaderboard import LeaderboardView
import logging

logger = logging.getLogger(__name__)

class LeaderboardCog(commands.Cog):
    """Leaderboard panel commands"""
    
    def __init__(self, bot):
        self.bot = bot
    
    @app_commands.command(name="leaderboard", description="View the practice or competition leaderboard")
    @app_commands.describe(mode="Which leaderboard to open first")
    @app_commands.choices(mode=[
        app_commands.Choice(name="Practice", value="practice"),
        app_commands.Choice(name="Competition", value="competition"),
    ])
    @rate_limit("leaderboard", limit=5, window=60)
    async def leaderboard(
        self,
        interaction: discord.Interaction,
        mode: Optional[app_commands.Choice[str]] = None
    ):
        """Open an interactive leaderboard panel."""
        initial = LeaderboardMode(mode.value) if mode else LeaderboardMode.PRACTICE
        view = LeaderboardView(self.bot.leaderboard_service, mode=initial, owner_id=interaction.user.id)
        try:
            await view.mount(interaction)
        except Exception as e:
            await view.on_error(interaction, e, None)

async def setup(bot):
    await bot.add_cog(LeaderboardCog(bot))
