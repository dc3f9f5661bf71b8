"""
Administrator panels for groups, contests and competition challenges.

All panels are ephemeral and gated on the Discord administrator permission;
the platform enforces its own authorization on every write.
"""

import discord
from discord import app_commands
from discord.ext import commands
from ctfbot.views.admin_contests import AdminChallengesView, AdminContestsView
from ctfbot.views.admin_groups import AdminGroupsView
from ctfbot.views.base import BaseListView
from ctfbot.utils.logger import setup_logger

logger = setup_logger(__name__)

class AdminCog(commands.Cog):
    """Administrative list panels"""
    
    def __init__(self, bot):
        self.bot = bot
    
    async def _open(self, interaction: discord.Interaction, view: BaseListView):
        logger.info(f"{interaction.user} ({interaction.user.id}) opened admin {view.panel_name}")
        try:
            await view.mount(interaction, ephemeral=True)
        except Exception as e:
            await view.on_error(interaction, e, None)
    
    @app_commands.command(name="admin-groups", description="[Admin] Manage user groups")
    @app_commands.checks.has_permissions(administrator=True)
    async def admin_groups(self, interaction: discord.Interaction):
        await self._open(interaction, AdminGroupsView(self.bot.admin_service, owner_id=interaction.user.id))
    
    @app_commands.command(name="admin-contests", description="[Admin] Manage contests")
    @app_commands.checks.has_permissions(administrator=True)
    async def admin_contests(self, interaction: discord.Interaction):
        await self._open(interaction, AdminContestsView(self.bot.admin_service, owner_id=interaction.user.id))
    
    @app_commands.command(name="admin-challenges", description="[Admin] Manage competition challenges")
    @app_commands.checks.has_permissions(administrator=True)
    async def admin_challenges(self, interaction: discord.Interaction):
        await self._open(interaction, AdminChallengesView(self.bot.challenge_service, owner_id=interaction.user.id))

async def setup(bot):
    await bot.add_cog(AdminCog(bot))
