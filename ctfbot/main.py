import asyncio
import logging
import traceback
from typing import Optional

import discord
from discord.ext import commands
from discord import app_commands

from ctfbot.api.client import PlatformClient
from ctfbot.config import Config
from ctfbot.services.admin import AdminService
from ctfbot.services.challenges import ChallengeService
from ctfbot.services.leaderboard import LeaderboardService
from ctfbot.services.rate_limiter import PanelRateLimiter
from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.utils.logger import setup_logger

class CTFArenaBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True
        
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None
        )
        
        # Attach app command error handler
        self.tree.on_error = self.on_app_command_error
        
        self.api: Optional[PlatformClient] = None
        self.leaderboard_service: Optional[LeaderboardService] = None
        self.challenge_service: Optional[ChallengeService] = None
        self.admin_service: Optional[AdminService] = None
        self.rate_limiter = PanelRateLimiter()
        self.logger = setup_logger(__name__)
        
    async def setup_hook(self):
        """Called when the bot is starting up"""
        self.logger.info("Setting up CTF Arena bot...")
        
        # One HTTP client shared by every service
        self.api = PlatformClient(
            base_url=Config.API_BASE_URL,
            token=Config.API_TOKEN,
            timeout=Config.API_TIMEOUT
        )
        self.leaderboard_service = LeaderboardService(self.api)
        self.challenge_service = ChallengeService(self.api)
        self.admin_service = AdminService(self.api)
        self.logger.info(f"Platform client ready for {Config.API_BASE_URL}")
        
        await self.load_cogs()
        await self._sync_commands()
        
        self.logger.info("CTF Arena bot setup complete!")
        
    async def load_cogs(self):
        """Load all cogs"""
        cogs_to_load = [
            'ctfbot.cogs.leaderboard',
            'ctfbot.cogs.competition',
            'ctfbot.cogs.admin',
        ]
        
        for cog in cogs_to_load:
            try:
                await self.load_extension(cog)
                self.logger.info(f"Loaded cog: {cog}")
            except Exception as e:
                self.logger.error(f"Failed to load cog {cog}: {e}", exc_info=True)
    
    async def _sync_commands(self):
        """Sync slash commands with Discord"""
        if not self.tree.get_commands():
            self.logger.warning("No application commands found to sync. Check for cog loading errors.")
            return
            
        try:
            guild_ids = Config.get_guild_ids()
            
            if guild_ids:
                # Guild-specific sync (instant updates)
                self.logger.info(f"Syncing commands to {len(guild_ids)} guild(s): {guild_ids}...")
                for guild_id in guild_ids:
                    try:
                        guild = discord.Object(id=guild_id)
                        self.tree.copy_global_to(guild=guild)
                        synced = await self.tree.sync(guild=guild)
                        self.logger.info(f"Synced {len(synced)} command(s) to guild {guild_id}")
                    except discord.errors.Forbidden:
                        self.logger.error(f"Permission error syncing to guild {guild_id}. Ensure the bot has the 'application.commands' scope and is in the guild.", exc_info=True)
                    except discord.errors.HTTPException as e:
                        self.logger.error(f"HTTP error syncing to guild {guild_id}. Status: {e.status}, Response: {e.text}", exc_info=True)
            else:
                # Global sync (can take up to 1 hour)
                self.logger.info("Syncing commands globally... (Note: This can take up to an hour to propagate)")
                synced = await self.tree.sync()
                self.logger.info(f"Synced {len(synced)} command(s) globally")
                for cmd in synced:
                    self.logger.info(f"  - {cmd.name}: {cmd.description}")
        except discord.HTTPException as e:
            self.logger.error(f"Failed to sync commands: {e}", exc_info=True)
                
    async def on_ready(self):
        """Called when the bot is ready"""
        self.logger.info(f'{self.user} has connected to Discord!')
        self.logger.info(f'Bot is in {len(self.guilds)} guilds')
        
        await self.change_presence(
            activity=discord.Game(name="CTF Arena | /leaderboard")
        )
    
    async def on_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        """Last-resort error handler for slash commands"""
        command_name = interaction.command.name if interaction.command else 'Unknown'
        
        if isinstance(error, app_commands.CheckFailure):
            self.logger.info(f"Permission denied for command '{command_name}' by user {interaction.user}")
        else:
            self.logger.error(f"Error in app command '{command_name}': {error}", exc_info=error)
        
        if isinstance(error, app_commands.BotMissingPermissions):
            embed = ErrorEmbeds.load_failed("I don't have the required permissions to execute this command.")
        elif isinstance(error, app_commands.CheckFailure) and command_name.startswith('admin-'):
            embed = ErrorEmbeds.permission_denied()
        elif isinstance(error, app_commands.CheckFailure):
            embed = ErrorEmbeds.load_failed("You don't have the required permissions to use this command.")
        else:
            embed = ErrorEmbeds.load_failed("An unexpected error occurred while processing your command.")
        
        try:
            if interaction.response.is_done():
                await interaction.followup.send(embed=embed, ephemeral=True)
            else:
                await interaction.response.send_message(embed=embed, ephemeral=True)
        except discord.HTTPException as e:
            self.logger.error(f"Failed to send error response: {e}")
        
    async def close(self):
        """Cleanup when bot is shutting down"""
        self.logger.info("Shutting down CTF Arena bot...")
        
        if self.api:
            await self.api.close()
            
        await super().close()

async def main():
    """Main entry point"""
    Config.validate()
    
    bot = CTFArenaBot()
    
    try:
        await bot.start(Config.DISCORD_TOKEN)
    except KeyboardInterrupt:
        pass
    except Exception as e:
        logging.error(f"Fatal error: {e}")
        traceback.print_exc()
    finally:
        await bot.close()

def run():
    asyncio.run(main())

if __name__ == "__main__":
    run()
