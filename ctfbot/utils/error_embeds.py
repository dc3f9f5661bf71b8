"""
Centralized embeds for panel states outside the happy path.

Keeps the wording of loading, error, access and flash banners consistent
across every panel.
"""

import discord
from typing import Optional

from ctfbot.constants import UIConstants


class ErrorEmbeds:
    """Centralized embed factory for non-content panel states."""

    @staticmethod
    def loading(what: str = "data") -> discord.Embed:
        return discord.Embed(
            title="⏳ Loading",
            description=f"Loading {what}...",
            color=UIConstants.DEFAULT_EMBED_COLOR
        )

    @staticmethod
    def load_failed(message: str) -> discord.Embed:
        """Banner for a failed fetch; the panel keeps its controls for a retry."""
        return discord.Embed(
            title="❌ Error",
            description=message,
            color=UIConstants.ERROR_COLOR
        )

    @staticmethod
    def access_required() -> discord.Embed:
        """Shown instead of a banner when the platform rejects the bot's credentials."""
        embed = discord.Embed(
            title="🔒 Access Required",
            description="The platform rejected this request. Check the bot's API token and permissions.",
            color=UIConstants.ERROR_COLOR
        )
        embed.set_footer(text="Contact the bot owner if you believe you should have access.")
        return embed

    @staticmethod
    def recovery(message: Optional[str] = None) -> discord.Embed:
        return discord.Embed(
            title="⚠️ Something went wrong",
            description=message or "This panel hit an unexpected error. Press Reload to open it again.",
            color=discord.Color.orange()
        )

    @staticmethod
    def permission_denied() -> discord.Embed:
        embed = discord.Embed(
            title="❌ Administrative Privileges Required",
            description="This command is restricted to bot administrators only.",
            color=discord.Color.red()
        )
        embed.set_footer(text="Contact the bot owner if you believe you should have access.")
        return embed

    @staticmethod
    def flash_line(text: Optional[str], is_error: bool) -> Optional[str]:
        """Flash message rendered as the first line of a panel description."""
        if not text:
            return None
        return f"❌ {text}" if is_error else f"✅ {text}"
