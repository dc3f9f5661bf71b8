"""
Shared panel plumbing.

A panel is one Discord message plus the View driving it. The View owns the
panel's StaleGuard: it is mounted when the message is sent and unmounted on
timeout, on a crash, or when replaced, which cancels every timer and drops
every late response the panel still has outstanding.
"""

import asyncio
from typing import Awaitable, Callable, List, Optional, Set

import discord

from ctfbot.config import Config
from ctfbot.services.stale_guard import StaleGuard
from ctfbot.ui.recovery import RecoveryView
from ctfbot.ui.search_modal import SearchModal
from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.utils.exceptions import AuthError
from ctfbot.utils.logger import setup_logger

logger = setup_logger(__name__)

Callback = Callable[[discord.Interaction], Awaitable[None]]


def truncate(text: str, limit: int) -> str:
    return text if len(text) <= limit else text[:limit - 1] + "…"


class BaseListView(discord.ui.View):
    """
    Base for every panel.

    Subclasses implement ``load``, ``build_embed``, ``update_items``,
    ``close_state`` and ``fresh_copy``; everything else (mounting, re-rendering,
    the crash boundary and unmounting) lives here.
    """

    panel_name = "panel"

    def __init__(self, owner_id: Optional[int] = None, *, timeout: Optional[float] = None):
        super().__init__(timeout=Config.VIEW_TIMEOUT_SECONDS if timeout is None else timeout)
        self.guard = StaleGuard()
        self.owner_id = owner_id
        self.interaction: Optional[discord.Interaction] = None
        self.logger = logger
        self._render_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    # --- subclass hooks ---

    async def load(self):
        raise NotImplementedError

    def build_embed(self) -> discord.Embed:
        raise NotImplementedError

    def update_items(self):
        raise NotImplementedError

    def close_state(self):
        raise NotImplementedError

    def fresh_copy(self) -> "BaseListView":
        raise NotImplementedError

    # --- lifecycle ---

    async def mount(self, interaction: discord.Interaction, ephemeral: bool = False, replace: bool = False):
        """Send (or swap in) the panel, then load and render it."""
        self.interaction = interaction
        self.update_items()
        embed = ErrorEmbeds.loading(self.panel_name)
        if replace:
            await interaction.response.edit_message(embed=embed, view=self)
        else:
            await interaction.response.send_message(embed=embed, view=self, ephemeral=ephemeral)
        self.logger.debug(f"Mounted {self.panel_name} for {interaction.user}")
        await self.load()
        await self.refresh_message()

    def unmount(self):
        if not self.guard.alive:
            return
        self.close_state()
        self.guard.unmount()
        for task in list(self._tasks):
            task.cancel()
        self.stop()
        self.logger.debug(f"Unmounted {self.panel_name}")

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if self.owner_id is not None and interaction.user.id != self.owner_id:
            await interaction.response.send_message(
                "❌ This panel belongs to someone else. Run the command to open your own.",
                ephemeral=True
            )
            return False
        return True

    async def on_timeout(self):
        self.logger.info(f"{self.panel_name} timed out after {self.timeout} seconds")
        self.unmount()
        for item in self.children:
            item.disabled = True
        if self.interaction is None:
            return
        try:
            await self.interaction.edit_original_response(view=self)
        except discord.HTTPException as e:
            # Interaction tokens expire after 15 minutes
            self.logger.debug(f"Could not disable expired {self.panel_name}: {e}")

    # --- rendering ---

    async def refresh_message(self):
        """Rebuild components and embed and push them to the panel message."""
        if not self.guard.alive or self.interaction is None:
            return
        self.update_items()
        embed = self.build_embed()
        try:
            await self.interaction.edit_original_response(embed=embed, view=self)
        except discord.NotFound:
            self.logger.info(f"{self.panel_name} message is gone; unmounting")
            self.unmount()
        except discord.HTTPException as e:
            self.logger.warning(f"Failed to update {self.panel_name}: {e}")

    def request_render(self):
        """State-change hook for the controllers; coalesces into one edit."""
        if not self.guard.alive:
            return
        if self._render_task is not None and not self._render_task.done():
            return
        self._render_task = self.spawn(self._render_safely())

    async def _render_safely(self):
        # Yield once so several synchronous changes land in one edit
        await asyncio.sleep(0)
        try:
            await self.refresh_message()
        except Exception as e:
            await self.on_error(self.interaction, e, None)

    def spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def begin(self, interaction: discord.Interaction):
        """Common prologue for component callbacks."""
        self.interaction = interaction
        if not interaction.response.is_done():
            await interaction.response.defer()

    # --- error boundary ---

    async def on_error(self, interaction: Optional[discord.Interaction], error: Exception, item: Optional[discord.ui.Item]):
        """Render-crash boundary: swap the broken panel for the access or recovery panel."""
        if isinstance(error, AuthError):
            self.logger.warning(f"{self.panel_name} lost access: {error}")
            embed, view = ErrorEmbeds.access_required(), None
        else:
            self.logger.error(f"{self.panel_name} crashed: {error}", exc_info=error)
            embed, view = ErrorEmbeds.recovery(), RecoveryView(self._reload)
        self.unmount()
        await self._replace(interaction or self.interaction, embed, view)

    async def _replace(self, interaction: Optional[discord.Interaction], embed: discord.Embed, view: Optional[discord.ui.View]):
        if interaction is None:
            return
        try:
            if interaction.response.is_done():
                await interaction.edit_original_response(embed=embed, view=view)
            else:
                await interaction.response.edit_message(embed=embed, view=view)
        except discord.HTTPException as e:
            self.logger.warning(f"Could not show recovery for {self.panel_name}: {e}")

    async def _reload(self, interaction: discord.Interaction):
        await self.fresh_copy().mount(interaction, replace=True)

    # --- component helpers ---

    def add_button(
        self,
        label: str,
        callback: Callback,
        *,
        style: discord.ButtonStyle = discord.ButtonStyle.secondary,
        disabled: bool = False,
        emoji: Optional[str] = None,
        row: Optional[int] = None
    ) -> discord.ui.Button:
        button = discord.ui.Button(label=label, style=style, disabled=disabled, emoji=emoji, row=row)
        button.callback = callback
        self.add_item(button)
        return button

    def add_select(
        self,
        placeholder: str,
        options: List[discord.SelectOption],
        callback: Callback,
        *,
        row: Optional[int] = None,
        disabled: bool = False
    ) -> discord.ui.Select:
        """Add a select; an empty option list renders as a disabled placeholder."""
        if not options:
            options = [discord.SelectOption(label="Nothing to choose", value="__none__")]
            disabled = True
        select = discord.ui.Select(placeholder=placeholder, options=options[:25], row=row, disabled=disabled)

        async def _callback(interaction: discord.Interaction):
            await callback(interaction)

        select.callback = _callback
        self.add_item(select)
        return select

    def add_pagination(
        self,
        has_prev: bool,
        has_next: bool,
        on_prev: Callback,
        on_next: Callback,
        indicator: str,
        row: Optional[int] = None
    ):
        self.add_button("Previous", on_prev, style=discord.ButtonStyle.primary, disabled=not has_prev, row=row)
        self.add_button(indicator, self._noop, disabled=True, row=row)
        self.add_button("Next", on_next, style=discord.ButtonStyle.primary, disabled=not has_next, row=row)

    async def _noop(self, interaction: discord.Interaction):
        await interaction.response.defer()

    async def open_search(self, interaction: discord.Interaction, on_term: Callable[[str], None], current: str = ""):
        """Show the search modal; the submitted term goes to ``on_term``."""
        async def submitted(modal_interaction: discord.Interaction, term: str):
            await self.begin(modal_interaction)
            on_term(term)
            await self.refresh_message()

        await interaction.response.send_modal(SearchModal(submitted, current=current))

    @staticmethod
    def flash_prefix(text: Optional[str], is_error: bool) -> str:
        line = ErrorEmbeds.flash_line(text, is_error)
        return f"{line}\n\n" if line else ""
