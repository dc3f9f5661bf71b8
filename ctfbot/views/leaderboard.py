"""
Leaderboard panel.

Practice and competition standings with a contest picker, username search
and pagination. Flat envelopes are paged locally; paginated envelopes are
paged by the platform.
"""

import discord
from typing import List, Optional

from ctfbot.constants import UIConstants
from ctfbot.data_models.leaderboard import LeaderboardEntry, LeaderboardMode, PageMeta
from ctfbot.operations.leaderboard_operations import LeaderboardBoard
from ctfbot.services.leaderboard import LeaderboardService
from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.utils.time_format import format_timestamp
from ctfbot.views.base import BaseListView, truncate


def _format_score(score: float) -> str:
    return str(int(score)) if float(score).is_integer() else f"{score:.1f}"


class LeaderboardView(BaseListView):
    """Interactive leaderboard panel."""

    panel_name = "leaderboard"

    def __init__(
        self,
        service: LeaderboardService,
        mode: LeaderboardMode = LeaderboardMode.PRACTICE,
        contest_id: Optional[int] = None,
        owner_id: Optional[int] = None
    ):
        super().__init__(owner_id=owner_id)
        self.service = service
        self.initial_mode = mode
        self.initial_contest_id = contest_id
        self.board = LeaderboardBoard(service, self.guard, mode=mode, on_change=self.request_render)

    # --- lifecycle hooks ---

    async def load(self):
        if self.initial_contest_id is not None:
            self.board.selected_contest_id = self.initial_contest_id
        await self.board.load_contests()
        if not self.board.fetch_deferred:
            await self.board.refresh()

    def close_state(self):
        self.board.close()

    def fresh_copy(self) -> "LeaderboardView":
        return LeaderboardView(
            self.service,
            mode=self.board.mode,
            contest_id=self.board.selected_contest_id,
            owner_id=self.owner_id,
        )

    # --- components ---

    def update_items(self):
        self.clear_items()
        board = self.board

        mode_options = [
            discord.SelectOption(
                label="Practice",
                value=LeaderboardMode.PRACTICE.value,
                description="Standings across practice challenges",
                default=board.mode == LeaderboardMode.PRACTICE
            ),
            discord.SelectOption(
                label="Competition",
                value=LeaderboardMode.COMPETITION.value,
                description="Standings for one contest",
                default=board.mode == LeaderboardMode.COMPETITION
            ),
        ]
        self.add_select("Leaderboard mode...", mode_options, self._on_mode, row=0)

        if board.mode == LeaderboardMode.COMPETITION:
            contest_options = [
                discord.SelectOption(
                    label=truncate(option.name, 100),
                    value=str(option.id),
                    default=option.id == board.selected_contest_id
                )
                for option in board.contests
            ]
            self.add_select("Select a contest...", contest_options, self._on_contest, row=1)

        _, meta = board.render()
        self.add_pagination(
            has_prev=meta.has_prev,
            has_next=meta.has_next,
            on_prev=self._on_prev,
            on_next=self._on_next,
            indicator=f"Page {meta.page}",
            row=2,
        )
        self.add_button("Search", self._on_search, emoji="🔍", row=3)
        self.add_button("Refresh", self._on_refresh, emoji="🔄", disabled=board.loading, row=3)

    # --- callbacks ---

    async def _on_mode(self, interaction: discord.Interaction):
        await self.begin(interaction)
        value = interaction.data.get('values', [None])[0]
        await self.board.set_mode(LeaderboardMode(value))
        await self.refresh_message()

    async def _on_contest(self, interaction: discord.Interaction):
        await self.begin(interaction)
        value = interaction.data.get('values', [None])[0]
        if value and value.isdigit():
            await self.board.select_contest(int(value))
        await self.refresh_message()

    async def _on_prev(self, interaction: discord.Interaction):
        await self.begin(interaction)
        await self.board.previous_page()
        await self.refresh_message()

    async def _on_next(self, interaction: discord.Interaction):
        await self.begin(interaction)
        await self.board.next_page()
        await self.refresh_message()

    async def _on_search(self, interaction: discord.Interaction):
        self.interaction = interaction
        await self.open_search(interaction, self.board.set_search, current=self.board.pipeline.search_term)

    async def _on_refresh(self, interaction: discord.Interaction):
        await self.begin(interaction)
        if self.board.mode == LeaderboardMode.COMPETITION:
            await self.board.load_contests(refresh=True)
        await self.board.refresh()
        await self.refresh_message()

    # --- embed ---

    def build_embed(self) -> discord.Embed:
        board = self.board
        if board.auth_required:
            return ErrorEmbeds.access_required()

        if board.mode == LeaderboardMode.COMPETITION:
            title = f"{UIConstants.TROPHY_EMOJI} Competition Leaderboard"
            if board.selected_contest_name:
                title += f" - {board.selected_contest_name}"
        else:
            title = f"{UIConstants.TROPHY_EMOJI} Practice Leaderboard"

        embed = discord.Embed(title=truncate(title, 256), color=UIConstants.GOLD_RANK_COLOR)
        entries, meta = board.render()

        if board.error:
            embed.color = UIConstants.ERROR_COLOR
            embed.description = f"❌ {board.error}"
        elif board.loading:
            embed.description = "Loading leaderboard..."
        elif board.mode == LeaderboardMode.COMPETITION and board.contests_loaded and not board.contests:
            embed.description = "No contests available yet."
        elif board.mode == LeaderboardMode.COMPETITION and board.selected_contest_id is None:
            embed.description = "Loading contests..."
        elif not entries:
            embed.description = "No entries match your search." if board.pipeline.debounced_term else "The leaderboard is empty."
        else:
            embed.description = self._table(entries)

        if board.pipeline.debounced_term:
            embed.add_field(name="Search", value=f"`{truncate(board.pipeline.debounced_term, 100)}`", inline=True)
        embed.set_footer(text=self._footer(meta))
        return embed

    @staticmethod
    def _table(entries: List[LeaderboardEntry]) -> str:
        lines = ["```"]
        lines.append(f"{'#':<5} {'Player':<18} {'Score':>7} {'Solved':>6}  {'Last Solve'}")
        lines.append("-" * 62)
        for entry in entries:
            lines.append(
                f"{entry.rank:<5} {truncate(entry.username, 18):<18} "
                f"{_format_score(entry.score):>7} {entry.solved:>6}  "
                f"{format_timestamp(entry.last_submission_at)}"
            )
        lines.append("```")
        return truncate("\n".join(lines), UIConstants.EMBED_DESCRIPTION_LIMIT)

    @staticmethod
    def _footer(meta: PageMeta) -> str:
        if meta.count == 0:
            return f"Page {meta.page} | No entries"
        return f"Page {meta.page} | Showing {meta.showing_from}-{meta.showing_to} of {meta.count}"
