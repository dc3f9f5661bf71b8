"""
Competition browser panel.

Lists competition challenges grouped by contest status (ongoing, upcoming,
ended and unscheduled) and, inside each, by contest, with per-contest
countdowns.
"""

import discord
from typing import List, Optional

from ctfbot.constants import PaginationConstants, UIConstants
from ctfbot.data_models.contest import Challenge
from ctfbot.operations.challenge_operations import GROUP_FILTERS, STATUS_FILTERS, BrowserPage, CompetitionBrowser
from ctfbot.services.challenges import ChallengeService
from ctfbot.utils.contest_grouping import BUCKET_TITLES, Group
from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.views.base import BaseListView, truncate

STATUS_LABELS = {
    "ALL": "All statuses",
    "ONGOING": "Ongoing",
    "UPCOMING": "Upcoming",
    "ENDED": "Ended",
    "NONE": "No contest",
}

GROUP_LABELS = {
    "ALL": "Solo and group",
    "GROUP_ONLY": "Group only",
    "SOLO_ONLY": "Solo only",
}

ALL_VALUE = "__all__"


def option_list(values: List[str], current: Optional[str], all_label: str) -> List[discord.SelectOption]:
    """Select options with a leading "all" entry; capped at Discord's limit."""
    options = [discord.SelectOption(label=all_label, value=ALL_VALUE, default=current is None)]
    for value in values[:PaginationConstants.MAX_SELECT_OPTIONS - 1]:
        options.append(discord.SelectOption(label=truncate(value, 100), value=value, default=value == current))
    return options


def challenge_line(challenge: Challenge) -> str:
    parts = [f"**{challenge.title or f'Challenge #{challenge.id}'}**"]
    if challenge.category:
        parts.append(challenge.category)
    if challenge.difficulty:
        parts.append(challenge.difficulty)
    if challenge.group_only:
        parts.append(f"{UIConstants.GROUP_EMOJI} group")
    if not challenge.can_participate:
        parts.append("🔒")
    return " · ".join(parts)


def group_field(bucket: str, group: Group[Challenge]) -> tuple:
    """Embed field (name, value) for one contest group."""
    timing = group.entries[0].timing
    name = f"{BUCKET_TITLES[bucket]} · {group.parent_label} [{timing.label}]"
    lines = [line for line in (timing.timing_primary, timing.timing_secondary) if line]
    lines.extend(f"• {challenge_line(entry.item)}" for entry in group.entries)
    return truncate(name, 256), truncate("\n".join(lines), UIConstants.EMBED_FIELD_LIMIT)


class CompetitionView(BaseListView):
    """Interactive competition browser."""

    panel_name = "competition challenges"

    def __init__(self, service: ChallengeService, owner_id: Optional[int] = None):
        super().__init__(owner_id=owner_id)
        self.service = service
        self.browser = CompetitionBrowser(service, self.guard, on_change=self.request_render)

    async def load(self):
        await self.browser.load()

    def close_state(self):
        self.browser.close()

    def fresh_copy(self) -> "CompetitionView":
        return CompetitionView(self.service, owner_id=self.owner_id)

    # --- components ---

    def update_items(self):
        self.clear_items()
        browser = self.browser

        self.add_select(
            "Category...",
            option_list(browser.categories, browser.category, "All categories"),
            self._on_category,
            row=0,
        )
        self.add_select(
            "Difficulty...",
            option_list(browser.difficulties, browser.difficulty, "All difficulties"),
            self._on_difficulty,
            row=1,
        )
        self.add_select(
            "Status...",
            [
                discord.SelectOption(label=STATUS_LABELS[value], value=value, default=value == browser.status_filter)
                for value in STATUS_FILTERS
            ],
            self._on_status,
            row=2,
        )
        self.add_select(
            "Participation...",
            [
                discord.SelectOption(label=GROUP_LABELS[value], value=value, default=value == browser.group_filter)
                for value in GROUP_FILTERS
            ],
            self._on_group,
            row=3,
        )

        # Four select rows leave five slots; the page number lives in the footer
        result = browser.pipeline.render()
        self.add_button("Previous", self._on_prev, style=discord.ButtonStyle.primary, disabled=not result.has_prev, row=4)
        self.add_button("Next", self._on_next, style=discord.ButtonStyle.primary, disabled=not result.has_next, row=4)
        self.add_button(f"Per page: {result.page_size}", self._on_page_size, emoji="📄", row=4)
        self.add_button("Search", self._on_search, emoji="🔍", row=4)
        self.add_button("Clear", self._on_clear, emoji="🧹", row=4)

    @staticmethod
    def _selected(interaction: discord.Interaction) -> Optional[str]:
        value = interaction.data.get('values', [None])[0]
        return None if value in (None, ALL_VALUE) else value

    async def _on_category(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.set_category(self._selected(interaction))
        await self.refresh_message()

    async def _on_difficulty(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.set_difficulty(self._selected(interaction))
        await self.refresh_message()

    async def _on_status(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.set_status_filter(self._selected(interaction) or "ALL")
        await self.refresh_message()

    async def _on_group(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.set_group_filter(self._selected(interaction) or "ALL")
        await self.refresh_message()

    async def _on_prev(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.set_page(self.browser.pipeline.page - 1)
        await self.refresh_message()

    async def _on_next(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.set_page(self.browser.pipeline.page + 1)
        await self.refresh_message()

    async def _on_page_size(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.cycle_page_size()
        await self.refresh_message()

    async def _on_search(self, interaction: discord.Interaction):
        self.interaction = interaction
        await self.open_search(interaction, self.browser.set_search, current=self.browser.pipeline.search_term)

    async def _on_clear(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.browser.clear_filters()
        await self.refresh_message()

    # --- embed ---

    def build_embed(self) -> discord.Embed:
        browser = self.browser
        if browser.auth_required:
            return ErrorEmbeds.access_required()
        if browser.error:
            return ErrorEmbeds.load_failed(browser.error)

        embed = discord.Embed(title="⚔️ Competition Challenges", color=UIConstants.DEFAULT_EMBED_COLOR)
        if browser.loading:
            embed.description = "Loading competition challenges..."
            return embed

        page: BrowserPage = browser.render()
        result = page.result
        if result.total == 0:
            embed.description = (
                "No challenges match your filters."
                if browser.pipeline.active_filters or browser.pipeline.debounced_term
                else "No competition challenges yet."
            )
        else:
            for bucket, groups in page.sections:
                for group in groups:
                    name, value = group_field(bucket, group)
                    embed.add_field(name=name, value=value, inline=False)

        embed.set_footer(
            text=f"Showing {result.showing_from}-{result.showing_to} of {result.total} | "
                 f"Page {result.page}/{result.page_count}"
        )
        return embed
