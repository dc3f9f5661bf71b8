"""
Admin contest and competition-challenge panels.

Both list their items with search, status filtering and pagination, and
support optimistic deletion behind a confirmation prompt.
"""

import discord
from typing import List, Optional

from ctfbot.constants import UIConstants
from ctfbot.operations.admin_operations import AdminChallengeManager, AdminContestManager, contest_status
from ctfbot.operations.challenge_operations import STATUS_FILTERS, challenge_status
from ctfbot.services.admin import AdminService
from ctfbot.services.challenges import ChallengeService
from ctfbot.ui.confirmation import make_confirmer
from ctfbot.utils.contest_status import resolve_status
from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.utils.time_format import format_timestamp
from ctfbot.views.base import BaseListView, truncate
from ctfbot.views.competition import ALL_VALUE, STATUS_LABELS, option_list

CONTEST_STATUS_FILTERS = ("ALL", "ONGOING", "UPCOMING", "ENDED")


class _AdminDeleteView(BaseListView):
    """Selection, paging, search and delete wiring shared by both panels."""

    item_noun = "item"

    def __init__(self, owner_id: Optional[int] = None):
        super().__init__(owner_id=owner_id)
        self.selected_id: Optional[int] = None
        self.manager = None

    async def load(self):
        await self.manager.load()

    def close_state(self):
        self.manager.close()

    def item_label(self, item) -> str:
        raise NotImplementedError

    def item_description(self, item) -> Optional[str]:
        return None

    def add_filter_selects(self):
        pass

    async def delete_selected(self, item_id: int):
        raise NotImplementedError

    def update_items(self):
        self.clear_items()
        manager = self.manager
        result = manager.render()
        if self.selected_id is not None and manager.find(self.selected_id) is None:
            self.selected_id = None

        self.add_select(
            f"Select a {self.item_noun}...",
            [
                discord.SelectOption(
                    label=truncate(self.item_label(item), 100),
                    value=str(item.id),
                    description=self.item_description(item),
                    default=item.id == self.selected_id
                )
                for item in result.page_items
            ],
            self._on_selected,
            row=0,
        )
        self.add_filter_selects()
        self.add_pagination(
            has_prev=result.has_prev,
            has_next=result.has_next,
            on_prev=self._on_prev,
            on_next=self._on_next,
            indicator=f"{result.page}/{result.page_count}",
            row=4,
        )
        self.add_button("Search", self._on_search, emoji="🔍", row=4)
        self.add_button(
            "Delete",
            self._on_delete,
            style=discord.ButtonStyle.danger,
            emoji="🗑️",
            disabled=manager.busy or self.selected_id is None,
            row=4,
        )

    @staticmethod
    def _value(interaction: discord.Interaction) -> Optional[str]:
        value = interaction.data.get('values', [None])[0]
        return None if value in (None, ALL_VALUE) else value

    async def _on_selected(self, interaction: discord.Interaction):
        await self.begin(interaction)
        value = self._value(interaction)
        self.selected_id = int(value) if value and value.isdigit() else None
        await self.refresh_message()

    async def _on_prev(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.pipeline.previous_page()
        await self.refresh_message()

    async def _on_next(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.pipeline.next_page()
        await self.refresh_message()

    async def _on_search(self, interaction: discord.Interaction):
        self.interaction = interaction
        await self.open_search(interaction, self.manager.set_search, current=self.manager.pipeline.search_term)

    async def _on_delete(self, interaction: discord.Interaction):
        await self.begin(interaction)
        if self.selected_id is None:
            return
        outcome = await self.delete_selected(self.selected_id)
        self.logger.info(f"{self.item_noun} {self.selected_id} delete by {interaction.user.id}: {outcome.value}")
        await self.refresh_message()

    def list_lines(self, items: List) -> List[str]:
        raise NotImplementedError

    def build_embed(self) -> discord.Embed:
        manager = self.manager
        if manager.auth_required:
            return ErrorEmbeds.access_required()

        embed = discord.Embed(title=self.title, color=UIConstants.DEFAULT_EMBED_COLOR)
        prefix = self.flash_prefix(manager.flash.text, manager.flash.is_error)
        if manager.error:
            embed.color = UIConstants.ERROR_COLOR
            embed.description = prefix + f"❌ {manager.error}"
            return embed
        if manager.loading:
            embed.description = prefix + f"Loading {self.panel_name}..."
            return embed

        result = manager.render()
        if result.total == 0:
            embed.description = prefix + f"No {self.panel_name} found."
        else:
            embed.description = truncate(
                prefix + "\n".join(self.list_lines(result.page_items)),
                UIConstants.EMBED_DESCRIPTION_LIMIT
            )
        embed.set_footer(
            text=f"Showing {result.showing_from}-{result.showing_to} of {result.total} | "
                 f"Page {result.page}/{result.page_count}"
        )
        return embed


class AdminContestsView(_AdminDeleteView):
    """Contest management panel."""

    panel_name = "contests"
    item_noun = "contest"
    title = f"{UIConstants.TROPHY_EMOJI} Contests"

    def __init__(self, service: AdminService, owner_id: Optional[int] = None):
        super().__init__(owner_id=owner_id)
        self.service = service
        self.manager = AdminContestManager(
            service,
            self.guard,
            confirmer=make_confirmer(lambda: self.interaction),
            on_change=self.request_render,
        )

    def fresh_copy(self) -> "AdminContestsView":
        return AdminContestsView(self.service, owner_id=self.owner_id)

    def item_label(self, contest) -> str:
        return contest.display_name

    def item_description(self, contest) -> Optional[str]:
        return f"ID {contest.id} · {contest_status(contest, self.manager.clock()).value}"

    def add_filter_selects(self):
        self.add_select(
            "Status...",
            [
                discord.SelectOption(label=STATUS_LABELS[value], value=value, default=value == self.manager.status_filter)
                for value in CONTEST_STATUS_FILTERS
            ],
            self._on_status,
            row=1,
        )

    async def _on_status(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.set_status_filter(self._value(interaction) or "ALL")
        await self.refresh_message()

    async def delete_selected(self, item_id: int):
        return await self.manager.delete_contest(item_id)

    def list_lines(self, contests: List) -> List[str]:
        now = self.manager.clock()
        lines = []
        for contest in contests:
            timing = resolve_status(now, contest.start_time, contest.end_time)
            marker = "▶ " if contest.id == self.selected_id else ""
            window = f"{format_timestamp(contest.start_time)} → {format_timestamp(contest.end_time)}"
            lines.append(f"{marker}**{contest.display_name}** (ID: {contest.id}) [{timing.label}]\n{window}")
        return lines


class AdminChallengesView(_AdminDeleteView):
    """Competition challenge management panel."""

    panel_name = "challenges"
    item_noun = "challenge"
    title = "⚔️ Competition Challenges (Admin)"

    def __init__(self, service: ChallengeService, owner_id: Optional[int] = None):
        super().__init__(owner_id=owner_id)
        self.service = service
        self.manager = AdminChallengeManager(
            service,
            self.guard,
            confirmer=make_confirmer(lambda: self.interaction),
            on_change=self.request_render,
        )

    def fresh_copy(self) -> "AdminChallengesView":
        return AdminChallengesView(self.service, owner_id=self.owner_id)

    def item_label(self, challenge) -> str:
        return challenge.title or f"Challenge #{challenge.id}"

    def item_description(self, challenge) -> Optional[str]:
        contest = challenge.active_contest.display_name if challenge.active_contest else "No contest"
        return truncate(f"ID {challenge.id} · {contest}", 100)

    def add_filter_selects(self):
        manager = self.manager
        self.add_select(
            "Category...",
            option_list(manager.categories, manager.category, "All categories"),
            self._on_category,
            row=1,
        )
        self.add_select(
            "Difficulty...",
            option_list(manager.difficulties, manager.difficulty, "All difficulties"),
            self._on_difficulty,
            row=2,
        )
        self.add_select(
            "Status...",
            [
                discord.SelectOption(label=STATUS_LABELS[value], value=value, default=value == manager.status_filter)
                for value in STATUS_FILTERS
            ],
            self._on_status,
            row=3,
        )

    async def _on_category(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.set_category(self._value(interaction))
        await self.refresh_message()

    async def _on_difficulty(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.set_difficulty(self._value(interaction))
        await self.refresh_message()

    async def _on_status(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.set_status_filter(self._value(interaction) or "ALL")
        await self.refresh_message()

    async def delete_selected(self, item_id: int):
        return await self.manager.delete_challenge(item_id)

    def list_lines(self, challenges: List) -> List[str]:
        now = self.manager.clock()
        lines = []
        for challenge in challenges:
            marker = "▶ " if challenge.id == self.selected_id else ""
            status = challenge_status(challenge, now).value
            detail = " · ".join(part for part in (challenge.category, challenge.difficulty) if part)
            lines.append(f"{marker}**{challenge.title}** (ID: {challenge.id}) [{status}]" + (f" · {detail}" if detail else ""))
        return lines
