"""
Admin group panel.

Lists user groups with search and an "only groups with members" toggle, and
lets an administrator delete a group or remove one of its members. Both edits
are optimistic and roll back if the platform refuses them.
"""

import discord
from typing import Optional

from ctfbot.constants import UIConstants
from ctfbot.operations.admin_operations import AdminGroupManager
from ctfbot.services.admin import AdminService
from ctfbot.ui.confirmation import make_confirmer
from ctfbot.utils.error_embeds import ErrorEmbeds
from ctfbot.views.base import BaseListView, truncate


class AdminGroupsView(BaseListView):
    """Group management panel."""

    panel_name = "groups"

    def __init__(self, service: AdminService, owner_id: Optional[int] = None):
        super().__init__(owner_id=owner_id)
        self.service = service
        self.manager = AdminGroupManager(
            service,
            self.guard,
            confirmer=make_confirmer(lambda: self.interaction),
            on_change=self.request_render,
        )
        self.selected_group_id: Optional[int] = None
        self.selected_user_id: Optional[int] = None

    async def load(self):
        await self.manager.load()

    def close_state(self):
        self.manager.close()

    def fresh_copy(self) -> "AdminGroupsView":
        return AdminGroupsView(self.service, owner_id=self.owner_id)

    # --- components ---

    def update_items(self):
        self.clear_items()
        manager = self.manager
        result = manager.render()

        if self.selected_group_id is not None and manager.find(self.selected_group_id) is None:
            self.selected_group_id = None
            self.selected_user_id = None
        group = manager.find(self.selected_group_id) if self.selected_group_id is not None else None

        self.add_select(
            "Select a group...",
            [
                discord.SelectOption(
                    label=truncate(g.name or f"Group #{g.id}", 100),
                    value=str(g.id),
                    description=f"ID {g.id} · {g.members_count} member(s)",
                    default=g.id == self.selected_group_id
                )
                for g in result.page_items
            ],
            self._on_group_selected,
            row=0,
        )
        if group is not None:
            self.add_select(
                "Select a member...",
                [
                    discord.SelectOption(
                        label=truncate(m.username or f"User #{m.user_id}", 100),
                        value=str(m.user_id),
                        description="Group admin" if m.is_admin else None,
                        default=m.user_id == self.selected_user_id
                    )
                    for m in group.members
                ],
                self._on_member_selected,
                row=1,
            )

        self.add_pagination(
            has_prev=result.has_prev,
            has_next=result.has_next,
            on_prev=self._on_prev,
            on_next=self._on_next,
            indicator=f"{result.page}/{result.page_count}",
            row=2,
        )
        self.add_button("Search", self._on_search, emoji="🔍", row=2)
        self.add_button(
            "With members" if manager.only_non_empty else "All groups",
            self._on_toggle_non_empty,
            style=discord.ButtonStyle.success if manager.only_non_empty else discord.ButtonStyle.secondary,
            row=2,
        )

        busy = manager.busy
        self.add_button(
            "Delete Group",
            self._on_delete_group,
            style=discord.ButtonStyle.danger,
            emoji="🗑️",
            disabled=busy or group is None,
            row=3,
        )
        self.add_button(
            "Remove Member",
            self._on_remove_member,
            style=discord.ButtonStyle.danger,
            emoji="➖",
            disabled=busy or group is None or self.selected_user_id is None,
            row=3,
        )
        self.add_button("Refresh", self._on_refresh, emoji="🔄", disabled=busy, row=3)

    # --- callbacks ---

    async def _on_group_selected(self, interaction: discord.Interaction):
        await self.begin(interaction)
        value = interaction.data.get('values', [None])[0]
        self.selected_group_id = int(value) if value and value.isdigit() else None
        self.selected_user_id = None
        await self.refresh_message()

    async def _on_member_selected(self, interaction: discord.Interaction):
        await self.begin(interaction)
        value = interaction.data.get('values', [None])[0]
        self.selected_user_id = int(value) if value and value.isdigit() else None
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

    async def _on_toggle_non_empty(self, interaction: discord.Interaction):
        await self.begin(interaction)
        self.manager.set_only_non_empty(not self.manager.only_non_empty)
        await self.refresh_message()

    async def _on_delete_group(self, interaction: discord.Interaction):
        await self.begin(interaction)
        if self.selected_group_id is None:
            return
        outcome = await self.manager.delete_group(self.selected_group_id)
        self.logger.info(f"Group {self.selected_group_id} delete by {interaction.user.id}: {outcome.value}")
        await self.refresh_message()

    async def _on_remove_member(self, interaction: discord.Interaction):
        await self.begin(interaction)
        if self.selected_group_id is None or self.selected_user_id is None:
            return
        outcome = await self.manager.remove_member(self.selected_group_id, self.selected_user_id)
        self.logger.info(
            f"Member {self.selected_user_id} removal from group {self.selected_group_id} "
            f"by {interaction.user.id}: {outcome.value}"
        )
        self.selected_user_id = None
        await self.refresh_message()

    async def _on_refresh(self, interaction: discord.Interaction):
        await self.begin(interaction)
        await self.manager.load()
        await self.refresh_message()

    # --- embed ---

    def build_embed(self) -> discord.Embed:
        manager = self.manager
        if manager.auth_required:
            return ErrorEmbeds.access_required()

        embed = discord.Embed(title=f"{UIConstants.GROUP_EMOJI} Groups", color=UIConstants.DEFAULT_EMBED_COLOR)
        prefix = self.flash_prefix(manager.flash.text, manager.flash.is_error)

        if manager.error:
            embed.color = UIConstants.ERROR_COLOR
            embed.description = prefix + f"❌ {manager.error}"
            return embed
        if manager.loading:
            embed.description = prefix + "Loading groups..."
            return embed

        result = manager.render()
        if result.total == 0:
            embed.description = prefix + "No groups found."
        else:
            lines = []
            for group in result.page_items:
                marker = "▶ " if group.id == self.selected_group_id else ""
                lines.append(f"{marker}**{group.name}** (ID: {group.id}) · {group.members_count} member(s)")
            embed.description = truncate(prefix + "\n".join(lines), UIConstants.EMBED_DESCRIPTION_LIMIT)

        group = manager.find(self.selected_group_id) if self.selected_group_id is not None else None
        if group is not None:
            members = ", ".join(m.username for m in group.members) or "No members"
            embed.add_field(name=f"Members of {truncate(group.name, 200)}", value=truncate(members, 1024), inline=False)

        embed.set_footer(
            text=f"Showing {result.showing_from}-{result.showing_to} of {result.total} | "
                 f"Page {result.page}/{result.page_count}"
        )
        return embed
