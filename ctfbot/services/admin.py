"""
Admin-only reads and writes for groups and contests.
"""

import logging
from typing import Any, List

from ctfbot.data_models.contest import Contest
from ctfbot.data_models.group import AdminGroup
from ctfbot.services.base import BaseService, unwrap_list

logger = logging.getLogger(__name__)

GROUPS_RESOURCE = "users/groups"
CONTESTS_RESOURCE = "challenges/contests"


class AdminService(BaseService):
    """Group and contest administration."""

    async def list_groups(self) -> List[AdminGroup]:
        payload = await self.execute_with_retry(lambda: self.client.list(GROUPS_RESOURCE))
        groups = [AdminGroup.from_api(raw) for raw in unwrap_list(payload, GROUPS_RESOURCE)]
        return [group for group in groups if group is not None]

    async def delete_group(self, group_id: int) -> Any:
        return await self.client.delete(GROUPS_RESOURCE, group_id)

    async def remove_member(self, group_id: int, user_id: int) -> Any:
        return await self.client.action(GROUPS_RESOURCE, group_id, 'remove-member', {'user_id': user_id})

    async def list_contests(self) -> List[Contest]:
        payload = await self.execute_with_retry(lambda: self.client.list(CONTESTS_RESOURCE))
        contests = [Contest.from_api(raw) for raw in unwrap_list(payload, CONTESTS_RESOURCE)]
        return [contest for contest in contests if contest is not None]

    async def delete_contest(self, contest_id: int) -> Any:
        return await self.client.delete(CONTESTS_RESOURCE, contest_id)
