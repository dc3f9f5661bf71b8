"""
Competition challenge reads and admin deletes.
"""

import asyncio
import logging
from typing import List, Tuple

from ctfbot.data_models.contest import Challenge
from ctfbot.services.base import BaseService, unwrap_list

logger = logging.getLogger(__name__)

CHALLENGES_RESOURCE = "challenges/challenges"
CATEGORIES_RESOURCE = "challenges/categories"
DIFFICULTIES_RESOURCE = "challenges/difficulties"


def _names(rows: List[dict], key: str) -> List[str]:
    seen = []
    for row in rows:
        value = row.get(key) if isinstance(row, dict) else None
        if isinstance(value, str) and value and value not in seen:
            seen.append(value)
    return seen


class ChallengeService(BaseService):
    """Reads competition challenges plus the category/difficulty vocabularies."""

    async def list_competition_challenges(self) -> List[Challenge]:
        async def _get():
            return await self.client.list(CHALLENGES_RESOURCE, params={'type': 'competition'})

        payload = await self.execute_with_retry(_get)
        challenges = []
        for raw in unwrap_list(payload, CHALLENGES_RESOURCE):
            challenge = Challenge.from_api(raw)
            if challenge is None:
                logger.warning(f"Skipping challenge without a usable id: {raw!r:.120}")
                continue
            challenges.append(challenge)
        return challenges

    async def list_categories(self) -> List[str]:
        payload = await self.execute_with_retry(lambda: self.client.list(CATEGORIES_RESOURCE))
        return _names(unwrap_list(payload, CATEGORIES_RESOURCE), 'name')

    async def list_difficulties(self) -> List[str]:
        payload = await self.execute_with_retry(lambda: self.client.list(DIFFICULTIES_RESOURCE))
        return _names(unwrap_list(payload, DIFFICULTIES_RESOURCE), 'level')

    async def load_browser_data(self) -> Tuple[List[str], List[str], List[Challenge]]:
        """Categories, difficulties and challenges, fetched together."""
        categories, difficulties, challenges = await asyncio.gather(
            self.list_categories(),
            self.list_difficulties(),
            self.list_competition_challenges(),
        )
        return categories, difficulties, challenges

    async def delete_challenge(self, challenge_id: int):
        return await self.client.delete(CHALLENGES_RESOURCE, challenge_id)
