"""
Per-user throttle for opening panels.

Every panel mount fans out into platform requests, so each user may only open
a given panel a few times per window. Administrators are not throttled.
"""

import asyncio
import logging
import time
from collections import defaultdict, deque
from functools import wraps
from typing import Callable, Deque, Dict

logger = logging.getLogger(__name__)


class PanelRateLimiter:
    """Sliding-window limiter keyed by ``user_id:panel``."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._opened: Dict[str, Deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self._clock = clock

    async def is_allowed(self, user_id: int, panel: str, limit: int, window: float) -> bool:
        if limit <= 0 or window <= 0:
            return False

        key = f"{user_id}:{panel}"
        now = self._clock()
        async with self._lock:
            opened = self._opened[key]
            while opened and opened[0] <= now - window:
                opened.popleft()
            if len(opened) < limit:
                opened.append(now)
                return True
            return False


def rate_limit(panel: str, limit: int = 5, window: float = 60):
    """Throttle an app command that opens ``panel``."""
    def decorator(func):
        @wraps(func)
        async def wrapper(self, interaction, *args, **kwargs):
            permissions = getattr(interaction.user, 'guild_permissions', None)
            if permissions is not None and permissions.administrator:
                return await func(self, interaction, *args, **kwargs)

            if not await self.bot.rate_limiter.is_allowed(interaction.user.id, panel, limit, window):
                logger.info(f"Rate limited {interaction.user} opening {panel}")
                await interaction.response.send_message(
                    f"⏰ You are opening `/{panel}` too often. Please wait a moment and try again.",
                    ephemeral=True
                )
                return
            return await func(self, interaction, *args, **kwargs)
        return wrapper
    return decorator
