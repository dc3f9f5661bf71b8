"""
Request-ordering guard for a single panel.

Each panel owns one guard. It is alive from mount until unmount, keeps a
monotonically increasing sequence number per resource, and owns every timer
the panel schedules so unmount can cancel them all.
"""

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Set

from ctfbot.utils.exceptions import StaleResponseDiscarded

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RequestTicket:
    """Captured when a fetch starts; compared when it completes."""
    resource: str
    sequence: int


class StaleGuard:
    """Last-request-wins guard plus lifetime-scoped timers."""

    def __init__(self):
        self._alive = True
        self._sequences: Dict[str, int] = defaultdict(int)
        self._timers: Set[asyncio.TimerHandle] = set()

    @property
    def alive(self) -> bool:
        return self._alive

    def unmount(self):
        """Mark the owning panel gone and cancel its pending timers."""
        if not self._alive:
            return
        self._alive = False
        for handle in list(self._timers):
            handle.cancel()
        self._timers.clear()
        logger.debug("StaleGuard unmounted")

    def begin(self, resource: str) -> RequestTicket:
        """Issue the next sequence number for ``resource``."""
        self._sequences[resource] += 1
        return RequestTicket(resource, self._sequences[resource])

    def invalidate(self, resource: str):
        """Supersede any in-flight request for ``resource`` without starting a new one."""
        self._sequences[resource] += 1

    def latest(self, resource: str) -> int:
        return self._sequences[resource]

    def is_current(self, ticket: RequestTicket) -> bool:
        return self._alive and ticket.sequence == self._sequences[ticket.resource]

    def check(self, ticket: RequestTicket):
        """Raise StaleResponseDiscarded unless ``ticket`` may still write state."""
        if not self.is_current(ticket):
            raise StaleResponseDiscarded(ticket.resource, ticket.sequence, self._sequences[ticket.resource])

    async def run(
        self,
        resource: str,
        request: Callable[[], Awaitable[Any]],
        on_success: Callable[[Any], None],
        on_error: Optional[Callable[[Exception], None]] = None
    ) -> bool:
        """
        Run ``request`` and hand its outcome to the matching handler.

        Handlers only run while the ticket is current; a stale outcome is
        dropped silently. Without ``on_error`` a current failure propagates.

        Returns:
            True when a handler ran, False when the outcome was discarded
        """
        ticket = self.begin(resource)
        try:
            result = await request()
        except Exception as e:
            try:
                self.check(ticket)
            except StaleResponseDiscarded as stale:
                logger.debug(f"{stale} (failed with {e!r})")
                return False
            if on_error is None:
                raise
            on_error(e)
            return True

        try:
            self.check(ticket)
        except StaleResponseDiscarded as stale:
            logger.debug(str(stale))
            return False
        on_success(result)
        return True

    def schedule(self, delay: float, callback: Callable[[], Any]) -> Optional[asyncio.TimerHandle]:
        """
        Schedule ``callback`` after ``delay`` seconds for as long as the panel lives.

        Must be called from inside the running event loop. Returns None when
        the guard is already unmounted.
        """
        if not self._alive:
            return None

        loop = asyncio.get_running_loop()
        handle: Optional[asyncio.TimerHandle] = None

        def fire():
            self._timers.discard(handle)
            if self._alive:
                callback()

        handle = loop.call_later(delay, fire)
        self._timers.add(handle)
        return handle

    def cancel(self, handle: Optional[asyncio.TimerHandle]):
        if handle is None:
            return
        handle.cancel()
        self._timers.discard(handle)

    @property
    def pending_timers(self) -> int:
        return len(self._timers)
