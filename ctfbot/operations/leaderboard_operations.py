"""
Leaderboard panel state.

Holds mode, contest selection, search and pagination for one leaderboard
panel and sequences its fetches: the contest list must resolve before a
competition-mode fetch can name a contest, and only the latest leaderboard
request may write state.
"""

import asyncio
import dataclasses
import logging
from typing import Any, Callable, List, Optional, Set, Tuple

from ctfbot.config import Config
from ctfbot.data_models.leaderboard import (
    CompetitionQuery, ContestOption, EnvelopeShape, LeaderboardEntry,
    LeaderboardMode, LeaderboardPage, LeaderboardQuery, PageMeta, PracticeQuery
)
from ctfbot.services.leaderboard import LeaderboardService
from ctfbot.services.list_query import ListQueryPipeline
from ctfbot.services.stale_guard import StaleGuard
from ctfbot.utils.exceptions import ApiError, AuthError

logger = logging.getLogger(__name__)

LEADERBOARD_RESOURCE = "leaderboard"
CONTESTS_RESOURCE = "contests"

LOAD_ERROR_MESSAGE = "Failed to load leaderboard data. Please try again."


class LeaderboardBoard:
    """State and fetch sequencing behind one leaderboard panel."""

    def __init__(
        self,
        service: LeaderboardService,
        guard: StaleGuard,
        page_size: int = None,
        mode: LeaderboardMode = LeaderboardMode.PRACTICE,
        debounce_delay: float = None,
        on_change: Optional[Callable[[], Any]] = None
    ):
        self.service = service
        self.guard = guard
        self.page_size = page_size or Config.LEADERBOARD_PAGE_SIZE
        self.mode = mode
        self.on_change = on_change

        self.contests: List[ContestOption] = []
        self.contests_loaded = False
        self.selected_contest_id: Optional[int] = None

        self.page = 1
        self.shape = EnvelopeShape.FLAT
        self.entries: List[LeaderboardEntry] = []
        self.server_meta = PageMeta(page_size=self.page_size)
        self.loading = False
        self.error: Optional[str] = None
        self.auth_required = False
        self.fetch_deferred = False

        # Usernames are searched locally for flat envelopes, on the server otherwise
        self.pipeline: ListQueryPipeline[LeaderboardEntry] = ListQueryPipeline(
            search_fields=('username',),
            page_size=self.page_size,
            debounce_delay=debounce_delay,
            guard=guard,
            on_change=self._on_search_applied,
        )
        self._background_tasks: Set[asyncio.Task] = set()

    # --- derived state ---

    @property
    def selected_contest_name(self) -> Optional[str]:
        for option in self.contests:
            if option.id == self.selected_contest_id:
                return option.name
        return None

    @property
    def server_paginated(self) -> bool:
        return self.shape == EnvelopeShape.PAGINATED

    def build_query(self) -> Optional[LeaderboardQuery]:
        """The request for the current state, or None while the contest is unresolved."""
        search = self.pipeline.debounced_term
        if self.mode == LeaderboardMode.PRACTICE:
            return PracticeQuery(page=self.page, page_size=self.page_size, search=search)
        if self.selected_contest_id is None:
            return None
        return CompetitionQuery(
            contest_id=self.selected_contest_id,
            contest_name=self.selected_contest_name,
            page=self.page,
            page_size=self.page_size,
            search=search,
        )

    def render(self) -> Tuple[List[LeaderboardEntry], PageMeta]:
        """Rows to show and the matching page bookkeeping."""
        if self.server_paginated:
            return self.entries, self.server_meta
        result = self.pipeline.render()
        return result.page_items, PageMeta(
            count=result.total,
            has_next=result.has_next,
            has_prev=result.has_prev,
            page=result.page,
            page_size=result.page_size,
        )

    # --- fetches ---

    def _notify(self):
        if self.on_change is not None:
            self.on_change()

    async def load_contests(self, refresh: bool = False):
        """Load the dropdown; a deferred competition fetch runs once a contest resolves."""
        def apply(options: List[ContestOption]):
            self.contests = list(options)
            self.contests_loaded = True
            ids = {option.id for option in self.contests}
            if self.selected_contest_id not in ids:
                self.selected_contest_id = self.contests[0].id if self.contests else None
            self._notify()

        def fail(error: Exception):
            if not isinstance(error, ApiError):
                raise error
            # A missing dropdown is not worth a banner; competition mode shows "no contests"
            logger.warning(f"Failed to load contests: {error}")
            self.contests = []
            self.contests_loaded = True
            self.selected_contest_id = None
            self._notify()

        applied = await self.guard.run(
            CONTESTS_RESOURCE,
            lambda: self.service.list_contests(refresh=refresh),
            apply,
            fail,
        )
        if applied and self.fetch_deferred and self.selected_contest_id is not None:
            await self.refresh()

    async def refresh(self) -> bool:
        """
        Fetch the current page. Returns False when nothing was applied.

        In competition mode without a contest the fetch is deferred until
        ``load_contests`` resolves one.
        """
        query = self.build_query()
        if query is None:
            logger.debug("Competition leaderboard fetch deferred until a contest is known")
            self.fetch_deferred = True
            self.loading = False
            self._notify()
            return False

        self.fetch_deferred = False
        self.loading = True
        self.error = None
        self._notify()
        return await self.guard.run(
            LEADERBOARD_RESOURCE,
            lambda: self.service.fetch(query),
            lambda page: self._apply_page(page, query),
            self._apply_error,
        )

    def _apply_page(self, page: LeaderboardPage, query: LeaderboardQuery):
        self.loading = False
        self.auth_required = False
        self.shape = page.shape
        self.entries = list(page.entries)
        self.pipeline.set_items(self.entries)
        self.server_meta = PageMeta(
            count=page.count,
            has_next=page.next is not None,
            has_prev=page.previous is not None,
            page=query.page,
            page_size=query.page_size,
        )
        self._notify()

    def _apply_error(self, error: Exception):
        if not isinstance(error, ApiError):
            raise error
        logger.warning(f"Leaderboard fetch failed: {error}")
        self.loading = False
        self.auth_required = isinstance(error, AuthError)
        self.error = error.user_message or LOAD_ERROR_MESSAGE
        self.entries = []
        self.pipeline.set_items([])
        self.server_meta = PageMeta(page=self.page, page_size=self.page_size)
        self._notify()

    # --- user actions ---

    def _reset_paging(self):
        self.page = 1
        self.pipeline.page = 1

    async def set_mode(self, mode: LeaderboardMode) -> bool:
        """Switch practice/competition; paging restarts and in-flight results are dropped."""
        if mode == self.mode:
            return False
        self.mode = mode
        self._reset_paging()
        self.guard.invalidate(LEADERBOARD_RESOURCE)
        self.entries = []
        self.pipeline.set_items([])
        self.shape = EnvelopeShape.FLAT
        self.server_meta = PageMeta(page_size=self.page_size)
        self.error = None
        if mode == LeaderboardMode.COMPETITION and self.selected_contest_id is None and self.contests:
            self.selected_contest_id = self.contests[0].id
        return await self.refresh()

    async def select_contest(self, contest_id: int) -> bool:
        if contest_id not in {option.id for option in self.contests}:
            return False
        if contest_id == self.selected_contest_id and not self.fetch_deferred:
            return False
        self.selected_contest_id = contest_id
        self._reset_paging()
        return await self.refresh()

    def set_search(self, term: str):
        """Page goes back to 1 now; the search itself applies after the debounce."""
        self._reset_paging()
        if self.server_paginated:
            # Paging waits for the refetch under the new term
            self.server_meta = dataclasses.replace(self.server_meta, page=1, has_next=False, has_prev=False)
        self.pipeline.set_search_term(term)
        self._notify()

    def _on_search_applied(self):
        if self.server_paginated:
            task = asyncio.get_running_loop().create_task(self.refresh())
            self._background_tasks.add(task)
            task.add_done_callback(self._background_tasks.discard)
        else:
            self._notify()

    async def next_page(self) -> bool:
        if self.server_paginated:
            if not self.server_meta.has_next:
                return False
            self.page += 1
            return await self.refresh()
        moved = self.pipeline.next_page()
        if moved:
            self._notify()
        return moved

    async def previous_page(self) -> bool:
        if self.server_paginated:
            if not self.server_meta.has_prev or self.page <= 1:
                return False
            self.page -= 1
            return await self.refresh()
        moved = self.pipeline.previous_page()
        if moved:
            self._notify()
        return moved

    def close(self):
        """Unmount: drop pending timers and cancel background refreshes."""
        self.pipeline.close()
        self.guard.unmount()
        for task in list(self._background_tasks):
            task.cancel()
