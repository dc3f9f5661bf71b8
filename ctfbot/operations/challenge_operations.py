"""
Competition browser state.

Filters and searches the competition challenges, paginates them, and groups
the visible page by contest status and then by contest.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from ctfbot.config import Config
from ctfbot.constants import PaginationConstants
from ctfbot.data_models.contest import Challenge
from ctfbot.services.challenges import ChallengeService
from ctfbot.services.list_query import ListQueryPipeline, QueryResult
from ctfbot.services.stale_guard import StaleGuard
from ctfbot.utils.contest_grouping import Group, annotate, group_page
from ctfbot.utils.contest_status import ContestStatus, resolve_status
from ctfbot.utils.exceptions import ApiError, AuthError
from ctfbot.utils.time_format import now_ms

logger = logging.getLogger(__name__)

CHALLENGES_RESOURCE = "challenges"

# The browser waits a little longer than the default before searching
BROWSER_DEBOUNCE_SECONDS = 0.35

STATUS_FILTERS = ("ALL", "ONGOING", "UPCOMING", "ENDED", "NONE")
GROUP_FILTERS = ("ALL", "GROUP_ONLY", "SOLO_ONLY")

LOAD_ERROR_MESSAGE = "Failed to load competition challenges. Please try again."


def challenge_status(challenge: Challenge, at_ms: float) -> ContestStatus:
    contest = challenge.active_contest
    if contest is None:
        return ContestStatus.NONE
    return resolve_status(at_ms, contest.start_time, contest.end_time).status


def status_matches(status: ContestStatus, wanted: str) -> bool:
    if wanted == "UPCOMING":
        return status.is_upcoming
    return status.value == wanted


@dataclass(frozen=True)
class BrowserPage:
    """One render of the browser: the paginated result and its grouped layout."""
    result: QueryResult[Challenge]
    sections: List[Tuple[str, List[Group[Challenge]]]]


class CompetitionBrowser:
    """State behind the competition browser panel."""

    def __init__(
        self,
        service: ChallengeService,
        guard: StaleGuard,
        page_size: int = None,
        clock: Callable[[], float] = now_ms,
        debounce_delay: float = BROWSER_DEBOUNCE_SECONDS,
        on_change: Optional[Callable[[], Any]] = None
    ):
        self.service = service
        self.guard = guard
        self.clock = clock
        self.on_change = on_change
        self.categories: List[str] = []
        self.difficulties: List[str] = []
        self.loading = False
        self.error: Optional[str] = None
        self.auth_required = False

        self.category: Optional[str] = None
        self.difficulty: Optional[str] = None
        self.status_filter = "ALL"
        self.group_filter = "ALL"

        self.pipeline: ListQueryPipeline[Challenge] = ListQueryPipeline(
            search_fields=('title', 'description', 'category'),
            page_size=page_size or Config.CHALLENGE_PAGE_SIZE,
            debounce_delay=debounce_delay,
            guard=guard,
            on_change=on_change,
        )

    def _notify(self):
        if self.on_change is not None:
            self.on_change()

    async def load(self) -> bool:
        def apply(data):
            categories, difficulties, challenges = data
            self.categories = list(categories)
            self.difficulties = list(difficulties)
            self.pipeline.set_items(challenges)
            self.loading = False
            self.auth_required = False
            self._notify()

        def fail(error: Exception):
            if not isinstance(error, ApiError):
                raise error
            logger.warning(f"Failed to fetch competition data: {error}")
            self.loading = False
            self.auth_required = isinstance(error, AuthError)
            self.error = LOAD_ERROR_MESSAGE
            self._notify()

        self.loading = True
        self.error = None
        return await self.guard.run(CHALLENGES_RESOURCE, self.service.load_browser_data, apply, fail)

    # --- filters ---

    def set_category(self, category: Optional[str]):
        self.category = category or None
        self.pipeline.set_filter(
            'category',
            (lambda c, wanted=self.category: c.category == wanted) if self.category else None
        )

    def set_difficulty(self, difficulty: Optional[str]):
        self.difficulty = difficulty or None
        self.pipeline.set_filter(
            'difficulty',
            (lambda c, wanted=self.difficulty: c.difficulty == wanted) if self.difficulty else None
        )

    def set_status_filter(self, status: str):
        if status not in STATUS_FILTERS:
            raise ValueError(f"Unknown status filter: {status}")
        self.status_filter = status
        self.pipeline.set_filter(
            'status',
            None if status == "ALL" else
            (lambda c, wanted=status: status_matches(challenge_status(c, self.clock()), wanted))
        )

    def set_group_filter(self, group_filter: str):
        if group_filter not in GROUP_FILTERS:
            raise ValueError(f"Unknown group filter: {group_filter}")
        self.group_filter = group_filter
        predicate = None
        if group_filter == "GROUP_ONLY":
            predicate = lambda c: c.group_only
        elif group_filter == "SOLO_ONLY":
            predicate = lambda c: not c.group_only
        self.pipeline.set_filter('group', predicate)

    def set_search(self, term: str):
        self.pipeline.set_search_term(term)

    def clear_filters(self):
        self.category = None
        self.difficulty = None
        self.status_filter = "ALL"
        self.group_filter = "ALL"
        self.pipeline.clear_filters()

    def set_page(self, page: int) -> bool:
        return self.pipeline.set_page(page)

    def set_page_size(self, page_size: int):
        """Pick one of the offered page sizes; paging restarts at 1."""
        if page_size not in PaginationConstants.CHALLENGE_PAGE_SIZE_OPTIONS:
            raise ValueError(f"Unsupported page size: {page_size}")
        self.pipeline.set_page_size(page_size)

    def cycle_page_size(self) -> int:
        options = PaginationConstants.CHALLENGE_PAGE_SIZE_OPTIONS
        current = self.pipeline.page_size
        larger = [size for size in options if size > current]
        self.set_page_size(larger[0] if larger else options[0])
        return self.pipeline.page_size

    # --- output ---

    def render(self) -> BrowserPage:
        """Paginate first, then bucket and group only the visible page."""
        if self.status_filter != "ALL":
            # Statuses move with the clock
            self.pipeline.invalidate()
        result = self.pipeline.render()
        annotated = annotate(result.page_items, self.clock(), lambda c: c.active_contest)
        return BrowserPage(result=result, sections=group_page(annotated))

    def close(self):
        self.pipeline.close()
        self.guard.unmount()
