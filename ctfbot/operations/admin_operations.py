"""
Admin list panels: groups, contests and competition challenges.

Each manager owns one list, one guard, one flash area and one optimistic
mutator, so at most one destructive edit per list is in flight.
"""

import dataclasses
import logging
from typing import Any, Awaitable, Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from ctfbot.config import Config
from ctfbot.data_models.contest import Challenge, Contest
from ctfbot.data_models.group import AdminGroup
from ctfbot.operations.challenge_operations import STATUS_FILTERS, challenge_status, status_matches
from ctfbot.services.admin import AdminService
from ctfbot.services.challenges import ChallengeService
from ctfbot.services.list_query import ListQueryPipeline, QueryResult, SearchField
from ctfbot.services.optimistic import Confirmer, FlashMessage, MutationOutcome, OptimisticMutator
from ctfbot.services.stale_guard import StaleGuard
from ctfbot.utils.contest_status import ContestStatus, resolve_status
from ctfbot.utils.exceptions import ApiError, AuthError, ValidationError
from ctfbot.utils.time_format import now_ms

logger = logging.getLogger(__name__)

T = TypeVar('T')


class AdminListManager(Generic[T]):
    """Shared load/search/paginate/mutate plumbing for admin lists."""

    resource = "items"
    load_error_message = "Failed to load data. Please try again."

    def __init__(
        self,
        guard: StaleGuard,
        confirmer: Optional[Confirmer],
        search_fields: Sequence[SearchField],
        page_size: int = None,
        on_change: Optional[Callable[[], Any]] = None
    ):
        self.guard = guard
        self.on_change = on_change
        self.items: List[T] = []
        self.loading = False
        self.error: Optional[str] = None
        self.auth_required = False
        self.pipeline: ListQueryPipeline[T] = ListQueryPipeline(
            search_fields=search_fields,
            page_size=page_size or Config.ADMIN_PAGE_SIZE,
            guard=guard,
            on_change=on_change,
        )
        self.flash = FlashMessage(guard, on_change=on_change)
        self.mutator: OptimisticMutator[List[T]] = OptimisticMutator(
            get_state=lambda: self.items,
            set_state=self._set_items,
            guard=guard,
            flash=self.flash,
            confirmer=confirmer,
        )

    def _notify(self):
        if self.on_change is not None:
            self.on_change()

    def _set_items(self, items: Sequence[T]):
        self.items = list(items)
        self.pipeline.set_items(self.items)
        self._notify()

    async def _fetch(self) -> Any:
        raise NotImplementedError

    def _unpack(self, data: Any) -> List[T]:
        """Turn a load result into the list; runs only for the current request."""
        return data

    async def load(self) -> bool:
        def fail(error: Exception):
            if not isinstance(error, ApiError):
                raise error
            logger.warning(f"Failed to load {self.resource}: {error}")
            self.loading = False
            self.auth_required = isinstance(error, AuthError)
            self.error = self.load_error_message
            self._notify()

        def apply(data: Any):
            self.loading = False
            self.auth_required = False
            self._set_items(self._unpack(data))

        self.loading = True
        self.error = None
        return await self.guard.run(self.resource, self._fetch, apply, fail)

    def find(self, item_id: int) -> Optional[T]:
        for item in self.items:
            if getattr(item, 'id', None) == item_id:
                return item
        return None

    def require(self, item_id: int, noun: str) -> Callable[[], None]:
        """Validator rejecting ids that are no longer in the list."""
        def validate():
            if self.find(item_id) is None:
                raise ValidationError(noun, f"That {noun} no longer exists. Refresh and try again.")
        return validate

    def set_search(self, term: str):
        self.pipeline.set_search_term(term)

    def render(self) -> QueryResult[T]:
        return self.pipeline.render()

    @property
    def busy(self) -> bool:
        return self.mutator.busy

    async def _delete(
        self,
        item_id: int,
        noun: str,
        remote: Callable[[], Awaitable[Any]],
        prompt: str,
        success_message: str,
        failure_message: str
    ) -> MutationOutcome:
        return await self.mutator.mutate(
            target_id=item_id,
            apply=lambda items: [item for item in items if getattr(item, 'id', None) != item_id],
            remote=remote,
            prompt=prompt,
            validate=self.require(item_id, noun),
            success_message=success_message,
            failure_message=failure_message,
        )

    def close(self):
        self.pipeline.close()
        self.guard.unmount()


def _member_usernames(group: AdminGroup) -> List[str]:
    return [member.username for member in group.members]


class AdminGroupManager(AdminListManager[AdminGroup]):
    """Group list with optimistic group deletion and member removal."""

    resource = "groups"
    load_error_message = "Failed to load groups. Please try again."

    def __init__(self, service: AdminService, guard: StaleGuard, confirmer: Optional[Confirmer] = None, **kwargs):
        super().__init__(guard, confirmer, search_fields=('name', 'id', _member_usernames), **kwargs)
        self.service = service
        self.only_non_empty = False

    async def _fetch(self) -> List[AdminGroup]:
        return await self.service.list_groups()

    def set_only_non_empty(self, enabled: bool):
        self.only_non_empty = enabled
        self.pipeline.set_filter('non_empty', (lambda g: g.members_count > 0) if enabled else None)

    async def delete_group(self, group_id: int) -> MutationOutcome:
        group = self.find(group_id)
        name = group.name if group else str(group_id)
        return await self._delete(
            group_id,
            "group",
            lambda: self.service.delete_group(group_id),
            prompt=f'Delete group "{name}" (ID: {group_id})?\nThis cannot be undone.',
            success_message=f'Group "{name}" has been deleted.',
            failure_message="Failed to delete group. Please try again.",
        )

    async def remove_member(self, group_id: int, user_id: int) -> MutationOutcome:
        group = self.find(group_id)
        member = next((m for m in group.members if m.user_id == user_id), None) if group else None
        username = member.username if member else str(user_id)
        group_name = group.name if group else str(group_id)

        def validate():
            if group is None or member is None or self.find(group_id) is None:
                raise ValidationError("member", "That member is no longer in this group. Refresh and try again.")

        def apply(groups: List[AdminGroup]) -> List[AdminGroup]:
            updated = []
            for g in groups:
                if g.id != group_id:
                    updated.append(g)
                    continue
                members = tuple(m for m in g.members if m.user_id != user_id)
                updated.append(dataclasses.replace(
                    g,
                    members=members,
                    members_count=max(0, g.members_count - 1),
                ))
            return updated

        def success(response: Any) -> str:
            detail = response.get('detail') if isinstance(response, dict) else None
            return detail or f"Removed {username} from {group_name}."

        return await self.mutator.mutate(
            target_id=(group_id, user_id),
            apply=apply,
            remote=lambda: self.service.remove_member(group_id, user_id),
            prompt=f'Remove "{username}" from "{group_name}"?',
            validate=validate,
            success_message=success,
            failure_message="Failed to remove member. Please try again.",
        )


def contest_status(contest: Contest, at_ms: float) -> ContestStatus:
    return resolve_status(at_ms, contest.start_time, contest.end_time).status


class AdminContestManager(AdminListManager[Contest]):
    """Contest list with a status filter and optimistic deletion."""

    resource = "contests"
    load_error_message = "Failed to load contests. Please try again."

    def __init__(
        self,
        service: AdminService,
        guard: StaleGuard,
        confirmer: Optional[Confirmer] = None,
        clock: Callable[[], float] = now_ms,
        **kwargs
    ):
        super().__init__(guard, confirmer, search_fields=('name', 'slug', 'description', 'contest_type'), **kwargs)
        self.service = service
        self.clock = clock
        self.status_filter = "ALL"

    async def _fetch(self) -> List[Contest]:
        return await self.service.list_contests()

    def set_status_filter(self, status: str):
        if status not in ("ALL", "ONGOING", "UPCOMING", "ENDED"):
            raise ValueError(f"Unknown status filter: {status}")
        self.status_filter = status
        self.pipeline.set_filter(
            'status',
            None if status == "ALL" else
            (lambda c, wanted=status: status_matches(contest_status(c, self.clock()), wanted))
        )

    def render(self) -> QueryResult[Contest]:
        if self.status_filter != "ALL":
            self.pipeline.invalidate()
        return super().render()

    async def delete_contest(self, contest_id: int) -> MutationOutcome:
        return await self._delete(
            contest_id,
            "contest",
            lambda: self.service.delete_contest(contest_id),
            prompt="Are you sure you want to delete this contest? This cannot be undone.",
            success_message="Contest deleted.",
            failure_message="Failed to delete contest.",
        )


class AdminChallengeManager(AdminListManager[Challenge]):
    """Competition challenge list with category/difficulty/status filters."""

    resource = "challenges"
    load_error_message = "Failed to load competition data. Please try again."

    def __init__(
        self,
        service: ChallengeService,
        guard: StaleGuard,
        confirmer: Optional[Confirmer] = None,
        clock: Callable[[], float] = now_ms,
        **kwargs
    ):
        super().__init__(guard, confirmer, search_fields=('title', 'description', 'category'), **kwargs)
        self.service = service
        self.clock = clock
        self.categories: List[str] = []
        self.difficulties: List[str] = []
        self.category: Optional[str] = None
        self.difficulty: Optional[str] = None
        self.status_filter = "ALL"

    async def _fetch(self) -> Tuple[List[str], List[str], List[Challenge]]:
        return await self.service.load_browser_data()

    def _unpack(self, data) -> List[Challenge]:
        categories, difficulties, challenges = data
        self.categories = list(categories)
        self.difficulties = list(difficulties)
        return challenges

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

    def clear_filters(self):
        self.category = None
        self.difficulty = None
        self.status_filter = "ALL"
        self.pipeline.clear_filters()

    def render(self) -> QueryResult[Challenge]:
        if self.status_filter != "ALL":
            self.pipeline.invalidate()
        return super().render()

    async def delete_challenge(self, challenge_id: int) -> MutationOutcome:
        return await self._delete(
            challenge_id,
            "challenge",
            lambda: self.service.delete_challenge(challenge_id),
            prompt="Are you sure you want to delete this competition challenge? This cannot be undone.",
            success_message="Challenge deleted.",
            failure_message="Failed to delete challenge.",
        )
