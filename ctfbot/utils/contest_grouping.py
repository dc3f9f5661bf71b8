"""
Grouping of contest-annotated items for display.

The visible page is split into three fixed buckets (ongoing, upcoming, other)
and each bucket is grouped by parent contest independently.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, Generic, Iterable, List, Optional, Tuple, TypeVar

from ctfbot.constants import ContestConstants
from ctfbot.data_models.contest import Contest
from ctfbot.utils.contest_status import ContestStatus, ContestTiming, resolve_status

T = TypeVar('T')

BUCKET_ONGOING = "ongoing"
BUCKET_UPCOMING = "upcoming"
BUCKET_OTHER = "other"
BUCKET_ORDER = (BUCKET_ONGOING, BUCKET_UPCOMING, BUCKET_OTHER)

BUCKET_TITLES = {
    BUCKET_ONGOING: "Ongoing",
    BUCKET_UPCOMING: "Upcoming",
    BUCKET_OTHER: "Ended & Unscheduled",
}


@dataclass(frozen=True)
class AnnotatedItem(Generic[T]):
    """A base item plus the facts derived for the current render pass."""
    item: T
    timing: ContestTiming
    parent_key: str
    parent_label: str

    @property
    def status(self) -> ContestStatus:
        return self.timing.status


@dataclass
class Group(Generic[T]):
    parent_key: str
    parent_label: str
    rank: int = 0
    entries: List[AnnotatedItem[T]] = field(default_factory=list)


def annotate(
    items: Iterable[T],
    now_ms: float,
    contest_of: Callable[[T], Optional[Contest]]
) -> List[AnnotatedItem[T]]:
    """Resolve status and parent contest for each item at ``now_ms``."""
    annotated = []
    for item in items:
        contest = contest_of(item)
        if contest is None:
            timing = resolve_status(now_ms)
            key, label = ContestConstants.NO_CONTEST_KEY, ContestConstants.NO_CONTEST_LABEL
        else:
            timing = resolve_status(now_ms, contest.start_time, contest.end_time)
            key, label = str(contest.id), contest.display_name
        annotated.append(AnnotatedItem(item=item, timing=timing, parent_key=key, parent_label=label))
    return annotated


def bucket_of(status: ContestStatus) -> str:
    if status == ContestStatus.ONGOING:
        return BUCKET_ONGOING
    if status.is_upcoming:
        return BUCKET_UPCOMING
    return BUCKET_OTHER


def split_buckets(annotated: Iterable[AnnotatedItem[T]]) -> Dict[str, List[AnnotatedItem[T]]]:
    """Split into the three buckets; every bucket key is present, in display order."""
    buckets: Dict[str, List[AnnotatedItem[T]]] = {name: [] for name in BUCKET_ORDER}
    for entry in annotated:
        buckets[bucket_of(entry.status)].append(entry)
    return buckets


def group_by_contest(annotated: Iterable[AnnotatedItem[T]]) -> List[Group[T]]:
    """
    Group items by parent contest.

    Named groups sort by label, case-insensitively; groups labelled
    "No Contest" always come last. Ties keep first-appearance order, and
    entries keep their input order inside a group.
    """
    groups: Dict[str, Group[T]] = {}
    for entry in annotated:
        group = groups.get(entry.parent_key)
        if group is None:
            group = groups[entry.parent_key] = Group(entry.parent_key, entry.parent_label)
        group.entries.append(entry)

    ordered = sorted(
        groups.values(),
        key=lambda g: (g.parent_label == ContestConstants.NO_CONTEST_LABEL, g.parent_label.casefold())
    )
    for rank, group in enumerate(ordered):
        group.rank = rank
    return ordered


def group_page(annotated_page: Iterable[AnnotatedItem[T]]) -> List[Tuple[str, List[Group[T]]]]:
    """Bucket an already-paginated slice, then group each bucket on its own."""
    buckets = split_buckets(annotated_page)
    return [(name, group_by_contest(buckets[name])) for name in BUCKET_ORDER]
