"""
Contest lifecycle status derived from the wall clock.

Nothing here keeps time on its own: callers pass ``now_ms`` and re-resolve on
refresh to observe a transition.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ctfbot.constants import ContestConstants, UIConstants
from ctfbot.utils.time_format import Timestamp, format_datetime, format_duration, parse_timestamp_ms


class ContestStatus(str, Enum):
    NONE = "NONE"
    SCHEDULED = "SCHEDULED"
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    ENDED = "ENDED"

    @property
    def is_upcoming(self) -> bool:
        """SCHEDULED is the upcoming variant whose window could not be compared."""
        return self in (ContestStatus.UPCOMING, ContestStatus.SCHEDULED)


@dataclass(frozen=True)
class ContestTiming:
    """Display facts for one contest window at one instant."""
    status: ContestStatus
    label: str
    badge_color: int
    timing_primary: Optional[str] = None
    timing_secondary: Optional[str] = None


def _has_value(value: Timestamp) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def resolve_status(now_ms: float, start: Timestamp = None, end: Timestamp = None) -> ContestTiming:
    """
    Resolve the lifecycle status of a contest window.

    Rules apply in order:

    1. no start and no end: NONE
    2. start or end unparseable/missing: SCHEDULED, showing only what parsed
    3. ``now < start``: UPCOMING
    4. ``start <= now < end``: ONGOING
    5. otherwise ENDED, which also covers ``start >= end`` once ``now >= start``
    """
    if not _has_value(start) and not _has_value(end):
        return ContestTiming(
            status=ContestStatus.NONE,
            label=ContestConstants.LABEL_NONE,
            badge_color=UIConstants.NONE_COLOR,
        )

    start_ms = parse_timestamp_ms(start)
    end_ms = parse_timestamp_ms(end)

    if start_ms is None or end_ms is None:
        return ContestTiming(
            status=ContestStatus.SCHEDULED,
            label=ContestConstants.LABEL_SCHEDULED,
            badge_color=UIConstants.UPCOMING_COLOR,
            timing_primary=f"Contest Opens: {format_datetime(start_ms)}" if start_ms is not None else None,
            timing_secondary=f"Contest Ends: {format_datetime(end_ms)}" if end_ms is not None else None,
        )

    if now_ms < start_ms:
        return ContestTiming(
            status=ContestStatus.UPCOMING,
            label=ContestConstants.LABEL_UPCOMING,
            badge_color=UIConstants.UPCOMING_COLOR,
            timing_primary=f"Contest Opens: {format_datetime(start_ms)} ({format_duration(start_ms - now_ms)} until start)",
            timing_secondary=f"Contest Ends: {format_datetime(end_ms)}",
        )

    if now_ms < end_ms:
        return ContestTiming(
            status=ContestStatus.ONGOING,
            label=ContestConstants.LABEL_ONGOING,
            badge_color=UIConstants.ONGOING_COLOR,
            timing_primary=f"{format_duration(end_ms - now_ms)} remaining",
            timing_secondary=f"Contest Ends: {format_datetime(end_ms)}",
        )

    return ContestTiming(
        status=ContestStatus.ENDED,
        label=ContestConstants.LABEL_ENDED,
        badge_color=UIConstants.ENDED_COLOR,
    )
