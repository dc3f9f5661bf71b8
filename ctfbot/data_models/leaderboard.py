"""
Leaderboard data models.

Provides immutable data transfer objects for ranked participants, page
bookkeeping and the mode-dependent request variants.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union


class LeaderboardMode(str, Enum):
    PRACTICE = "practice"
    COMPETITION = "competition"


class EnvelopeShape(str, Enum):
    """Wire shape a leaderboard payload arrived in."""
    FLAT = "flat"
    PAGINATED = "paginated"


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single leaderboard row."""
    rank: int
    user_id: Optional[int]
    username: str
    score: float
    solved: int
    last_submission_at: Optional[str]
    contest_id: Optional[int] = None
    contest_name: Optional[str] = None


@dataclass(frozen=True)
class PracticeQuery:
    """Practice leaderboard request; no contest involved."""
    page: int = 1
    page_size: int = 20
    search: str = ""

    @property
    def mode(self) -> LeaderboardMode:
        return LeaderboardMode.PRACTICE


@dataclass(frozen=True)
class CompetitionQuery:
    """Competition leaderboard request; cannot exist without a contest id."""
    contest_id: int
    contest_name: Optional[str] = None
    page: int = 1
    page_size: int = 20
    search: str = ""

    def __post_init__(self):
        if isinstance(self.contest_id, bool) or not isinstance(self.contest_id, int):
            raise TypeError("contest_id must be an integer")

    @property
    def mode(self) -> LeaderboardMode:
        return LeaderboardMode.COMPETITION


LeaderboardQuery = Union[PracticeQuery, CompetitionQuery]


@dataclass(frozen=True)
class LeaderboardPage:
    """Canonical leaderboard list, whatever envelope it arrived in."""
    entries: List[LeaderboardEntry]
    count: int
    next: Optional[str] = None
    previous: Optional[str] = None
    shape: EnvelopeShape = EnvelopeShape.FLAT


@dataclass(frozen=True)
class PageMeta:
    """Pagination bookkeeping, replaced wholesale after each successful fetch."""
    count: int = 0
    has_next: bool = False
    has_prev: bool = False
    page: int = 1
    page_size: int = 20

    @property
    def showing_from(self) -> int:
        return 0 if self.count == 0 else (self.page - 1) * self.page_size + 1

    @property
    def showing_to(self) -> int:
        return min(self.count, self.page * self.page_size)


@dataclass(frozen=True)
class ContestOption:
    """Entry of the competition-mode contest dropdown."""
    id: int
    name: str
