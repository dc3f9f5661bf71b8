"""
Leaderboard normalization and fetching.

Two wire shapes reach the client: a flat envelope ``{results, contest}`` and a
paginated one ``{count, next, previous, results}`` whose ``results`` is either
the flat envelope or the rows themselves. Both become one LeaderboardPage.
"""

from typing import Any, Dict, List, Optional, Tuple
import asyncio
import logging
import math
import time

from ctfbot.api.client import PlatformClient
from ctfbot.constants import CacheConstants
from ctfbot.data_models.contest import Contest
from ctfbot.data_models.leaderboard import (
    CompetitionQuery, ContestOption, EnvelopeShape, LeaderboardEntry,
    LeaderboardPage, LeaderboardQuery
)
from ctfbot.services.base import BaseService, unwrap_list
from ctfbot.utils.exceptions import UnrecognizedEnvelopeError

logger = logging.getLogger(__name__)

LEADERBOARD_RESOURCE = "submissions/leaderboard"
CONTESTS_RESOURCE = "challenges/contests"

_PAGINATION_KEYS = ('count', 'next', 'previous')


def _number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _int_or(value: Any, default: int = 0) -> int:
    number = _number(value)
    return int(number) if number is not None else default


def _first_present(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value.strip() else None


def classify_envelope(payload: Any) -> EnvelopeShape:
    """
    Tell which envelope ``payload`` is.

    Raises:
        UnrecognizedEnvelopeError: When it is neither shape
    """
    if isinstance(payload, list):
        return EnvelopeShape.FLAT
    if not isinstance(payload, dict):
        raise UnrecognizedEnvelopeError(LEADERBOARD_RESOURCE, payload)

    results = payload.get('results')
    if any(key in payload for key in _PAGINATION_KEYS):
        if isinstance(results, list):
            return EnvelopeShape.PAGINATED
        if isinstance(results, dict) and isinstance(results.get('results'), list):
            return EnvelopeShape.PAGINATED
        raise UnrecognizedEnvelopeError(LEADERBOARD_RESOURCE, payload)
    if isinstance(results, list):
        return EnvelopeShape.FLAT
    raise UnrecognizedEnvelopeError(LEADERBOARD_RESOURCE, payload)


def _contest_context(query: Optional[LeaderboardQuery], embedded: Any) -> Tuple[Optional[int], Optional[str]]:
    if isinstance(query, CompetitionQuery):
        return query.contest_id, query.contest_name
    if isinstance(embedded, dict):
        contest_id = _number(embedded.get('id'))
        return (
            int(contest_id) if contest_id is not None else None,
            _text(embedded.get('name')) or _text(embedded.get('slug')),
        )
    return None, None


def normalize_row(row: Dict[str, Any], contest_id: Optional[int], contest_name: Optional[str]) -> LeaderboardEntry:
    """Map one wire row, resolving each field through its fallback chain."""
    user = row.get('user') if isinstance(row.get('user'), dict) else {}
    solved = _int_or(row.get('solved'))
    score = _number(_first_present(row.get('total_score'), row.get('score')))
    user_id = _first_present(user.get('id'), row.get('user_id'))

    return LeaderboardEntry(
        rank=_int_or(row.get('rank')),
        user_id=user_id if isinstance(user_id, int) and not isinstance(user_id, bool) else None,
        username=_text(user.get('username')) or _text(row.get('username')) or "Unknown",
        score=score if score is not None else solved,
        solved=solved,
        last_submission_at=_first_present(row.get('last_solved_at'), row.get('last_submission_at')),
        contest_id=contest_id,
        contest_name=contest_name,
    )


def normalize_leaderboard(payload: Any, query: Optional[LeaderboardQuery] = None) -> LeaderboardPage:
    """
    Produce the canonical leaderboard list for ``payload``.

    In competition mode the contest comes from the request; otherwise from the
    contest object embedded in the envelope.

    Raises:
        UnrecognizedEnvelopeError: When the payload matches no known shape
    """
    shape = classify_envelope(payload)

    if isinstance(payload, list):
        flat: Dict[str, Any] = {'results': payload, 'contest': None}
    elif shape == EnvelopeShape.PAGINATED and isinstance(payload.get('results'), dict):
        flat = payload['results']
    else:
        flat = payload

    contest_id, contest_name = _contest_context(query, flat.get('contest'))
    entries = [
        normalize_row(row, contest_id, contest_name)
        for row in flat['results']
        if isinstance(row, dict)
    ]

    if shape == EnvelopeShape.PAGINATED:
        return LeaderboardPage(
            entries=entries,
            count=_int_or(payload.get('count'), len(entries)),
            next=_text(payload.get('next')),
            previous=_text(payload.get('previous')),
            shape=shape,
        )
    return LeaderboardPage(entries=entries, count=len(entries), shape=shape)


def normalize_contest_options(payload: List[Any]) -> List[ContestOption]:
    """Contest dropdown entries; rows without an integer id are dropped."""
    options = []
    for raw in payload:
        contest = Contest.from_api(raw)
        if contest is not None:
            options.append(ContestOption(id=contest.id, name=contest.display_name))
    return options


class LeaderboardService(BaseService):
    """Fetches leaderboards and the contest dropdown, caching the latter."""

    def __init__(self, client: PlatformClient, contest_ttl: float = CacheConstants.CONTEST_OPTIONS_TTL):
        super().__init__(client)
        self._contest_cache: Optional[List[ContestOption]] = None
        self._contest_cache_time = 0.0
        self._contest_ttl = contest_ttl
        self._cache_lock = asyncio.Lock()

    def build_params(self, query: LeaderboardQuery) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            'mode': query.mode.value,
            'page': query.page,
            'page_size': query.page_size,
        }
        if isinstance(query, CompetitionQuery):
            params['contest_id'] = query.contest_id
        if query.search.strip():
            params['search'] = query.search.strip()
        return params

    async def fetch(self, query: LeaderboardQuery) -> LeaderboardPage:
        """Fetch and normalize one leaderboard page."""
        params = self.build_params(query)

        async def _get():
            return await self.client.list(LEADERBOARD_RESOURCE, params=params)

        payload = await self.execute_with_retry(_get)
        page = normalize_leaderboard(payload, query)
        logger.debug(f"Leaderboard {params} -> {len(page.entries)} entries ({page.shape.value})")
        return page

    async def list_contests(self, refresh: bool = False) -> List[ContestOption]:
        """Contest dropdown options, served from cache unless stale or ``refresh``."""
        async with self._cache_lock:
            fresh = time.monotonic() - self._contest_cache_time < self._contest_ttl
            if self._contest_cache is not None and fresh and not refresh:
                return self._contest_cache

        async def _get():
            return await self.client.list(CONTESTS_RESOURCE)

        payload = await self.execute_with_retry(_get)
        options = normalize_contest_options(unwrap_list(payload, CONTESTS_RESOURCE))

        async with self._cache_lock:
            self._contest_cache = options
            self._contest_cache_time = time.monotonic()
        return options

    def invalidate_contests(self):
        self._contest_cache = None
