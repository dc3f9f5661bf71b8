"""
Contest and challenge data models.

Immutable views of the platform's contest and competition-challenge payloads.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value)
    return None


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


@dataclass(frozen=True)
class Contest:
    """A time-windowed contest. Owned by the API, never edited locally."""
    id: int
    name: str
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    contest_type: str = ""
    slug: str = ""
    description: str = ""
    is_active: bool = True
    publish_result: bool = False

    @property
    def display_name(self) -> str:
        return self.name or self.slug or f"Contest #{self.id}"

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional["Contest"]:
        """Build from a contest payload; None when the id is unusable."""
        if not isinstance(data, dict):
            return None
        contest_id = _as_int(data.get('id'))
        if contest_id is None:
            return None
        return cls(
            id=contest_id,
            name=_as_text(data.get('name')).strip(),
            start_time=data.get('start_time'),
            end_time=data.get('end_time'),
            contest_type=_as_text(data.get('contest_type')),
            slug=_as_text(data.get('slug')).strip(),
            description=_as_text(data.get('description')),
            is_active=bool(data.get('is_active', True)),
            publish_result=bool(data.get('publish_result', False)),
        )


@dataclass(frozen=True)
class Challenge:
    """A competition challenge, optionally attached to an active contest."""
    id: int
    title: str
    description: str = ""
    category: str = ""
    difficulty: str = ""
    group_only: bool = False
    can_participate: bool = True
    active_contest: Optional[Contest] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional["Challenge"]:
        if not isinstance(data, dict):
            return None
        challenge_id = _as_int(data.get('id'))
        if challenge_id is None:
            return None
        category = data.get('category') or {}
        difficulty = data.get('difficulty') or {}
        can_participate = data.get('can_participate')
        return cls(
            id=challenge_id,
            title=_as_text(data.get('title')),
            description=_as_text(data.get('description')),
            category=_as_text(category.get('name')) if isinstance(category, dict) else "",
            difficulty=_as_text(difficulty.get('level')) if isinstance(difficulty, dict) else "",
            group_only=bool(data.get('group_only', False)),
            can_participate=True if can_participate is None else bool(can_participate),
            active_contest=Contest.from_api(data.get('active_contest')),
        )
