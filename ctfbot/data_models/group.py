"""
User group data models for the admin group panel.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from ctfbot.data_models.contest import _as_int, _as_text


@dataclass(frozen=True)
class GroupMember:
    user_id: int
    username: str
    joined_date: Optional[str] = None
    is_admin: bool = False


@dataclass(frozen=True)
class AdminGroup:
    id: int
    name: str
    members_count: int = 0
    members: Tuple[GroupMember, ...] = field(default_factory=tuple)

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> Optional["AdminGroup"]:
        if not isinstance(data, dict):
            return None
        group_id = _as_int(data.get('id'))
        if group_id is None:
            return None
        members = []
        for raw in data.get('members') or []:
            user_id = _as_int(raw.get('user_id')) if isinstance(raw, dict) else None
            if user_id is None:
                continue
            members.append(GroupMember(
                user_id=user_id,
                username=_as_text(raw.get('username')),
                joined_date=raw.get('joined_date'),
                is_admin=bool(raw.get('is_admin', False)),
            ))
        members_count = _as_int(data.get('members_count'))
        return cls(
            id=group_id,
            name=_as_text(data.get('name')),
            members_count=members_count if members_count is not None else len(members),
            members=tuple(members),
        )
