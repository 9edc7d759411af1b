# app/api/context.py
"""Caller identity as forwarded by the gateway that verified the credential."""
from dataclasses import dataclass, field
from typing import FrozenSet, Optional

from fastapi import Header

from ..config import ADMIN_GROUP_NAME
from ..errors import AuthenticationRequired


@dataclass(frozen=True)
class CallerContext:
    user_id: Optional[str] = None
    groups: FrozenSet[str] = field(default_factory=frozenset)

    @property
    def is_admin(self) -> bool:
        return ADMIN_GROUP_NAME in self.groups


def get_caller(
    x_caller_id: Optional[str] = Header(None),
    x_caller_groups: Optional[str] = Header(None),
) -> CallerContext:
    groups = frozenset(g.strip() for g in (x_caller_groups or "").split(",") if g.strip())
    user_id = (x_caller_id or "").strip() or None
    return CallerContext(user_id=user_id, groups=groups)


def require_caller(caller: CallerContext) -> str:
    if not caller.user_id:
        raise AuthenticationRequired()
    return caller.user_id
