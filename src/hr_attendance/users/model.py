from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Read-only view of a user. Accounts are managed by the identity layer."""

    user_id: int
    name: str
    email: str
    role: Role
    department_id: Optional[int] = None
    position: Optional[str] = None


@dataclass(frozen=True)
class Actor:
    """The authenticated caller, as reported by the identity layer."""

    user_id: int
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def can_act_for(self, owner_id: int) -> bool:
        return self.is_admin or int(owner_id) == int(self.user_id)
