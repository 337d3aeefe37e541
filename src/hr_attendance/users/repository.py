from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import User


class UserRepository(Protocol):
    """Lookup-only access to users; this service never writes them."""

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def list_non_admin_ids(self) -> Sequence[int]:
        raise NotImplementedError

    def lock(self, user_id: int) -> bool:
        """Take a row lock on the user for the rest of the current transaction."""

        raise NotImplementedError
