from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from ..core.enums import ClockType
from .model import QrToken


class QrTokenRepository(Protocol):
    def create(
        self,
        *,
        token: str,
        clock_type: ClockType,
        location: str,
        expires_at: datetime,
        created_by: int,
        created_at: datetime,
    ) -> QrToken:
        raise NotImplementedError

    def lock(self, token: str) -> Optional[QrToken]:
        """Fetch the token with a row lock held until the transaction ends."""

        raise NotImplementedError

    def mark_used(self, token_id: int) -> bool:
        raise NotImplementedError
