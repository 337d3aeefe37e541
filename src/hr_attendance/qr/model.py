from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import ClockType


@dataclass(frozen=True)
class QrToken:
    """One-shot token that performs a clock action when scanned."""

    token_id: int
    token: str
    clock_type: ClockType
    location: str
    is_used: bool
    expires_at: datetime
    created_by: int
    created_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at


@dataclass(frozen=True)
class IssuedQrCode:
    token: str
    qr_url: str
    expires_at: datetime
    expires_in_minutes: int
