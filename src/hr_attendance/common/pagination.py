from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, Optional, Sequence, TypeVar

from ..core.constants import DEFAULT_PER_PAGE, MAX_PER_PAGE, MIN_PER_PAGE

T = TypeVar("T")

SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class Page(Generic[T]):
    items: Sequence[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page


def clamp_per_page(value) -> int:
    """Page size bounded to [1, 100]; anything else falls back to 15."""
    try:
        per_page = int(value)
    except (TypeError, ValueError):
        return DEFAULT_PER_PAGE
    if per_page < MIN_PER_PAGE or per_page > MAX_PER_PAGE:
        return DEFAULT_PER_PAGE
    return per_page


def clamp_page(value) -> int:
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page >= 1 else 1


def pick_sort(field: Optional[str], direction: Optional[str], *, allowed: Sequence[str], default: str = "created_at"):
    """Restrict sort to an allow-list; invalid values fall back to newest first."""
    field = field if field in allowed else default
    direction = (direction or "").lower()
    direction = direction if direction in SORT_DIRECTIONS else "desc"
    return field, direction
