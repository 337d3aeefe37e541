from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.pagination import clamp_page, clamp_per_page, pick_sort
from ..common.validators import optional_choice, require_int_range
from ..core.constants import DEFAULT_HISTORY_DAYS, DEFAULT_PER_PAGE
from ..core.enums import ClockMethod, ClockType
from ..core.exceptions import ValidationError

SORTABLE_FIELDS = ("created_at", "clock_type", "method", "location")


def _date_param(params: Mapping[str, Any], name: str) -> date:
    try:
        return parse_iso_date(str(params[name]))
    except ValueError:
        raise ValidationError(f"The {name} is not a valid date", field=name)


def _given(params: Mapping[str, Any], name: str) -> bool:
    return params.get(name) not in (None, "")


@dataclass(frozen=True)
class AttendanceQuery:
    """Resolved filters for an attendance listing.

    Window precedence: `days`, then `from_date`+`to_date`, then `date`, else the
    trailing 30 days. `end_date` of None means "up to now".
    """

    start_date: date
    end_date: Optional[date] = None
    clock_type: Optional[ClockType] = None
    method: Optional[ClockMethod] = None
    location: Optional[str] = None
    sort_by: str = "created_at"
    sort_direction: str = "desc"
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def from_params(cls, params: Mapping[str, Any], *, today: date) -> "AttendanceQuery":
        end_date: Optional[date] = None
        if _given(params, "days"):
            days = require_int_range(params["days"], "days", minimum=0, maximum=3660)
            start_date = today - timedelta(days=days)
        elif _given(params, "from_date") and _given(params, "to_date"):
            start_date = _date_param(params, "from_date")
            end_date = _date_param(params, "to_date")
            if end_date < start_date:
                raise ValidationError(
                    "The to date must be a date after or equal to from date", field="to_date"
                )
        elif _given(params, "date"):
            start_date = end_date = _date_param(params, "date")
        else:
            start_date = today - timedelta(days=DEFAULT_HISTORY_DAYS)

        sort_by, sort_direction = pick_sort(
            params.get("sort_by"), params.get("sort_direction"), allowed=SORTABLE_FIELDS
        )
        location = params.get("location")
        return cls(
            start_date=start_date,
            end_date=end_date,
            clock_type=optional_choice(params.get("clock_type"), ClockType),
            method=optional_choice(params.get("method"), ClockMethod),
            location=str(location) if location not in (None, "") else None,
            sort_by=sort_by,
            sort_direction=sort_direction,
            page=clamp_page(params.get("page")),
            per_page=clamp_per_page(params.get("per_page", DEFAULT_PER_PAGE)),
        )
