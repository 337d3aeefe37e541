from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Any, Mapping, Optional

from ..common.datetime_utils import parse_iso_date
from ..common.pagination import clamp_page, clamp_per_page, pick_sort
from ..common.validators import optional_choice, require_int
from ..core.constants import DEFAULT_PER_PAGE
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import ValidationError
from ..users.model import Actor

SORTABLE_FIELDS = ("created_at", "start_date", "end_date", "status", "type")


@dataclass(frozen=True)
class LeaveRequestQuery:
    """Listing filters. A date range wins over `year`; rows match when they overlap it."""

    user_id: Optional[int] = None
    status: Optional[LeaveStatus] = None
    leave_type: Optional[LeaveType] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    year: Optional[int] = None
    sort_by: str = "created_at"
    sort_direction: str = "desc"
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def from_params(cls, actor: Actor, params: Mapping[str, Any], *, today: date) -> "LeaveRequestQuery":
        if not actor.is_admin:
            user_id: Optional[int] = actor.user_id
        elif params.get("user_id") not in (None, ""):
            user_id = require_int(params["user_id"], "user_id")
        else:
            user_id = None

        start = end = None
        year: Optional[int] = None
        if params.get("start_date") and params.get("end_date"):
            try:
                start = parse_iso_date(str(params["start_date"]))
                end = parse_iso_date(str(params["end_date"]))
            except ValueError:
                raise ValidationError("The start date and end date must be valid dates")
        elif params.get("year"):
            try:
                year = int(params["year"])
            except (TypeError, ValueError):
                raise ValidationError("The year must be an integer", field="year")
        else:
            year = today.year

        sort_by, sort_direction = pick_sort(
            params.get("sort_by"), params.get("sort_direction"), allowed=SORTABLE_FIELDS
        )
        return cls(
            user_id=user_id,
            status=optional_choice(params.get("status"), LeaveStatus),
            leave_type=optional_choice(params.get("type"), LeaveType),
            start_date=start,
            end_date=end,
            year=year,
            sort_by=sort_by,
            sort_direction=sort_direction,
            page=clamp_page(params.get("page")),
            per_page=clamp_per_page(params.get("per_page", DEFAULT_PER_PAGE)),
        )
