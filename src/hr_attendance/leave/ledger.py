from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional, Sequence

from ..common.datetime_utils import now_local
from ..common.validators import require_int, require_int_range
from ..core.constants import MAX_QUOTA_DAYS, MAX_QUOTA_YEAR, MIN_QUOTA_YEAR
from ..core.exceptions import (
    AuthorizationError,
    BelowUsed,
    NotFoundError,
    QuotaAlreadyExists,
    ValidationError,
)
from ..core.unit_of_work import UnitOfWork
from ..users.model import Actor
from ..users.repository import UserRepository
from .model import LeaveQuota, LeaveRequest, QuotaGeneration, QuotaSnapshot
from .policy import is_quota_bearing
from .repository import LeaveQuotaRepository

logger = logging.getLogger(__name__)


class LeaveQuotaLedger:
    """Per-user, per-year leave balance.

    `remaining_quota` is recomputed from total and used on every write. Every
    mutation runs in a unit of work with the quota row locked, joining the
    caller's transaction when one is open.
    """

    def __init__(
        self,
        quotas: LeaveQuotaRepository,
        users: UserRepository,
        uow: UnitOfWork,
        *,
        default_annual_quota: int = 12,
    ):
        self._quotas = quotas
        self._users = users
        self._uow = uow
        self.default_annual_quota = int(default_annual_quota)

    def get_or_create(self, user_id: int, year: int) -> LeaveQuota:
        """Lock the (user, year) row, creating it with the default total first if needed."""
        with self._uow.transaction():
            if self._quotas.create_if_missing(user_id=user_id, year=year, total_quota=self.default_annual_quota):
                logger.info("Created %s-day leave quota for user %s, %s", self.default_annual_quota, user_id, year)
            quota = self._quotas.lock(user_id, year)
        if quota is None:
            raise NotFoundError("Leave quota not found")
        return quota

    def apply_approval(self, request: LeaveRequest) -> Optional[LeaveQuota]:
        if not is_quota_bearing(request.leave_type):
            return None
        with self._uow.transaction():
            quota = self.get_or_create(request.user_id, request.quota_year)
            updated = quota.with_used(quota.used_quota + request.duration)
            self._quotas.save(updated)
        logger.info(
            "Leave request %s approved: user %s used %s -> %s of %s (%s)",
            request.request_id, request.user_id, quota.used_quota, updated.used_quota,
            updated.total_quota, updated.year,
        )
        return updated

    def apply_revocation(self, request: LeaveRequest) -> Optional[LeaveQuota]:
        if not is_quota_bearing(request.leave_type):
            return None
        with self._uow.transaction():
            quota = self._quotas.lock(request.user_id, request.quota_year)
            if quota is None:
                return None
            updated = quota.with_used(quota.used_quota - request.duration)
            self._quotas.save(updated)
        logger.info(
            "Leave request %s revoked: user %s used %s -> %s of %s (%s)",
            request.request_id, request.user_id, quota.used_quota, updated.used_quota,
            updated.total_quota, updated.year,
        )
        return updated

    def set_total(self, quota_id: int, new_total) -> LeaveQuota:
        new_total = require_int_range(new_total, "total quota", minimum=0, maximum=MAX_QUOTA_DAYS)
        with self._uow.transaction():
            quota = self._quotas.get_by_id(quota_id, for_update=True)
            if quota is None:
                raise NotFoundError("Leave quota not found")
            if new_total < quota.used_quota:
                raise BelowUsed(used_quota=quota.used_quota)
            updated = quota.with_total(new_total)
            self._quotas.save(updated)
        logger.info("Leave quota %s total %s -> %s", quota_id, quota.total_quota, new_total)
        return updated

    def create(self, *, user_id, year, total_quota) -> LeaveQuota:
        if user_id in (None, "") or self._users.get_by_id(require_int(user_id, "user_id")) is None:
            raise ValidationError("The selected user id is invalid", field="user_id")
        user_id = int(user_id)
        year = require_int_range(year, "year", minimum=MIN_QUOTA_YEAR, maximum=MAX_QUOTA_YEAR)
        total_quota = require_int_range(total_quota, "total quota", minimum=0, maximum=MAX_QUOTA_DAYS)

        with self._uow.transaction():
            existing = self._quotas.lock(user_id, year)
            if existing is not None:
                raise QuotaAlreadyExists(quota_id=existing.quota_id)
            self._quotas.create_if_missing(user_id=user_id, year=year, total_quota=total_quota)
            quota = self._quotas.lock(user_id, year)
        logger.info("Created %s-day leave quota for user %s, %s", total_quota, user_id, year)
        return quota

    def generate_yearly(self, *, year, default_quota) -> QuotaGeneration:
        """Create the year's quota for every non-admin user that has none."""
        year = require_int_range(year, "year", minimum=MIN_QUOTA_YEAR, maximum=MAX_QUOTA_YEAR)
        default_quota = require_int_range(default_quota, "default quota", minimum=0, maximum=MAX_QUOTA_DAYS)

        created = skipped = 0
        with self._uow.transaction():
            for user_id in self._users.list_non_admin_ids():
                if self._quotas.create_if_missing(user_id=user_id, year=year, total_quota=default_quota):
                    created += 1
                else:
                    skipped += 1
        logger.info("Generated leave quotas for %s: created=%s skipped=%s", year, created, skipped)
        return QuotaGeneration(year=year, default_quota=default_quota, created=created, skipped=skipped)

    def list(self, actor: Actor, *, user_id=None, year=None, now: datetime | None = None) -> Sequence[LeaveQuota]:
        if year in (None, ""):
            year = (now or now_local()).year
        year = require_int_range(year, "year", minimum=1, maximum=9999)
        if not actor.is_admin:
            user_id = actor.user_id
        elif user_id in (None, ""):
            user_id = None
        return self._quotas.list(year=year, user_id=require_int(user_id, "user_id") if user_id is not None else None)

    def show(self, actor: Actor, quota_id: int) -> LeaveQuota:
        quota = self._quotas.get_by_id(quota_id)
        if quota is None:
            raise NotFoundError("Leave quota not found")
        if not actor.can_act_for(quota.user_id):
            raise AuthorizationError("You do not have permission to view this leave quota")
        return quota

    def snapshot(self, user_id: int, year: int) -> QuotaSnapshot:
        """Current figures without creating anything."""
        quota = self._quotas.get(user_id, year)
        if quota is None:
            return QuotaSnapshot(
                user_id=user_id,
                year=year,
                total_quota=self.default_annual_quota,
                used_quota=0,
                remaining_quota=self.default_annual_quota,
                persisted=False,
            )
        return QuotaSnapshot(
            user_id=quota.user_id,
            year=quota.year,
            total_quota=quota.total_quota,
            used_quota=quota.used_quota,
            remaining_quota=quota.remaining_quota,
        )
