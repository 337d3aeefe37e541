from __future__ import annotations

from datetime import timedelta

import pytest

from fakes import ADMIN, ALICE, BOB, NOW, TODAY
from hr_attendance.core.enums import LeaveStatus, LeaveType, Role
from hr_attendance.core.exceptions import (
    AlreadyRejected,
    AuthorizationError,
    CannotCancelStarted,
    ImmutableStatus,
    InsufficientQuota,
    OverlappingRequest,
    ValidationError,
)
from hr_attendance.leave.policy import initial_status

TOMORROW = TODAY + timedelta(days=1)


def create(world, actor=ALICE, *, leave_type="cuti", start=TOMORROW, days=1, reason="family trip", **kwargs):
    return world.leave_request_service.create(
        actor,
        leave_type=leave_type,
        start_date=start.isoformat(),
        end_date=(start + timedelta(days=days - 1)).isoformat(),
        reason=reason,
        now=NOW,
        **kwargs,
    )


def quota(world, user_id=ALICE.user_id, year=TODAY.year):
    return world.leave_quotas.get(user_id, year)


def test_insufficient_quota_persists_nothing(world):
    world.leave_quotas.add(ALICE.user_id, TODAY.year, total=2)

    with pytest.raises(InsufficientQuota):
        create(world, days=3)

    assert world.leave_requests.rows == {}
    assert quota(world).used_quota == 0


def test_sick_leave_is_approved_and_charged_immediately(world):
    request = create(world, leave_type="sakit", days=2)

    assert request.status == LeaveStatus.APPROVED
    assert quota(world).used_quota == 2
    assert quota(world).remaining_quota == 10


def test_vacation_starts_pending_and_reserves_nothing(world):
    request = create(world, days=3)

    assert request.status == LeaveStatus.PENDING
    # the quota row is created lazily with the default total
    assert quota(world).total_quota == 12
    assert quota(world).used_quota == 0


def test_revoking_an_approved_request_restores_the_quota(world):
    world.leave_quotas.add(ALICE.user_id, TODAY.year, total=12)
    request = create(world, days=5)
    world.leave_request_service.update_status(ADMIN, request.request_id, "approved")
    assert quota(world).used_quota == 5

    change = world.leave_request_service.update_status(ADMIN, request.request_id, "rejected")

    assert change.changed
    assert quota(world).used_quota == 0
    assert quota(world).remaining_quota == quota(world).total_quota


def test_update_status_to_same_value_is_a_no_op(world):
    request = create(world, days=2)
    world.leave_request_service.update_status(ADMIN, request.request_id, "approved")

    change = world.leave_request_service.update_status(ADMIN, request.request_id, "approved")

    assert not change.changed
    assert quota(world).used_quota == 2


def test_approved_sick_leave_is_immutable(world):
    request = create(world, leave_type="sakit")
    with pytest.raises(ImmutableStatus):
        world.leave_request_service.update_status(ADMIN, request.request_id, "rejected")
    assert world.leave_requests.rows[request.request_id].status == LeaveStatus.APPROVED


def test_only_admins_change_status(world):
    request = create(world)
    with pytest.raises(AuthorizationError):
        world.leave_request_service.update_status(ALICE, request.request_id, "approved")


def test_overlapping_requests_are_rejected(world):
    create(world, days=3)
    with pytest.raises(OverlappingRequest):
        create(world, start=TOMORROW + timedelta(days=2))


def test_overlap_check_runs_under_the_owner_lock(world):
    create(world, days=3)
    world.users.locked.clear()

    with pytest.raises(OverlappingRequest):
        create(world, start=TOMORROW + timedelta(days=1))

    assert world.users.locked == [ALICE.user_id]


def test_admin_filing_locks_the_employee_not_the_admin(world):
    create(world, ADMIN, user_id=BOB.user_id)
    assert world.users.locked == [BOB.user_id]


def test_rejected_requests_do_not_block_new_ones(world):
    first = create(world, days=3)
    world.leave_request_service.cancel(ALICE, first.request_id, now=NOW)

    second = create(world, days=3)

    assert second.request_id != first.request_id


def test_reason_is_optional(world):
    request = create(world, leave_type="sakit", reason=None)

    assert request.reason is None
    assert request.status == LeaveStatus.APPROVED
    assert world.leave_requests.rows[request.request_id].reason is None
    assert quota(world).used_quota == 1


def test_start_date_in_the_past_is_rejected(world):
    with pytest.raises(ValidationError):
        create(world, start=TODAY - timedelta(days=1))


def test_izin_is_not_a_leave_type(world):
    with pytest.raises(ValidationError):
        create(world, leave_type="izin")


def test_admin_can_file_for_an_employee_with_explicit_status(world):
    request = create(world, ADMIN, user_id=BOB.user_id, status="approved", days=4)

    assert request.user_id == BOB.user_id
    assert request.status == LeaveStatus.APPROVED
    assert quota(world, BOB.user_id).used_quota == 4


def test_admin_with_non_numeric_user_id_gets_a_validation_error(world):
    with pytest.raises(ValidationError):
        create(world, ADMIN, user_id="bob")
    assert world.leave_requests.rows == {}


def test_employee_cannot_pick_status(world):
    request = create(world, status="approved")
    assert request.status == LeaveStatus.PENDING


def test_cancel_pending_request(world):
    request = create(world)
    cancelled = world.leave_request_service.cancel(ALICE, request.request_id, now=NOW)
    assert cancelled.status == LeaveStatus.REJECTED


def test_cancel_twice_is_rejected(world):
    request = create(world)
    world.leave_request_service.cancel(ALICE, request.request_id, now=NOW)
    with pytest.raises(AlreadyRejected):
        world.leave_request_service.cancel(ALICE, request.request_id, now=NOW)


def test_cancel_future_approved_request_refunds_quota(world):
    request = create(world, leave_type="sakit", days=2)
    world.leave_request_service.cancel(ALICE, request.request_id, now=NOW)
    assert quota(world).used_quota == 0


def test_cannot_cancel_approved_leave_that_has_started(world):
    request = create(world, leave_type="sakit", days=3)
    with pytest.raises(CannotCancelStarted):
        world.leave_request_service.cancel(ALICE, request.request_id, now=NOW + timedelta(days=1))


def test_other_employee_cannot_cancel(world):
    request = create(world)
    with pytest.raises(AuthorizationError):
        world.leave_request_service.cancel(BOB, request.request_id, now=NOW)


def test_destroy_approved_request_refunds_and_removes_proofs(world):
    request = create(world, leave_type="sakit", days=2)

    world.leave_request_service.destroy(ADMIN, request.request_id)

    assert world.leave_requests.rows == {}
    assert quota(world).used_quota == 0


def test_list_is_scoped_to_the_caller(world):
    create(world)
    create(world, BOB)

    mine = world.leave_request_service.list(ALICE, {"user_id": str(BOB.user_id)}, now=NOW)
    everyone = world.leave_request_service.list(ADMIN, {}, now=NOW)

    assert {r.user_id for r in mine.items} == {ALICE.user_id}
    assert everyone.total == 2


def test_quota_summary_counts_by_status_and_type(world):
    create(world, leave_type="sakit", days=2)
    pending = create(world, start=TOMORROW + timedelta(days=7), days=3)
    world.leave_request_service.cancel(ALICE, pending.request_id, now=NOW)

    summary = world.leave_request_service.quota_summary(ALICE, now=NOW)

    assert summary.by_status == {"pending": 0, "approved": 1, "rejected": 1}
    assert summary.by_type == {"sakit": 1, "cuti": 0}
    assert summary.leave_days == {"sakit": 2, "cuti": 0, "total": 2}
    assert summary.quota.remaining_quota == 10
    assert [r.leave_type for r in summary.upcoming_leaves] == [LeaveType.SAKIT]


def test_quota_summary_rejects_year_out_of_range(world):
    with pytest.raises(ValidationError):
        world.leave_request_service.quota_summary(ALICE, year="1999", now=NOW)


@pytest.mark.parametrize(
    "leave_type, role, requested, expected",
    [
        (LeaveType.CUTI, Role.EMPLOYEE, None, LeaveStatus.PENDING),
        (LeaveType.SAKIT, Role.EMPLOYEE, None, LeaveStatus.APPROVED),
        (LeaveType.SAKIT, Role.ADMIN, LeaveStatus.PENDING, LeaveStatus.PENDING),
        (LeaveType.CUTI, Role.EMPLOYEE, LeaveStatus.APPROVED, LeaveStatus.PENDING),
    ],
)
def test_initial_status_precedence(leave_type, role, requested, expected):
    assert initial_status(leave_type, role, requested) == expected
