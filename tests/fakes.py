"""In-memory stand-ins for the MySQL repositories, unit of work and object storage."""
from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Dict, Iterable, Iterator, List, Optional

from hr_attendance.attendance.filters import AttendanceQuery
from hr_attendance.attendance.model import AttendanceRecord, TaskLog
from hr_attendance.common.pagination import Page
from hr_attendance.core.enums import ClockMethod, ClockType, DayOfWeek, LeaveStatus, LeaveType, Role
from hr_attendance.core.exceptions import DuplicateClockIn, DuplicateClockOut, StorageError
from hr_attendance.holidays.model import Holiday
from hr_attendance.leave.filters import LeaveRequestQuery
from hr_attendance.leave.model import LeaveQuota, LeaveRequest, LeaveRequestProof
from hr_attendance.qr.model import QrToken
from hr_attendance.users.model import Actor, User
from hr_attendance.working_hours.model import WorkingHour

# Monday
NOW = datetime(2025, 3, 10, 8, 0)
TODAY = NOW.date()

ADMIN = Actor(user_id=1, role=Role.ADMIN)
ALICE = Actor(user_id=2, role=Role.EMPLOYEE)
BOB = Actor(user_id=3, role=Role.EMPLOYEE)


def _page(items: List, page: int, per_page: int) -> Page:
    start = (page - 1) * per_page
    return Page(items=items[start : start + per_page], total=len(items), page=page, per_page=per_page)


class NotNullViolation(Exception):
    """What MySQL reports as error 1048 for a NULL in a NOT NULL column."""


def _not_null(**columns) -> None:
    for name, value in columns.items():
        if value is None:
            raise NotNullViolation(f"Column '{name}' cannot be null")


class _Snapshotting:
    _shared: tuple = ()

    def snapshot(self):
        return {k: copy.deepcopy(v) for k, v in self.__dict__.items() if k not in self._shared}

    def restore(self, state) -> None:
        self.__dict__.update(state)


class InMemoryUsers(_Snapshotting):
    def __init__(self, users: Iterable[User] = ()):
        self.users: Dict[int, User] = {u.user_id: u for u in users}
        self.locked: List[int] = []

    @classmethod
    def default(cls) -> "InMemoryUsers":
        return cls(
            [
                User(user_id=1, name="Admin", email="admin@example.com", role=Role.ADMIN),
                User(user_id=2, name="Alice", email="alice@example.com", role=Role.EMPLOYEE, department_id=1),
                User(user_id=3, name="Bob", email="bob@example.com", role=Role.EMPLOYEE, department_id=1),
            ]
        )

    def get_by_id(self, user_id: int) -> Optional[User]:
        return self.users.get(int(user_id))

    def list_non_admin_ids(self):
        return sorted(uid for uid, u in self.users.items() if u.role != Role.ADMIN)

    def lock(self, user_id: int) -> bool:
        self.locked.append(int(user_id))
        return int(user_id) in self.users


class InMemoryAttendance(_Snapshotting):
    def __init__(self):
        self.rows: Dict[int, AttendanceRecord] = {}
        self._next_id = 1

    def create(self, *, user_id, clock_type, location, method, created_at) -> AttendanceRecord:
        if self.exists_for_day(user_id, clock_type, created_at.date()):
            raise DuplicateClockIn() if clock_type == ClockType.IN else DuplicateClockOut()
        record = AttendanceRecord(
            attendance_id=self._next_id,
            user_id=int(user_id),
            clock_type=clock_type,
            location=location,
            method=method,
            created_at=created_at,
        )
        self.rows[record.attendance_id] = record
        self._next_id += 1
        return record

    def add(self, user_id: int, clock_type: ClockType, at: datetime, *, location="Office", method=ClockMethod.MANUAL):
        return self.create(user_id=user_id, clock_type=clock_type, location=location, method=method, created_at=at)

    def get_by_id(self, attendance_id: int) -> Optional[AttendanceRecord]:
        return self.rows.get(int(attendance_id))

    def exists_for_day(self, user_id, clock_type, day) -> bool:
        return any(
            r.user_id == int(user_id) and r.clock_type == clock_type and r.day == day for r in self.rows.values()
        )

    def list_for_day(self, user_id, day):
        return sorted(
            (r for r in self.rows.values() if r.user_id == int(user_id) and r.day == day),
            key=lambda r: (r.created_at, r.attendance_id),
        )

    def _filtered(self, user_id, start_date, end_date, *, clock_type=None, method=None, location=None):
        out = []
        for r in self.rows.values():
            if r.user_id != int(user_id) or r.day < start_date:
                continue
            if end_date is not None and r.day > end_date:
                continue
            if clock_type is not None and r.clock_type != clock_type:
                continue
            if method is not None and r.method != method:
                continue
            if location and location.lower() not in r.location.lower():
                continue
            out.append(r)
        return out

    def list_between(self, user_id, start_date, end_date, *, clock_type=None, method=None, location=None):
        rows = self._filtered(
            user_id, start_date, end_date, clock_type=clock_type, method=method, location=location
        )
        return sorted(rows, key=lambda r: (r.created_at, r.attendance_id))

    def latest_for_user(self, user_id):
        rows = [r for r in self.rows.values() if r.user_id == int(user_id)]
        return max(rows, key=lambda r: (r.created_at, r.attendance_id)) if rows else None

    def search(self, user_id, query: AttendanceQuery) -> Page[AttendanceRecord]:
        rows = self._filtered(
            user_id,
            query.start_date,
            query.end_date,
            clock_type=query.clock_type,
            method=query.method,
            location=query.location,
        )

        def sort_key(r):
            value = getattr(r, query.sort_by)
            return getattr(value, "value", value)

        rows.sort(key=sort_key, reverse=query.sort_direction == "desc")
        return _page(rows, query.page, query.per_page)


class InMemoryTaskLogs(_Snapshotting):
    def __init__(self):
        self.rows: Dict[int, TaskLog] = {}
        self._next_id = 1

    def create(self, *, user_id, attendance_id, description, photo_path, created_at) -> TaskLog:
        log = TaskLog(
            task_log_id=self._next_id,
            user_id=int(user_id),
            attendance_id=int(attendance_id),
            description=description,
            photo_path=photo_path,
            created_at=created_at,
            updated_at=created_at,
        )
        self.rows[log.task_log_id] = log
        self._next_id += 1
        return log

    def get_by_id(self, task_log_id):
        return self.rows.get(int(task_log_id))

    def update(self, task_log_id, *, description, photo_path, updated_at) -> bool:
        log = self.rows.get(int(task_log_id))
        if log is None:
            return False
        self.rows[log.task_log_id] = replace(
            log, description=description, photo_path=photo_path, updated_at=updated_at
        )
        return True

    def delete(self, task_log_id) -> bool:
        return self.rows.pop(int(task_log_id), None) is not None

    def list_for_attendances(self, attendance_ids):
        ids = {int(i) for i in attendance_ids}
        return [log for log in self.rows.values() if log.attendance_id in ids]


class InMemoryHolidays(_Snapshotting):
    def __init__(self):
        self.rows: Dict[int, Holiday] = {}
        self._next_id = 1

    def create(self, *, name, holiday_date, description, is_recurring) -> Holiday:
        holiday = Holiday(
            holiday_id=self._next_id,
            name=name,
            date=holiday_date,
            description=description,
            is_recurring=bool(is_recurring),
        )
        self.rows[holiday.holiday_id] = holiday
        self._next_id += 1
        return holiday

    def get_by_id(self, holiday_id):
        return self.rows.get(int(holiday_id))

    def update(self, holiday: Holiday) -> bool:
        if holiday.holiday_id not in self.rows:
            return False
        self.rows[holiday.holiday_id] = holiday
        return True

    def delete(self, holiday_id) -> bool:
        return self.rows.pop(int(holiday_id), None) is not None

    def list_relevant(self, start_date, end_date):
        rows = [h for h in self.rows.values() if h.is_recurring or start_date <= h.date <= end_date]
        return sorted(rows, key=lambda h: (h.date, h.holiday_id))

    def search(self, *, start_date=None, end_date=None, year=None, is_recurring=None, page=1, per_page=15):
        rows = []
        for h in sorted(self.rows.values(), key=lambda h: (h.date, h.holiday_id)):
            if start_date is not None and end_date is not None and not start_date <= h.date <= end_date:
                continue
            if year is not None and h.date.year != year:
                continue
            if is_recurring is not None and h.is_recurring != is_recurring:
                continue
            rows.append(h)
        return _page(rows, page, per_page)


class InMemoryWorkingHours(_Snapshotting):
    _shared = ("_users",)

    def __init__(self, users: Optional[InMemoryUsers] = None):
        self.rows: Dict[int, WorkingHour] = {}
        self._users = users
        self._next_id = 1

    def _named(self, wh: WorkingHour) -> WorkingHour:
        user = self._users.get_by_id(wh.user_id) if self._users else None
        return replace(wh, user_name=user.name if user else None)

    def upsert(self, *, user_id, day_of_week, start_time, end_time) -> WorkingHour:
        for wh in self.rows.values():
            if wh.user_id == int(user_id) and wh.day_of_week == day_of_week:
                updated = replace(wh, start_time=start_time, end_time=end_time)
                self.rows[wh.working_hour_id] = updated
                return self._named(updated)
        wh = WorkingHour(
            working_hour_id=self._next_id,
            user_id=int(user_id),
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
        )
        self.rows[wh.working_hour_id] = wh
        self._next_id += 1
        return self._named(wh)

    def add(self, user_id: int, day: DayOfWeek, start: str = "09:00", end: str = "17:00") -> WorkingHour:
        return self.upsert(
            user_id=user_id, day_of_week=day, start_time=time.fromisoformat(start), end_time=time.fromisoformat(end)
        )

    def get_by_id(self, working_hour_id):
        wh = self.rows.get(int(working_hour_id))
        return self._named(wh) if wh else None

    def delete(self, working_hour_id) -> bool:
        return self.rows.pop(int(working_hour_id), None) is not None

    def delete_for_user(self, user_id) -> int:
        ids = [k for k, wh in self.rows.items() if wh.user_id == int(user_id)]
        for k in ids:
            del self.rows[k]
        return len(ids)

    def delete_for_day(self, day_of_week) -> int:
        ids = [k for k, wh in self.rows.items() if wh.day_of_week == day_of_week]
        for k in ids:
            del self.rows[k]
        return len(ids)

    def list_for_user(self, user_id):
        order = list(DayOfWeek)
        rows = [self._named(wh) for wh in self.rows.values() if wh.user_id == int(user_id)]
        return sorted(rows, key=lambda wh: order.index(wh.day_of_week))

    def list_for_day(self, day_of_week):
        rows = [self._named(wh) for wh in self.rows.values() if wh.day_of_week == day_of_week]
        return sorted(rows, key=lambda wh: wh.user_id)

    def search(self, *, user_id=None, day_of_week=None, min_start_time=None, max_start_time=None, page=1, per_page=15):
        rows = []
        for wh in sorted(self.rows.values(), key=lambda wh: (wh.user_id, list(DayOfWeek).index(wh.day_of_week))):
            if user_id is not None and wh.user_id != int(user_id):
                continue
            if day_of_week is not None and wh.day_of_week != day_of_week:
                continue
            if min_start_time is not None and wh.start_time < min_start_time:
                continue
            if max_start_time is not None and wh.start_time > max_start_time:
                continue
            rows.append(self._named(wh))
        return _page(rows, page, per_page)


class InMemoryLeaveRequests(_Snapshotting):
    def __init__(self):
        self.rows: Dict[int, LeaveRequest] = {}
        self._next_id = 1

    def create(self, *, user_id, leave_type, reason, start_date, end_date, status, created_at) -> LeaveRequest:
        _not_null(
            user_id=user_id, type=leave_type, start_date=start_date, end_date=end_date, status=status, created_at=created_at
        )
        request = LeaveRequest(
            request_id=self._next_id,
            user_id=int(user_id),
            leave_type=leave_type,
            start_date=start_date,
            end_date=end_date,
            status=status,
            reason=reason,
            created_at=created_at,
        )
        self.rows[request.request_id] = request
        self._next_id += 1
        return request

    def get_by_id(self, request_id, *, for_update=False):
        return self.rows.get(int(request_id))

    def find_overlapping(self, user_id, start_date, end_date):
        return [
            r
            for r in self.rows.values()
            if r.user_id == int(user_id) and r.status != LeaveStatus.REJECTED and r.overlaps(start_date, end_date)
        ]

    def update_status(self, request_id, status) -> bool:
        request = self.rows.get(int(request_id))
        if request is None:
            return False
        self.rows[request.request_id] = replace(request, status=status)
        return True

    def delete(self, request_id) -> bool:
        return self.rows.pop(int(request_id), None) is not None

    def search(self, query: LeaveRequestQuery) -> Page[LeaveRequest]:
        rows = []
        for r in self.rows.values():
            if query.user_id is not None and r.user_id != query.user_id:
                continue
            if query.status is not None and r.status != query.status:
                continue
            if query.leave_type is not None and r.leave_type != query.leave_type:
                continue
            if query.start_date is not None and query.end_date is not None:
                if not r.overlaps(query.start_date, query.end_date):
                    continue
            elif query.year is not None and query.year not in (r.start_date.year, r.end_date.year):
                continue
            rows.append(r)
        field = "leave_type" if query.sort_by == "type" else query.sort_by

        def sort_key(r):
            value = getattr(r, field)
            return getattr(value, "value", value)

        rows.sort(key=sort_key, reverse=query.sort_direction == "desc")
        return _page(rows, query.page, query.per_page)

    def list_for_year(self, user_id, year):
        rows = [
            r for r in self.rows.values() if r.user_id == int(user_id) and year in (r.start_date.year, r.end_date.year)
        ]
        return sorted(rows, key=lambda r: r.start_date)

    def list_upcoming_approved(self, user_id, from_date, limit):
        rows = [
            r
            for r in self.rows.values()
            if r.user_id == int(user_id) and r.status == LeaveStatus.APPROVED and r.start_date >= from_date
        ]
        return sorted(rows, key=lambda r: r.start_date)[:limit]

    def list_approved_between(self, user_id, start_date, end_date):
        rows = [
            r
            for r in self.rows.values()
            if r.user_id == int(user_id) and r.status == LeaveStatus.APPROVED and r.overlaps(start_date, end_date)
        ]
        return sorted(rows, key=lambda r: r.start_date)


class InMemoryLeaveProofs(_Snapshotting):
    def __init__(self):
        self.rows: Dict[int, LeaveRequestProof] = {}
        self._next_id = 1

    def create(self, *, leave_request_id, filename, path, disk, mime_type, size, description, created_at):
        proof = LeaveRequestProof(
            proof_id=self._next_id,
            leave_request_id=int(leave_request_id),
            filename=filename,
            path=path,
            disk=disk,
            mime_type=mime_type,
            size=int(size),
            description=description,
            created_at=created_at,
        )
        self.rows[proof.proof_id] = proof
        self._next_id += 1
        return proof

    def get_by_id(self, proof_id):
        return self.rows.get(int(proof_id))

    def list_for_requests(self, request_ids):
        ids = {int(i) for i in request_ids}
        return sorted((p for p in self.rows.values() if p.leave_request_id in ids), key=lambda p: p.proof_id)

    def count_for_request(self, request_id) -> int:
        return sum(1 for p in self.rows.values() if p.leave_request_id == int(request_id))

    def delete(self, proof_id) -> bool:
        return self.rows.pop(int(proof_id), None) is not None

    def delete_for_request(self, request_id) -> int:
        ids = [k for k, p in self.rows.items() if p.leave_request_id == int(request_id)]
        for k in ids:
            del self.rows[k]
        return len(ids)

    def mark_verified(self, proof_id, *, verified_by, verified_at) -> bool:
        proof = self.rows.get(int(proof_id))
        if proof is None or proof.is_verified:
            return False
        self.rows[proof.proof_id] = replace(
            proof, is_verified=True, verified_by=int(verified_by), verified_at=verified_at
        )
        return True


class InMemoryLeaveQuotas(_Snapshotting):
    def __init__(self):
        self.rows: Dict[int, LeaveQuota] = {}
        self._next_id = 1

    def get(self, user_id, year):
        for q in self.rows.values():
            if q.user_id == int(user_id) and q.year == int(year):
                return q
        return None

    def get_by_id(self, quota_id, *, for_update=False):
        return self.rows.get(int(quota_id))

    def lock(self, user_id, year):
        return self.get(user_id, year)

    def create_if_missing(self, *, user_id, year, total_quota) -> bool:
        if self.get(user_id, year) is not None:
            return False
        quota = LeaveQuota(
            quota_id=self._next_id,
            user_id=int(user_id),
            year=int(year),
            total_quota=int(total_quota),
            used_quota=0,
            remaining_quota=int(total_quota),
        )
        self.rows[quota.quota_id] = quota
        self._next_id += 1
        return True

    def add(self, user_id: int, year: int, total: int, used: int = 0) -> LeaveQuota:
        self.create_if_missing(user_id=user_id, year=year, total_quota=total)
        quota = self.get(user_id, year).with_used(used)
        self.save(quota)
        return quota

    def save(self, quota: LeaveQuota) -> bool:
        if quota.quota_id not in self.rows:
            return False
        self.rows[quota.quota_id] = quota
        return True

    def list(self, *, year, user_id=None):
        rows = [q for q in self.rows.values() if q.year == int(year)]
        if user_id is not None:
            rows = [q for q in rows if q.user_id == int(user_id)]
        return sorted(rows, key=lambda q: q.user_id)


class InMemoryQrTokens(_Snapshotting):
    def __init__(self):
        self.rows: Dict[str, QrToken] = {}
        self._next_id = 1

    def create(self, *, token, clock_type, location, expires_at, created_by, created_at) -> QrToken:
        qr = QrToken(
            token_id=self._next_id,
            token=token,
            clock_type=clock_type,
            location=location,
            is_used=False,
            expires_at=expires_at,
            created_by=int(created_by),
            created_at=created_at,
        )
        self.rows[token] = qr
        self._next_id += 1
        return qr

    def lock(self, token):
        return self.rows.get(token)

    def mark_used(self, token_id) -> bool:
        for key, qr in self.rows.items():
            if qr.token_id == int(token_id) and not qr.is_used:
                self.rows[key] = replace(qr, is_used=True)
                return True
        return False


class InMemoryObjectStorage(_Snapshotting):
    """Dict-backed storage. `fail_on_put` makes the n-th put (1-based) raise."""

    disk = "local"

    def __init__(self, *, fail_on_put: Optional[int] = None):
        self.objects: Dict[str, bytes] = {}
        self.fail_on_put = fail_on_put
        self.puts = 0

    def put(self, path, content, visibility="private") -> str:
        self.puts += 1
        if self.fail_on_put is not None and self.puts == self.fail_on_put:
            raise StorageError("disk full")
        self.objects[path] = bytes(content)
        return path

    def exists(self, path) -> bool:
        return path in self.objects

    def delete(self, path) -> bool:
        return self.objects.pop(path, None) is not None

    def temporary_url(self, path, ttl: timedelta) -> str:
        return f"memory://{path}?ttl={int(ttl.total_seconds())}"

    def size(self, path) -> int:
        return len(self.objects[path])

    def mime_type(self, path) -> str:
        return "application/octet-stream"


class FakeUnitOfWork:
    """Snapshots every registered repository on entry and restores them on error.

    Objects already written to storage are not part of the snapshot, matching a
    real database rollback that leaves files behind.
    """

    def __init__(self, *repos):
        self._repos = list(repos)
        self._depth = 0
        self.commits = 0
        self.rollbacks = 0

    def track(self, *repos) -> None:
        self._repos.extend(repos)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        if self._depth:
            self._depth += 1
            try:
                yield
            finally:
                self._depth -= 1
            return

        states = [r.snapshot() for r in self._repos]
        self._depth = 1
        try:
            yield
        except BaseException:
            for repo, state in zip(self._repos, states):
                repo.restore(state)
            self.rollbacks += 1
            raise
        else:
            self.commits += 1
        finally:
            self._depth = 0


def at(day: date, hh_mm: str) -> datetime:
    return datetime.combine(day, time.fromisoformat(hh_mm))
