from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..common.datetime_utils import now_local, parse_iso_date
from ..common.pagination import Page
from ..common.validators import optional_choice, require_choice, require_int, require_int_range, require_max_length
from ..core.constants import (
    ALLOWED_PROOF_MIME_TYPES,
    DEFAULT_URL_TTL_MINUTES,
    MAX_PROOF_DESCRIPTION_LENGTH,
    MAX_PROOFS_PER_REQUEST,
    MAX_QUOTA_YEAR,
    MAX_REASON_LENGTH,
    MAX_UPLOAD_BYTES,
    MAX_URL_TTL_MINUTES,
    MIN_QUOTA_YEAR,
    UPCOMING_LEAVES_LIMIT,
)
from ..core.enums import LeaveStatus, LeaveType
from ..core.exceptions import (
    AlreadyRejected,
    AlreadyVerified,
    AuthorizationError,
    CannotCancelStarted,
    ImmutableStatus,
    InsufficientQuota,
    NotFoundError,
    OverlappingRequest,
    ProofLimitExceeded,
    ValidationError,
)
from ..core.unit_of_work import UnitOfWork
from ..storage.base import ObjectStorage
from ..storage.uploads import discard, stage_uploads, validate_upload
from ..users.model import Actor
from ..users.repository import UserRepository
from .filters import LeaveRequestQuery
from .ledger import LeaveQuotaLedger
from .model import (
    LeaveRequest,
    LeaveRequestProof,
    ProofUpload,
    ProofUrl,
    QuotaSummary,
    StatusChange,
)
from .policy import initial_status
from .repository import LeaveProofRepository, LeaveRequestRepository

logger = logging.getLogger(__name__)


def _date_value(value, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return parse_iso_date(str(value or "").strip())
    except ValueError:
        raise ValidationError(f"The {field_name.replace('_', ' ')} is not a valid date", field=field_name)


class LeaveRequestService:
    """Leave request lifecycle and its effect on the quota ledger."""

    def __init__(
        self,
        requests: LeaveRequestRepository,
        proofs: LeaveProofRepository,
        ledger: LeaveQuotaLedger,
        users: UserRepository,
        storage: ObjectStorage,
        uow: UnitOfWork,
    ):
        self._requests = requests
        self._proofs = proofs
        self._ledger = ledger
        self._users = users
        self._storage = storage
        self._uow = uow

    # -- helpers ---------------------------------------------------------

    def _get(self, request_id: int, *, for_update: bool = False) -> LeaveRequest:
        request = self._requests.get_by_id(request_id, for_update=for_update)
        if not request:
            raise NotFoundError("Leave request not found")
        return request

    def _get_proof(self, proof_id: int) -> LeaveRequestProof:
        proof = self._proofs.get_by_id(proof_id)
        if not proof:
            raise NotFoundError("Proof file not found")
        return proof

    def _with_proofs(self, requests: Sequence[LeaveRequest]) -> List[LeaveRequest]:
        by_request: Dict[int, List[LeaveRequestProof]] = {}
        for proof in self._proofs.list_for_requests(r.request_id for r in requests):
            by_request.setdefault(proof.leave_request_id, []).append(proof)
        return [replace(r, proofs=tuple(by_request.get(r.request_id, ()))) for r in requests]

    @staticmethod
    def _validate_proofs(proofs: Sequence[ProofUpload]) -> None:
        if len(proofs) > MAX_PROOFS_PER_REQUEST:
            raise ValidationError(
                f"The proofs may not have more than {MAX_PROOFS_PER_REQUEST} items", field="proofs"
            )
        for i, upload in enumerate(proofs):
            validate_upload(
                upload.file,
                allowed_mime_types=ALLOWED_PROOF_MIME_TYPES,
                max_bytes=MAX_UPLOAD_BYTES,
                field=f"proofs.{i}",
            )
            require_max_length(upload.description, f"proof_descriptions.{i}", MAX_PROOF_DESCRIPTION_LENGTH)

    def _insert_proofs(
        self, request: LeaveRequest, uploads: Sequence[ProofUpload], paths: Sequence[str], now: datetime
    ) -> List[LeaveRequestProof]:
        return [
            self._proofs.create(
                leave_request_id=request.request_id,
                filename=upload.file.filename,
                path=path,
                disk=self._storage.disk,
                mime_type=upload.file.mime_type,
                size=upload.file.size,
                description=upload.description,
                created_at=now,
            )
            for upload, path in zip(uploads, paths)
        ]

    # -- lifecycle -------------------------------------------------------

    def create(
        self,
        actor: Actor,
        *,
        leave_type,
        start_date,
        end_date,
        reason: Optional[str] = None,
        proofs: Sequence[ProofUpload] = (),
        user_id=None,
        status=None,
        now: datetime | None = None,
    ) -> LeaveRequest:
        now = now or now_local()
        today = now.date()

        leave_type = require_choice(leave_type, LeaveType, "type")
        require_max_length(reason, "reason", MAX_REASON_LENGTH)
        start = _date_value(start_date, "start_date")
        end = _date_value(end_date, "end_date")
        if start < today:
            raise ValidationError("The start date must be a date after or equal to today", field="start_date")
        if end < start:
            raise ValidationError("The end date must be a date after or equal to start date", field="end_date")

        owner_id = actor.user_id
        if actor.is_admin and user_id not in (None, ""):
            owner_id = require_int(user_id, "user_id")
            if self._users.get_by_id(owner_id) is None:
                raise ValidationError("The selected user id is invalid", field="user_id")

        requested = optional_choice(status, LeaveStatus) if actor.is_admin else None
        new_status = initial_status(leave_type, actor.role, requested)

        proofs = list(proofs or ())
        self._validate_proofs(proofs)
        duration = (end - start).days + 1

        stored = stage_uploads(self._storage, [p.file for p in proofs], prefix=f"leave-requests/{owner_id}")
        try:
            with self._uow.transaction():
                # Serialises concurrent requests of the same owner across the overlap check.
                if not self._users.lock(owner_id):
                    raise NotFoundError("User not found")
                overlapping = self._requests.find_overlapping(owner_id, start, end)
                if overlapping:
                    raise OverlappingRequest(request_ids=[r.request_id for r in overlapping])

                quota = self._ledger.get_or_create(owner_id, start.year)
                if quota.remaining_quota < duration:
                    raise InsufficientQuota(requested_days=duration, remaining_quota=quota.remaining_quota)

                request = self._requests.create(
                    user_id=owner_id,
                    leave_type=leave_type,
                    reason=reason,
                    start_date=start,
                    end_date=end,
                    status=new_status,
                    created_at=now,
                )
                saved = self._insert_proofs(request, proofs, stored, now)
                if request.status == LeaveStatus.APPROVED:
                    self._ledger.apply_approval(request)
        except Exception as exc:
            logger.error("Error creating leave request for user %s: %s", owner_id, exc)
            discard(self._storage, stored)
            raise

        logger.info(
            "Leave request %s created: user %s %s %s..%s (%s days) status=%s",
            request.request_id, owner_id, leave_type.value, start, end, duration, new_status.value,
        )
        return replace(request, proofs=tuple(saved))

    def update_status(self, actor: Actor, request_id: int, new_status) -> StatusChange:
        if not actor.is_admin:
            raise AuthorizationError()
        new_status = require_choice(new_status, LeaveStatus, "status")

        with self._uow.transaction():
            request = self._get(request_id, for_update=True)
            old_status = request.status
            if old_status == new_status:
                return StatusChange(request=request, changed=False)
            if (
                request.leave_type == LeaveType.SAKIT
                and old_status == LeaveStatus.APPROVED
                and new_status != LeaveStatus.APPROVED
            ):
                raise ImmutableStatus()

            if new_status == LeaveStatus.APPROVED:
                self._ledger.apply_approval(request)
            elif old_status == LeaveStatus.APPROVED:
                self._ledger.apply_revocation(request)
            self._requests.update_status(request.request_id, new_status)

        logger.info("Leave request %s status %s -> %s", request_id, old_status.value, new_status.value)
        return StatusChange(request=replace(request, status=new_status), changed=True)

    def cancel(self, actor: Actor, request_id: int, *, now: datetime | None = None) -> LeaveRequest:
        now = now or now_local()
        with self._uow.transaction():
            request = self._get(request_id, for_update=True)
            if not actor.can_act_for(request.user_id):
                raise AuthorizationError("You do not have permission to cancel this leave request")
            if request.status == LeaveStatus.REJECTED:
                raise AlreadyRejected()
            if request.status == LeaveStatus.APPROVED and request.start_date <= now.date():
                raise CannotCancelStarted()

            if request.status == LeaveStatus.APPROVED:
                self._ledger.apply_revocation(request)
            self._requests.update_status(request.request_id, LeaveStatus.REJECTED)

        logger.info("Leave request %s cancelled by user %s", request_id, actor.user_id)
        return replace(request, status=LeaveStatus.REJECTED)

    def destroy(self, actor: Actor, request_id: int) -> None:
        if not actor.is_admin:
            raise AuthorizationError()
        with self._uow.transaction():
            request = self._get(request_id, for_update=True)
            if request.status == LeaveStatus.APPROVED:
                self._ledger.apply_revocation(request)
            proofs = self._proofs.list_for_requests([request.request_id])
            self._proofs.delete_for_request(request.request_id)
            self._requests.delete(request.request_id)

        discard(self._storage, [p.path for p in proofs])
        logger.info("Leave request %s deleted with %s proofs", request_id, len(proofs))

    # -- queries ---------------------------------------------------------

    def list(self, actor: Actor, params: Mapping[str, Any], *, now: datetime | None = None) -> Page[LeaveRequest]:
        query = LeaveRequestQuery.from_params(actor, params, today=(now or now_local()).date())
        page = self._requests.search(query)
        return Page(items=self._with_proofs(page.items), total=page.total, page=page.page, per_page=page.per_page)

    def show(self, actor: Actor, request_id: int) -> LeaveRequest:
        request = self._get(request_id)
        if not actor.can_act_for(request.user_id):
            raise AuthorizationError("You do not have permission to view this leave request")
        return self._with_proofs([request])[0]

    # -- proofs ----------------------------------------------------------

    def add_proofs(
        self, actor: Actor, request_id: int, proofs: Sequence[ProofUpload], *, now: datetime | None = None
    ) -> List[LeaveRequestProof]:
        now = now or now_local()
        request = self._get(request_id)
        if not actor.can_act_for(request.user_id):
            raise AuthorizationError("You do not have permission to add proofs to this leave request")
        proofs = list(proofs or ())
        if not proofs:
            raise ValidationError("The proofs field is required", field="proofs")
        self._validate_proofs(proofs)
        if self._proofs.count_for_request(request.request_id) + len(proofs) > MAX_PROOFS_PER_REQUEST:
            raise ProofLimitExceeded()

        stored = stage_uploads(
            self._storage, [p.file for p in proofs], prefix=f"leave-requests/{request.user_id}"
        )
        try:
            with self._uow.transaction():
                # Re-count under the request lock so concurrent uploads cannot pass the limit.
                self._get(request.request_id, for_update=True)
                if self._proofs.count_for_request(request.request_id) + len(proofs) > MAX_PROOFS_PER_REQUEST:
                    raise ProofLimitExceeded()
                saved = self._insert_proofs(request, proofs, stored, now)
        except Exception as exc:
            logger.error("Error adding proofs to leave request %s: %s", request_id, exc)
            discard(self._storage, stored)
            raise

        logger.info("Added %s proofs to leave request %s", len(saved), request_id)
        return saved

    def delete_proof(self, actor: Actor, proof_id: int) -> None:
        proof = self._get_proof(proof_id)
        request = self._get(proof.leave_request_id)
        if not actor.can_act_for(request.user_id):
            raise AuthorizationError("You do not have permission to delete this proof file")
        with self._uow.transaction():
            self._proofs.delete(proof.proof_id)
        discard(self._storage, [proof.path])
        logger.info("Proof %s deleted from leave request %s", proof_id, request.request_id)

    def proof_url(
        self, actor: Actor, proof_id: int, *, expires_in=DEFAULT_URL_TTL_MINUTES, now: datetime | None = None
    ) -> ProofUrl:
        proof = self._get_proof(proof_id)
        request = self._get(proof.leave_request_id)
        if not actor.can_act_for(request.user_id):
            raise AuthorizationError("You do not have permission to access this proof file")
        if expires_in in (None, ""):
            expires_in = DEFAULT_URL_TTL_MINUTES
        minutes = require_int_range(expires_in, "expires in", minimum=1, maximum=MAX_URL_TTL_MINUTES)
        ttl = timedelta(minutes=minutes)
        url = self._storage.temporary_url(proof.path, ttl)
        return ProofUrl(url=url, expires_in_minutes=minutes, expires_at=(now or now_local()) + ttl)

    def verify_proof(self, actor: Actor, proof_id: int, *, now: datetime | None = None) -> LeaveRequestProof:
        if not actor.is_admin:
            raise AuthorizationError()
        now = now or now_local()
        proof = self._get_proof(proof_id)
        if proof.is_verified:
            raise AlreadyVerified()
        with self._uow.transaction():
            if not self._proofs.mark_verified(proof.proof_id, verified_by=actor.user_id, verified_at=now):
                raise AlreadyVerified()
        logger.info("Proof %s verified by %s", proof_id, actor.user_id)
        return replace(proof, is_verified=True, verified_at=now, verified_by=actor.user_id)

    # -- summary ---------------------------------------------------------

    def quota_summary(self, actor: Actor, *, user_id=None, year=None, now: datetime | None = None) -> QuotaSummary:
        today = (now or now_local()).date()
        target_id = actor.user_id
        if actor.is_admin and user_id not in (None, ""):
            target_id = require_int(user_id, "user_id")
        user = self._users.get_by_id(target_id)
        if user is None:
            raise NotFoundError("User not found")

        year = today.year if year in (None, "") else require_int_range(
            year, "year", minimum=MIN_QUOTA_YEAR, maximum=MAX_QUOTA_YEAR
        )
        with self._uow.transaction():
            quota = self._ledger.get_or_create(target_id, year)

        by_status = {s.value: 0 for s in LeaveStatus}
        by_type = {t.value: 0 for t in LeaveType}
        leave_days = {**{t.value: 0 for t in LeaveType}, "total": 0}
        for request in self._requests.list_for_year(target_id, year):
            by_status[request.status.value] += 1
            if request.status == LeaveStatus.APPROVED:
                by_type[request.leave_type.value] += 1
                leave_days[request.leave_type.value] += request.duration
                leave_days["total"] += request.duration

        upcoming = self._requests.list_upcoming_approved(target_id, today, UPCOMING_LEAVES_LIMIT)
        return QuotaSummary(
            user=user,
            year=year,
            quota=quota,
            by_status=by_status,
            by_type=by_type,
            leave_days=leave_days,
            upcoming_leaves=self._with_proofs(upcoming),
        )
