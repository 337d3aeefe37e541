from __future__ import annotations

from typing import List

from flask import Flask, request

from ..common.web import admin_required, current_actor, form_list, login_required, ok, page_json, payload, uploads
from ..container import Container
from .model import LeaveQuota, LeaveRequest, LeaveRequestProof, ProofUpload


def proof_json(p: LeaveRequestProof) -> dict:
    return {
        "id": p.proof_id,
        "leave_request_id": p.leave_request_id,
        "filename": p.filename,
        "mime_type": p.mime_type,
        "size": p.size,
        "human_readable_size": p.human_readable_size,
        "description": p.description,
        "is_verified": p.is_verified,
        "verified_at": p.verified_at,
        "verified_by": p.verified_by,
        "created_at": p.created_at,
    }


def leave_request_json(r: LeaveRequest) -> dict:
    return {
        "id": r.request_id,
        "user_id": r.user_id,
        "type": r.leave_type,
        "reason": r.reason,
        "start_date": r.start_date,
        "end_date": r.end_date,
        "status": r.status,
        "duration": r.duration,
        "created_at": r.created_at,
        "proofs": [proof_json(p) for p in r.proofs],
    }


def quota_json(q: LeaveQuota) -> dict:
    return {
        "id": q.quota_id,
        "user_id": q.user_id,
        "year": q.year,
        "total_quota": q.total_quota,
        "used_quota": q.used_quota,
        "remaining_quota": q.remaining_quota,
    }


def _proof_uploads() -> List[ProofUpload]:
    descriptions = form_list("proof_descriptions")
    return [
        ProofUpload(file=f, description=(descriptions[i] or None) if i < len(descriptions) else None)
        for i, f in enumerate(uploads("proofs"))
    ]


def register(app: Flask, container: Container) -> None:
    service = container.leave_request_service
    ledger = container.leave_quota_ledger

    # -- leave requests --------------------------------------------------

    @app.route("/api/leave-requests", methods=["GET"], endpoint="leave_requests_index")
    @login_required
    def leave_requests_index():
        page = service.list(current_actor(), request.args)
        return ok("Leave requests retrieved successfully", page_json(page, leave_request_json))

    @app.route("/api/leave-requests", methods=["POST"], endpoint="leave_requests_store")
    @login_required
    def leave_requests_store():
        data = payload()
        created = service.create(
            current_actor(),
            leave_type=data.get("type"),
            reason=data.get("reason"),
            start_date=data.get("start_date"),
            end_date=data.get("end_date"),
            proofs=_proof_uploads(),
            user_id=data.get("user_id"),
            status=data.get("status"),
        )
        return ok("Leave request created successfully", leave_request_json(created), 201)

    @app.route("/api/leave-requests/<int:request_id>", methods=["GET"], endpoint="leave_requests_show")
    @login_required
    def leave_requests_show(request_id: int):
        return ok("Leave request retrieved successfully", leave_request_json(service.show(current_actor(), request_id)))

    @app.route("/api/leave-requests/<int:request_id>/status", methods=["PUT", "PATCH"], endpoint="leave_requests_status")
    @admin_required
    def leave_requests_status(request_id: int):
        change = service.update_status(current_actor(), request_id, payload().get("status"))
        message = "Leave request status updated successfully" if change.changed else "Leave request status unchanged"
        return ok(message, leave_request_json(change.request))

    @app.route("/api/leave-requests/<int:request_id>/cancel", methods=["POST"], endpoint="leave_requests_cancel")
    @login_required
    def leave_requests_cancel(request_id: int):
        cancelled = service.cancel(current_actor(), request_id)
        return ok("Leave request cancelled successfully", leave_request_json(cancelled))

    @app.route("/api/leave-requests/<int:request_id>", methods=["DELETE"], endpoint="leave_requests_destroy")
    @admin_required
    def leave_requests_destroy(request_id: int):
        service.destroy(current_actor(), request_id)
        return ok("Leave request deleted successfully")

    @app.route("/api/leave-requests/quota-summary", methods=["GET"], endpoint="leave_requests_quota_summary")
    @login_required
    def leave_requests_quota_summary():
        s = service.quota_summary(current_actor(), user_id=request.args.get("user_id"), year=request.args.get("year"))
        return ok(
            "Leave quota summary retrieved successfully",
            {
                "user": {
                    "id": s.user.user_id,
                    "name": s.user.name,
                    "email": s.user.email,
                    "role": s.user.role,
                    "position": s.user.position,
                },
                "year": s.year,
                "quota": {
                    "total": s.quota.total_quota,
                    "used": s.quota.used_quota,
                    "remaining": s.quota.remaining_quota,
                    "percentage_used": s.quota.percentage_used,
                },
                "leave_counts": {"by_status": s.by_status, "by_type": s.by_type},
                "leave_days": s.leave_days,
                "upcoming_leaves": [leave_request_json(r) for r in s.upcoming_leaves],
            },
        )

    # -- proofs ----------------------------------------------------------

    @app.route("/api/leave-requests/<int:request_id>/proofs", methods=["POST"], endpoint="leave_proofs_store")
    @login_required
    def leave_proofs_store(request_id: int):
        saved = service.add_proofs(current_actor(), request_id, _proof_uploads())
        return ok("Proof files uploaded successfully", [proof_json(p) for p in saved], 201)

    @app.route("/api/leave-request-proofs/<int:proof_id>", methods=["DELETE"], endpoint="leave_proofs_destroy")
    @login_required
    def leave_proofs_destroy(proof_id: int):
        service.delete_proof(current_actor(), proof_id)
        return ok("Proof file deleted successfully")

    @app.route("/api/leave-request-proofs/<int:proof_id>/url", methods=["GET"], endpoint="leave_proofs_url")
    @login_required
    def leave_proofs_url(proof_id: int):
        link = service.proof_url(current_actor(), proof_id, expires_in=request.args.get("expires_in"))
        return ok("Temporary URL generated successfully", link)

    @app.route("/api/leave-request-proofs/<int:proof_id>/verify", methods=["POST"], endpoint="leave_proofs_verify")
    @admin_required
    def leave_proofs_verify(proof_id: int):
        proof = service.verify_proof(current_actor(), proof_id)
        return ok("Proof file verified successfully", proof_json(proof))

    # -- quotas ----------------------------------------------------------

    @app.route("/api/leave-quotas", methods=["GET"], endpoint="leave_quotas_index")
    @login_required
    def leave_quotas_index():
        quotas = ledger.list(current_actor(), user_id=request.args.get("user_id"), year=request.args.get("year"))
        return ok("Leave quotas retrieved successfully", [quota_json(q) for q in quotas])

    @app.route("/api/leave-quotas/<int:quota_id>", methods=["GET"], endpoint="leave_quotas_show")
    @login_required
    def leave_quotas_show(quota_id: int):
        return ok("Leave quota retrieved successfully", quota_json(ledger.show(current_actor(), quota_id)))

    @app.route("/api/leave-quotas", methods=["POST"], endpoint="leave_quotas_store")
    @admin_required
    def leave_quotas_store():
        data = payload()
        quota = ledger.create(user_id=data.get("user_id"), year=data.get("year"), total_quota=data.get("total_quota"))
        return ok("Leave quota created successfully", quota_json(quota), 201)

    @app.route("/api/leave-quotas/<int:quota_id>", methods=["PUT", "PATCH"], endpoint="leave_quotas_update")
    @admin_required
    def leave_quotas_update(quota_id: int):
        quota = ledger.set_total(quota_id, payload().get("total_quota"))
        return ok("Leave quota updated successfully", quota_json(quota))

    @app.route("/api/leave-quotas/generate-yearly", methods=["POST"], endpoint="leave_quotas_generate")
    @admin_required
    def leave_quotas_generate():
        data = payload()
        result = ledger.generate_yearly(year=data.get("year"), default_quota=data.get("default_quota"))
        return ok(
            f"Generated leave quotas for {result.created} users, skipped {result.skipped} existing quotas",
            result,
        )
