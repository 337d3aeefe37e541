from __future__ import annotations

import dataclasses
import logging
from datetime import date, datetime, time
from enum import Enum
from functools import wraps
from typing import Any, List, Optional

from flask import Flask, jsonify, request, session
from flask.json.provider import DefaultJSONProvider
from werkzeug.datastructures import FileStorage
from werkzeug.exceptions import HTTPException
from werkzeug.utils import secure_filename

from ..core.enums import Role
from ..core.exceptions import DomainError
from ..storage.base import UploadedFile
from ..users.model import Actor

logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    "validation": 422,
    "authorization": 403,
    "not_found": 404,
    "storage": 500,
}


class ApiJSONProvider(DefaultJSONProvider):
    """ISO-8601 dates and enum values instead of Flask's HTTP-date default."""

    @staticmethod
    def default(o: Any):
        if isinstance(o, datetime):
            return o.isoformat(sep=" ", timespec="seconds")
        if isinstance(o, date):
            return o.isoformat()
        if isinstance(o, time):
            return o.strftime("%H:%M")
        if isinstance(o, Enum):
            return o.value
        if dataclasses.is_dataclass(o) and not isinstance(o, type):
            return dataclasses.asdict(o)
        return DefaultJSONProvider.default(o)


def ok(message: str, data: Any = None, status: int = 200):
    body = {"status": True, "message": message}
    if data is not None:
        body["data"] = data
    return jsonify(body), status


def fail(message: str, status: int, **extra: Any):
    body = {"status": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def status_for(error: DomainError) -> int:
    if error.kind in STATUS_BY_KIND:
        return STATUS_BY_KIND[error.kind]
    # Every ConflictError subclass carries its own kind.
    return 422


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        extra = {"kind": error.kind}
        if error.details:
            extra["data"] = error.details
        return fail(error.message, status_for(error), **extra)

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return fail(error.description or error.name, error.code or 500)

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        message = f"Internal server error: {error}" if app.config.get("DEBUG") else "Internal server error"
        return fail(message, 500)


def current_actor() -> Actor:
    return Actor(user_id=int(session["user_id"]), role=Role(session.get("role", Role.EMPLOYEE.value)))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Unauthenticated", 401)
        return view(*args, **kwargs)

    return wrapper


def admin_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return fail("Unauthenticated", 401)
        if session.get("role") != Role.ADMIN.value:
            return fail("You do not have permission to perform this action", 403)
        return view(*args, **kwargs)

    return wrapper


def payload() -> dict:
    """Request fields from JSON, form or query string, in that order of preference."""
    if request.is_json:
        return dict(request.get_json(silent=True) or {})
    data = request.form.to_dict() if request.form else {}
    for key, value in request.args.items():
        data.setdefault(key, value)
    return data


def to_upload(storage: Optional[FileStorage]) -> Optional[UploadedFile]:
    if storage is None or not storage.filename:
        return None
    return UploadedFile(
        filename=secure_filename(storage.filename) or "upload",
        content=storage.read(),
        mime_type=storage.mimetype or "application/octet-stream",
    )


def uploads(field: str) -> List[UploadedFile]:
    files = request.files.getlist(field) or request.files.getlist(f"{field}[]")
    return [u for u in (to_upload(f) for f in files) if u is not None]


def form_list(field: str) -> List[str]:
    if request.is_json:
        return list((request.get_json(silent=True) or {}).get(field) or [])
    return request.form.getlist(field) or request.form.getlist(f"{field}[]")


def page_json(page, render) -> dict:
    return {
        "data": [render(item) for item in page.items],
        "total": page.total,
        "current_page": page.page,
        "per_page": page.per_page,
        "last_page": page.last_page,
    }
