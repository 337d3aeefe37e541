from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from ..common.datetime_utils import now_local
from ..common.validators import require_max_length, require_non_empty
from ..core.constants import ALLOWED_PHOTO_MIME_TYPES, MAX_DESCRIPTION_LENGTH, MAX_UPLOAD_BYTES
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..core.unit_of_work import UnitOfWork
from ..storage.base import ObjectStorage, UploadedFile
from ..storage.uploads import discard, stage_uploads, validate_upload
from ..users.model import Actor
from .model import TaskLog
from .repository import AttendanceRepository, TaskLogRepository

logger = logging.getLogger(__name__)


class TaskLogService:
    """Daily task notes attached to the caller's own attendance records."""

    def __init__(
        self,
        task_logs: TaskLogRepository,
        attendance: AttendanceRepository,
        storage: ObjectStorage,
        uow: UnitOfWork,
        *,
        url_ttl: timedelta = timedelta(minutes=60),
    ):
        self._task_logs = task_logs
        self._attendance = attendance
        self._storage = storage
        self._uow = uow
        self._url_ttl = url_ttl

    def _validate_description(self, description: Optional[str]) -> str:
        description = require_non_empty(description, "description")
        require_max_length(description, "description", MAX_DESCRIPTION_LENGTH)
        return description

    def _validate_photo(self, photo: Optional[UploadedFile]) -> None:
        if photo is not None:
            validate_upload(
                photo, allowed_mime_types=ALLOWED_PHOTO_MIME_TYPES, max_bytes=MAX_UPLOAD_BYTES, field="photo"
            )

    def _get_owned(self, actor: Actor, task_log_id: int) -> TaskLog:
        log = self._task_logs.get_by_id(task_log_id)
        if not log:
            raise NotFoundError("Task log not found")
        if not actor.can_act_for(log.user_id):
            raise AuthorizationError("Unauthorized: This task log does not belong to you")
        return log

    def add(
        self,
        actor: Actor,
        *,
        attendance_id: int,
        description: Optional[str],
        photo: Optional[UploadedFile] = None,
        now: datetime | None = None,
    ) -> TaskLog:
        now = now or now_local()
        description = self._validate_description(description)
        self._validate_photo(photo)

        attendance = self._attendance.get_by_id(attendance_id)
        if not attendance:
            raise NotFoundError("Attendance record not found")
        if attendance.user_id != actor.user_id:
            raise AuthorizationError("Unauthorized: This attendance record does not belong to you")
        if attendance.day != now.date():
            raise ValidationError("Task logs can only be added to today's attendance records")

        stored = stage_uploads(self._storage, [photo], prefix=f"task-logs/{actor.user_id}") if photo else []
        try:
            with self._uow.transaction():
                log = self._task_logs.create(
                    user_id=actor.user_id,
                    attendance_id=attendance.attendance_id,
                    description=description,
                    photo_path=stored[0] if stored else None,
                    created_at=now,
                )
        except Exception:
            logger.error("Task log for attendance %s not saved; removing uploaded photo", attendance_id)
            discard(self._storage, stored)
            raise

        logger.info("Task log %s added to attendance %s", log.task_log_id, attendance.attendance_id)
        return log

    def update(
        self,
        actor: Actor,
        task_log_id: int,
        *,
        description: Optional[str] = None,
        photo: Optional[UploadedFile] = None,
        now: datetime | None = None,
    ) -> TaskLog:
        now = now or now_local()
        if description is None and photo is None:
            raise ValidationError("Provide a description or a photo to update")
        if description is not None:
            description = self._validate_description(description)
        self._validate_photo(photo)

        log = self._get_owned(actor, task_log_id)
        stored = stage_uploads(self._storage, [photo], prefix=f"task-logs/{log.user_id}") if photo else []
        new_description = description if description is not None else log.description
        new_photo = stored[0] if stored else log.photo_path
        try:
            with self._uow.transaction():
                self._task_logs.update(
                    log.task_log_id, description=new_description, photo_path=new_photo, updated_at=now
                )
        except Exception:
            logger.error("Task log %s update rolled back; removing uploaded photo", task_log_id)
            discard(self._storage, stored)
            raise

        if stored and log.photo_path:
            discard(self._storage, [log.photo_path])

        return TaskLog(
            task_log_id=log.task_log_id,
            user_id=log.user_id,
            attendance_id=log.attendance_id,
            description=new_description,
            photo_path=new_photo,
            created_at=log.created_at,
            updated_at=now,
        )

    def delete(self, actor: Actor, task_log_id: int) -> None:
        log = self._get_owned(actor, task_log_id)
        with self._uow.transaction():
            self._task_logs.delete(log.task_log_id)
        if log.photo_path:
            discard(self._storage, [log.photo_path])
        logger.info("Task log %s deleted by user %s", task_log_id, actor.user_id)

    def photo_url(self, log: TaskLog, ttl: timedelta | None = None) -> Optional[str]:
        """Mint a temporary URL for the photo; nothing is cached."""
        if not log.photo_path:
            return None
        return self._storage.temporary_url(log.photo_path, ttl or self._url_ttl)
