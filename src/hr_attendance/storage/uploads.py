from __future__ import annotations

import logging
import uuid
from typing import Iterable, List, Sequence

from ..core.exceptions import StorageError, ValidationError
from .base import ObjectStorage, UploadedFile

logger = logging.getLogger(__name__)


def validate_upload(upload: UploadedFile, *, allowed_mime_types: Iterable[str], max_bytes: int, field: str) -> None:
    if upload.mime_type not in set(allowed_mime_types):
        raise ValidationError(f"The {field} must be a valid image file", field=field)
    if upload.size > max_bytes:
        raise ValidationError(f"The {field} may not be greater than {max_bytes // 1024} kilobytes", field=field)


def object_path(prefix: str, upload: UploadedFile) -> str:
    """Unique storage key under `prefix`, keeping the client extension."""
    name = uuid.uuid4().hex
    if upload.extension:
        name = f"{name}.{upload.extension}"
    return f"{prefix.rstrip('/')}/{name}"


def stage_uploads(storage: ObjectStorage, uploads: Sequence[UploadedFile], *, prefix: str) -> List[str]:
    """Store all uploads or none: on the first failure the ones already stored are removed."""
    stored: List[str] = []
    try:
        for upload in uploads:
            stored.append(storage.put(object_path(prefix, upload), upload.content, "private"))
    except Exception as exc:
        logger.error("Error uploading files under %s: %s", prefix, exc)
        discard(storage, stored)
        if isinstance(exc, StorageError):
            raise
        raise StorageError("Failed to upload files") from exc
    return stored


def discard(storage: ObjectStorage, paths: Iterable[str]) -> None:
    """Best-effort removal; failures are logged and never raised."""
    for path in paths:
        try:
            storage.delete(path)
        except Exception as exc:
            logger.warning("Failed to delete stored file %s: %s", path, exc)
