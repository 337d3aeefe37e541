from __future__ import annotations

import logging
import mimetypes
import os
from datetime import timedelta
from pathlib import Path, PurePosixPath

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from ..core.exceptions import NotFoundError, StorageError

logger = logging.getLogger(__name__)


class LocalObjectStorage:
    """Filesystem-backed object storage with signed, expiring download URLs."""

    disk = "local"

    def __init__(self, root: str | Path, *, base_url: str, secret_key: str):
        self._root = Path(root).resolve()
        self._base_url = base_url.rstrip("/")
        self._signer = URLSafeTimedSerializer(secret_key, salt="object-storage")

    def _resolve(self, path: str) -> Path:
        relative = PurePosixPath(path)
        if relative.is_absolute() or ".." in relative.parts:
            raise StorageError("Invalid storage path")
        return self._root.joinpath(*relative.parts)

    def put(self, path: str, content: bytes, visibility: str = "private") -> str:
        target = self._resolve(path)
        tmp = target.with_name(target.name + ".part")
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_bytes(content)
            os.replace(tmp, target)
        except OSError as exc:
            logger.error("Failed to store %s: %s", path, exc)
            raise StorageError(f"Failed to upload file: {PurePosixPath(path).name}") from exc
        return path

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def delete(self, path: str) -> bool:
        target = self._resolve(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError("Failed to delete file") from exc
        return True

    def size(self, path: str) -> int:
        try:
            return self._resolve(path).stat().st_size
        except FileNotFoundError:
            raise NotFoundError("File not found")

    def mime_type(self, path: str) -> str:
        if not self.exists(path):
            raise NotFoundError("File not found")
        guessed, _ = mimetypes.guess_type(path)
        return guessed or "application/octet-stream"

    def temporary_url(self, path: str, ttl: timedelta) -> str:
        token = self._signer.dumps({"path": path, "ttl": int(ttl.total_seconds())})
        return f"{self._base_url}/{token}"

    def open_signed(self, token: str) -> Path:
        """Resolve a token minted by `temporary_url` back to a readable file."""
        try:
            payload = self._signer.loads(token)
            self._signer.loads(token, max_age=int(payload["ttl"]))
        except SignatureExpired:
            raise NotFoundError("Link has expired")
        except (BadSignature, KeyError, TypeError, ValueError):
            raise NotFoundError("File not found")
        target = self._resolve(payload["path"])
        if not target.is_file():
            raise NotFoundError("File not found")
        return target
