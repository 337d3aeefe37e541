from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Protocol


@dataclass(frozen=True)
class UploadedFile:
    """A validated upload handed to the core; transport details stay in the web layer."""

    filename: str
    content: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.content)

    @property
    def extension(self) -> str:
        _, dot, ext = self.filename.rpartition(".")
        return ext.lower() if dot else ""


class ObjectStorage(Protocol):
    """Binary object store. Every call is synchronous and authoritative."""

    disk: str

    def put(self, path: str, content: bytes, visibility: str = "private") -> str:
        raise NotImplementedError

    def exists(self, path: str) -> bool:
        raise NotImplementedError

    def delete(self, path: str) -> bool:
        raise NotImplementedError

    def temporary_url(self, path: str, ttl: timedelta) -> str:
        raise NotImplementedError

    def size(self, path: str) -> int:
        raise NotImplementedError

    def mime_type(self, path: str) -> str:
        raise NotImplementedError
