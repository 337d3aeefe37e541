from __future__ import annotations

from datetime import timedelta

import pytest

from fakes import InMemoryObjectStorage
from hr_attendance.core.exceptions import NotFoundError, StorageError
from hr_attendance.storage.base import UploadedFile
from hr_attendance.storage.local_storage import LocalObjectStorage
from hr_attendance.storage.uploads import discard, object_path, stage_uploads


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(tmp_path, base_url="/files/", secret_key="s3cret")


def test_put_exists_size_and_delete(storage, tmp_path):
    storage.put("proofs/2/a.png", b"12345")

    assert (tmp_path / "proofs" / "2" / "a.png").read_bytes() == b"12345"
    assert storage.exists("proofs/2/a.png")
    assert storage.size("proofs/2/a.png") == 5
    assert storage.mime_type("proofs/2/a.png") == "image/png"
    assert storage.delete("proofs/2/a.png")
    assert not storage.delete("proofs/2/a.png")


@pytest.mark.parametrize("path", ["../escape.txt", "/etc/passwd", "a/../../b"])
def test_paths_cannot_leave_the_root(storage, path):
    with pytest.raises(StorageError):
        storage.put(path, b"x")


def test_signed_url_resolves_back_to_the_file(storage, tmp_path):
    storage.put("task-logs/2/p.jpg", b"jpeg")

    url = storage.temporary_url("task-logs/2/p.jpg", timedelta(minutes=5))

    assert url.startswith("/files/")
    token = url.rsplit("/", 1)[1]
    assert storage.open_signed(token) == tmp_path / "task-logs" / "2" / "p.jpg"


def test_tampered_token_is_not_found(storage):
    storage.put("a.jpg", b"x")
    token = storage.temporary_url("a.jpg", timedelta(minutes=5)).rsplit("/", 1)[1]
    with pytest.raises(NotFoundError):
        storage.open_signed(token[:-2] + "zz")


def test_token_from_another_key_is_rejected(storage, tmp_path):
    other = LocalObjectStorage(tmp_path, base_url="/files", secret_key="different")
    storage.put("a.jpg", b"x")
    token = other.temporary_url("a.jpg", timedelta(minutes=5)).rsplit("/", 1)[1]
    with pytest.raises(NotFoundError):
        storage.open_signed(token)


def test_object_path_keeps_extension():
    path = object_path("leave-requests/3/", UploadedFile(filename="Scan.JPEG", content=b"", mime_type="image/jpeg"))
    assert path.startswith("leave-requests/3/")
    assert path.endswith(".jpeg")


def test_stage_uploads_is_all_or_nothing():
    storage = InMemoryObjectStorage(fail_on_put=3)
    files = [UploadedFile(filename=f"{i}.png", content=b"x", mime_type="image/png") for i in range(3)]

    with pytest.raises(StorageError):
        stage_uploads(storage, files, prefix="p")

    assert storage.objects == {}


class BrokenDeleteStorage(InMemoryObjectStorage):
    def delete(self, path):
        raise OSError("read-only filesystem")


def test_discard_logs_and_continues(caplog):
    storage = BrokenDeleteStorage()
    discard(storage, ["a", "b"])
    assert caplog.text.count("Failed to delete stored file") == 2
