from __future__ import annotations

from flask import Flask, send_file

from ..container import Container
from .local_storage import LocalObjectStorage


def register(app: Flask, container: Container) -> None:
    storage = container.storage
    if not isinstance(storage, LocalObjectStorage):
        return

    @app.route("/files/<token>", methods=["GET"], endpoint="files_download")
    def files_download(token: str):
        path = storage.open_signed(token)
        return send_file(path)
