from __future__ import annotations

import io

from flask import Flask, send_file

from ..attendance.controller import record_json
from ..common.web import admin_required, current_actor, login_required, ok, payload
from ..container import Container


def register(app: Flask, container: Container) -> None:
    service = container.qr_service

    @app.route("/api/qr/generate", methods=["POST"], endpoint="qr_generate")
    @admin_required
    def qr_generate():
        data = payload()
        issued = service.generate(
            current_actor(),
            clock_type=data.get("clock_type"),
            location=data.get("location"),
            expiry_minutes=data.get("expiry_minutes"),
        )
        return ok("QR code generated successfully", issued)

    @app.route("/api/qr/<token>/image", methods=["GET"], endpoint="qr_image")
    @admin_required
    def qr_image(token: str):
        return send_file(io.BytesIO(service.render_png(token)), mimetype="image/png")

    @app.route("/api/qr/process/<token>", methods=["POST"], endpoint="qr_process")
    @login_required
    def qr_process(token: str):
        record = service.process(current_actor(), token)
        return ok("Attendance recorded successfully", record_json(record), 201)
