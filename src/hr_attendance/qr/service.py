from __future__ import annotations

import io
import logging
import secrets
from datetime import datetime, timedelta
from urllib.parse import quote

import qrcode

from ..attendance.model import AttendanceRecord
from ..attendance.service import AttendanceService
from ..common.datetime_utils import now_local
from ..common.validators import require_choice, require_int_range, require_max_length, require_non_empty
from ..core.constants import DEFAULT_QR_EXPIRY_MINUTES, MAX_NAME_LENGTH, MAX_QR_EXPIRY_MINUTES
from ..core.enums import ClockMethod, ClockType
from ..core.exceptions import AuthorizationError, NotFoundError, QrTokenExpired, QrTokenUsed
from ..core.unit_of_work import UnitOfWork
from ..users.model import Actor
from .model import IssuedQrCode
from .repository import QrTokenRepository

logger = logging.getLogger(__name__)


def render_png(data: str) -> bytes:
    qr = qrcode.QRCode(
        version=1,
        error_correction=qrcode.constants.ERROR_CORRECT_L,
        box_size=10,
        border=2,
    )
    qr.add_data(data)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


class QrTokenService:
    def __init__(
        self,
        tokens: QrTokenRepository,
        attendance: AttendanceService,
        uow: UnitOfWork,
        *,
        frontend_url: str,
        default_expiry_minutes: int = DEFAULT_QR_EXPIRY_MINUTES,
    ):
        self._tokens = tokens
        self._attendance = attendance
        self._uow = uow
        self._frontend_url = frontend_url.rstrip("/")
        self._default_expiry = int(default_expiry_minutes)

    def scan_url(self, token: str) -> str:
        return f"{self._frontend_url}/qr-scan?token={quote(token)}"

    def generate(
        self,
        actor: Actor,
        *,
        clock_type,
        location: str | None,
        expiry_minutes=None,
        now: datetime | None = None,
    ) -> IssuedQrCode:
        if not actor.is_admin:
            raise AuthorizationError("Unauthorized. Only admins can generate QR codes.")
        clock_type = require_choice(clock_type, ClockType, "clock type")
        location = require_non_empty(location, "location")
        require_max_length(location, "location", MAX_NAME_LENGTH)
        if expiry_minutes in (None, ""):
            expiry_minutes = self._default_expiry
        minutes = require_int_range(expiry_minutes, "expiry minutes", minimum=1, maximum=MAX_QR_EXPIRY_MINUTES)

        now = now or now_local()
        expires_at = now + timedelta(minutes=minutes)
        token = secrets.token_hex(16)
        with self._uow.transaction():
            self._tokens.create(
                token=token,
                clock_type=clock_type,
                location=location,
                expires_at=expires_at,
                created_by=actor.user_id,
                created_at=now,
            )

        logger.info("QR token issued by %s for clock %s at %s, expires %s", actor.user_id, clock_type.value, location, expires_at)
        return IssuedQrCode(token=token, qr_url=self.scan_url(token), expires_at=expires_at, expires_in_minutes=minutes)

    def render_png(self, token: str) -> bytes:
        return render_png(self.scan_url(token))

    def process(self, actor: Actor, token: str, *, now: datetime | None = None) -> AttendanceRecord:
        """Consume the token and clock the scanning user in one transaction.

        If the clock action is rejected the whole transaction rolls back and
        the token stays usable.
        """
        now = now or now_local()
        with self._uow.transaction():
            qr = self._tokens.lock(token or "")
            if qr is None:
                raise NotFoundError("Invalid QR code")
            if qr.is_used:
                raise QrTokenUsed()
            if qr.is_expired(now):
                raise QrTokenExpired()

            self._tokens.mark_used(qr.token_id)
            record = self._attendance.record_clock(
                actor.user_id,
                clock_type=qr.clock_type,
                method=ClockMethod.QR_CODE,
                location=qr.location,
                now=now,
            )
        logger.info("QR token %s used by %s", qr.token_id, actor.user_id)
        return record
