"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

from .enums import LeaveType

DEFAULT_LOCATION = "Remote"
DEFAULT_HISTORY_DAYS = 30

DEFAULT_PER_PAGE = 15
MIN_PER_PAGE = 1
MAX_PER_PAGE = 100

DEFAULT_ANNUAL_QUOTA = 12
MIN_QUOTA_YEAR = 2020
MAX_QUOTA_YEAR = 2050
MAX_QUOTA_DAYS = 365

# Both types consume quota; sakit joined cuti in the later ledger rules.
QUOTA_BEARING_TYPES = frozenset({LeaveType.CUTI, LeaveType.SAKIT})

MAX_PROOFS_PER_REQUEST = 5
MAX_UPLOAD_BYTES = 5 * 1024 * 1024
ALLOWED_PROOF_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png", "image/webp"})
ALLOWED_PHOTO_MIME_TYPES = frozenset({"image/jpeg", "image/jpg", "image/png"})
PROOF_DISK = "local"

DEFAULT_URL_TTL_MINUTES = 60
MAX_URL_TTL_MINUTES = 1440

DEFAULT_QR_EXPIRY_MINUTES = 10
MAX_QR_EXPIRY_MINUTES = 1440

MAX_DESCRIPTION_LENGTH = 1000
MAX_REASON_LENGTH = 1000
MAX_PROOF_DESCRIPTION_LENGTH = 255
MAX_NAME_LENGTH = 255

UPCOMING_LEAVES_LIMIT = 5
