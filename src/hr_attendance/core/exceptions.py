from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base exception for business rule violations.

    Every error carries a stable `kind` so callers can branch without parsing
    the human message.
    """

    kind = "domain_error"
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None, **details: Any):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.details = details


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation"
    default_message = "Validation failed"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    kind = "authorization"
    default_message = "You do not have permission to perform this action"


class NotFoundError(DomainError):
    kind = "not_found"
    default_message = "Resource not found"


class StorageError(DomainError):
    """Object storage failed to store or remove a file."""

    kind = "storage"
    default_message = "File storage operation failed"


class ConflictError(DomainError):
    """Business-rule conflict: the caller must change the request, not retry it."""

    kind = "conflict"


class DuplicateClockIn(ConflictError):
    kind = "duplicate_clock_in"
    default_message = "You have already clocked in today"


class DuplicateClockOut(ConflictError):
    kind = "duplicate_clock_out"
    default_message = "You have already clocked out today"


class MissingClockIn(ConflictError):
    kind = "missing_clock_in"
    default_message = "You have not clocked in today"


class OverlappingRequest(ConflictError):
    kind = "overlapping_request"
    default_message = "You have overlapping leave requests for the selected date range"


class InsufficientQuota(ConflictError):
    kind = "insufficient_quota"
    default_message = "Insufficient leave quota"


class AlreadyRejected(ConflictError):
    kind = "already_rejected"
    default_message = "This leave request has already been rejected"


class CannotCancelStarted(ConflictError):
    kind = "cannot_cancel_started"
    default_message = "Cannot cancel an approved leave request that has already started"


class ImmutableStatus(ConflictError):
    kind = "immutable"
    default_message = "Cannot change status of approved sick leave requests"


class BelowUsed(ConflictError):
    kind = "below_used"
    default_message = "Total quota cannot be lower than the quota already used"


class QuotaAlreadyExists(ConflictError):
    kind = "quota_exists"
    default_message = "A leave quota already exists for this user and year"


class ProofLimitExceeded(ConflictError):
    kind = "proof_limit_exceeded"
    default_message = "Maximum 5 proof files allowed per leave request"


class AlreadyVerified(ConflictError):
    kind = "already_verified"
    default_message = "Proof file is already verified"


class QrTokenUsed(ConflictError):
    kind = "qr_token_used"
    default_message = "QR code has already been used"


class QrTokenExpired(ConflictError):
    kind = "qr_token_expired"
    default_message = "QR code has expired"
