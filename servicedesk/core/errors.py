"""
Typed errors raised by the booking engine, and their HTTP mapping.

Every recoverable condition is its own class with a stable ``code`` and an
actionable default message, so callers can catch precisely and the API layer
can translate without string matching.
"""
from __future__ import annotations

from typing import Optional


class BookingEngineError(Exception):
    code = "booking_error"
    default_message = "The request could not be completed."

    def __init__(self, message: Optional[str] = None, **context):
        self.message = message or self.default_message
        self.context = context
        super().__init__(self.message)


class SlotFullError(BookingEngineError):
    code = "slot_full"
    default_message = "That slot is full. Add the guest to the waitlist instead?"


class SlotBlockedError(BookingEngineError):
    code = "slot_blocked"
    default_message = "That slot has been blocked by staff. Choose another slot."


class UnknownSlotError(BookingEngineError):
    code = "unknown_slot"
    default_message = "That slot is not offered for this service on this day."


class InvalidTransitionError(BookingEngineError):
    code = "invalid_transition"
    default_message = "That status change is not allowed for this booking."


class BagNumberRequiredError(BookingEngineError):
    code = "bag_number_required"
    default_message = "Enter a bag number to continue."


class DuplicateBookingError(BookingEngineError):
    code = "duplicate_booking"
    default_message = "Guest already has a booking for this service today."


class OffsiteLaundryDisabledError(BookingEngineError):
    code = "offsite_disabled"
    default_message = "Off-site laundry is currently turned off in settings."


class NotFoundError(BookingEngineError):
    code = "not_found"
    default_message = "Record not found."


class AlreadyUndoneError(BookingEngineError):
    code = "already_undone"
    default_message = "That action has already been undone."


class StorageError(BookingEngineError):
    code = "storage_error"
    default_message = "Could not save changes. Nothing was changed, please try again."


# ---------------------------------------------------------------------------
# HTTP mapping: first matching class wins, so subclasses go before bases.
# ---------------------------------------------------------------------------

STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_UNPROCESSABLE = 422
STATUS_SERVICE_UNAVAILABLE = 503
STATUS_BAD_REQUEST = 400

ERROR_STATUS_RULES: list[tuple[type[BookingEngineError], int]] = [
    (NotFoundError, STATUS_NOT_FOUND),
    (SlotFullError, STATUS_CONFLICT),
    (SlotBlockedError, STATUS_CONFLICT),
    (DuplicateBookingError, STATUS_CONFLICT),
    (AlreadyUndoneError, STATUS_CONFLICT),
    (UnknownSlotError, STATUS_UNPROCESSABLE),
    (InvalidTransitionError, STATUS_UNPROCESSABLE),
    (BagNumberRequiredError, STATUS_UNPROCESSABLE),
    (OffsiteLaundryDisabledError, STATUS_UNPROCESSABLE),
    (StorageError, STATUS_SERVICE_UNAVAILABLE),
]


def status_code_for(exc: BookingEngineError) -> int:
    for error_cls, status_code in ERROR_STATUS_RULES:
        if isinstance(exc, error_cls):
            return status_code
    return STATUS_BAD_REQUEST
