"""Service layer errors."""


class ServiceError(Exception):
    """Base error for service-layer failures."""


class BookingError(ServiceError):
    """A booking request that could not be committed."""

    code = "booking_error"
    message = "Booking failed."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class AuthRequired(BookingError):
    code = "auth_required"
    message = "Authentication failed. Please log in again."


class EquipmentNotFound(BookingError):
    code = "equipment_not_found"
    message = "Equipment not found at your center."


class EquipmentUnavailable(BookingError):
    code = "equipment_unavailable"
    message = "This equipment is currently rented out."


class InvalidRate(BookingError):
    code = "invalid_rate"
    message = "Equipment rate is missing or zero. Cannot book."


class InvalidDuration(BookingError):
    code = "invalid_duration"
    message = "Invalid booking hours provided."


class PersistenceError(BookingError):
    code = "persistence_error"
    message = "An error occurred during booking. Please try again."


class ModelTransportError(ServiceError):
    """The language model could not be reached or replied in an unknown shape."""


class SubscriptionError(ServiceError):
    """An order subscription failed; terminal until the caller re-subscribes."""


class InvalidTransition(ServiceError):
    """Order status may only move one step forward."""


class PhoneVerificationError(ServiceError):
    """Phone number invalid, already registered, unknown, or bad code."""
