"""
Domain error taxonomy.

Every error is raised where it is detected and travels unchanged to the
caller; the HTTP layer maps ``status_code`` to a response. Nothing here is
retryable.
"""


class DomainError(Exception):
    status_code = 500

    def __init__(self, message: str = None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


# ---------- 404 ----------
class NotFoundError(DomainError):
    status_code = 404


class UserNotFoundError(NotFoundError):
    pass


class TimeSlotNotFoundError(NotFoundError):
    pass


class BookingNotFoundError(NotFoundError):
    pass


class OfferedServiceNotFoundError(NotFoundError):
    pass


class ReservationNotFoundError(NotFoundError):
    pass


# ---------- 409 ----------
class ConflictError(DomainError):
    status_code = 409


class TimeSlotClashError(ConflictError):
    pass


class ReservationClashError(ConflictError):
    pass


class DuplicateBookingError(ConflictError):
    pass


class ServiceNotAvailableError(ConflictError):
    pass


class DuplicateServiceNameError(ConflictError):
    pass


class ServiceInUseError(ConflictError):
    pass


class DuplicateUserInfoError(ConflictError):
    pass


# ---------- 400 ----------
class InvalidInputError(DomainError):
    status_code = 400


class InvalidTimeRangeError(InvalidInputError):
    pass


class InvalidIdentifierError(InvalidInputError):
    pass


# ---------- lifecycle ----------
class IllegalStateError(DomainError):
    status_code = 409


class PastEventError(IllegalStateError):
    pass


# ---------- 403 ----------
class AccessDeniedError(DomainError):
    status_code = 403
