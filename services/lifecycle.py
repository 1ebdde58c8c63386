"""
Booking and reservation state machines.

Each transition is a (source states -> target) entry; anything else is an
IllegalStateError. Terminal states have no outgoing transitions.
"""
from models.booking import BookingStatus
from models.reservation import ReservationStatus
from services.errors import IllegalStateError, PastEventError
from utils.time import utcnow


BOOKING_TRANSITIONS = {
    "confirm": (
        {BookingStatus.PENDING_PAYMENT, BookingStatus.AWAITING_CONFIRMATION},
        BookingStatus.CONFIRMED,
    ),
    "cancel": (
        {BookingStatus.CONFIRMED, BookingStatus.PENDING_PAYMENT},
        BookingStatus.CANCELLED_BY_CLIENT,
    ),
    "cancel_by_provider": (
        {BookingStatus.PENDING_PAYMENT, BookingStatus.AWAITING_CONFIRMATION, BookingStatus.CONFIRMED},
        BookingStatus.CANCELLED_BY_PROVIDER,
    ),
}

RESERVATION_TRANSITIONS = {
    "confirm": ({ReservationStatus.PENDING}, ReservationStatus.CONFIRMED),
    "cancel": ({ReservationStatus.PENDING, ReservationStatus.CONFIRMED}, ReservationStatus.CANCELLED),
}


def _apply(entity, transitions, action, label, verb, now=None):
    sources, target = transitions[action]
    if entity.status not in sources:
        raise IllegalStateError(f"{label} cannot be {verb} from status: {entity.status}")
    entity.status = target
    entity.updated_at = now or utcnow()
    return entity


class BookingLifecycle:

    def can(self, booking, action) -> bool:
        return booking.status in BOOKING_TRANSITIONS[action][0]

    def confirm(self, booking, now=None):
        return _apply(booking, BOOKING_TRANSITIONS, "confirm", "Booking", "confirmed", now)

    def cancel(self, booking, slot_start_time, now=None):
        now = now or utcnow()
        # checked before the state machine
        if slot_start_time < now:
            raise PastEventError("Cannot cancel a booking for a past event.")
        return _apply(booking, BOOKING_TRANSITIONS, "cancel", "Booking", "cancelled", now)

    def cancel_by_provider(self, booking, now=None):
        return _apply(booking, BOOKING_TRANSITIONS, "cancel_by_provider", "Booking", "cancelled", now)


class ReservationLifecycle:

    def confirm(self, reservation, now=None):
        return _apply(reservation, RESERVATION_TRANSITIONS, "confirm", "Reservation", "confirmed", now)

    def cancel(self, reservation, now=None):
        return _apply(reservation, RESERVATION_TRANSITIONS, "cancel", "Reservation", "cancelled", now)

    def ensure_deletable(self, reservation, now=None):
        now = now or utcnow()
        if reservation.start_time > now and reservation.status in ReservationStatus.ACTIVE:
            raise IllegalStateError("Cannot delete active or future reservations.")

    def ensure_editable(self, reservation):
        if reservation.status not in ReservationStatus.ACTIVE:
            raise IllegalStateError(f"Reservation cannot be modified from status: {reservation.status}")


booking_lifecycle = BookingLifecycle()
reservation_lifecycle = ReservationLifecycle()
