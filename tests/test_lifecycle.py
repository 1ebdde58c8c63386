from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest

from models.booking import BookingStatus
from models.reservation import ReservationStatus
from services.errors import IllegalStateError, PastEventError
from services.lifecycle import booking_lifecycle, reservation_lifecycle

NOW = datetime(2026, 3, 1, 12, 0)
TOMORROW = NOW + timedelta(days=1)
YESTERDAY = NOW - timedelta(days=1)


def _booking(status):
    return SimpleNamespace(status=status, updated_at=None)


def _reservation(status, start_time=TOMORROW):
    return SimpleNamespace(status=status, start_time=start_time, updated_at=None)


@pytest.mark.parametrize("status", [BookingStatus.PENDING_PAYMENT, BookingStatus.AWAITING_CONFIRMATION])
def test_booking_confirm_from_pending_states(status):
    booking = booking_lifecycle.confirm(_booking(status), NOW)
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.updated_at == NOW


def test_booking_confirm_from_confirmed_is_illegal():
    with pytest.raises(IllegalStateError, match="Booking cannot be confirmed from status: CONFIRMED"):
        booking_lifecycle.confirm(_booking(BookingStatus.CONFIRMED))


def test_booking_cancel_moves_to_cancelled_by_client():
    booking = booking_lifecycle.cancel(_booking(BookingStatus.CONFIRMED), TOMORROW, NOW)
    assert booking.status == BookingStatus.CANCELLED_BY_CLIENT


@pytest.mark.parametrize("status", [
    BookingStatus.AWAITING_CONFIRMATION,
    BookingStatus.CANCELLED_BY_CLIENT,
    BookingStatus.CANCELLED_BY_PROVIDER,
    BookingStatus.COMPLETED,
    BookingStatus.NO_SHOW,
])
def test_booking_cancel_from_other_states_is_illegal(status):
    booking = _booking(status)
    with pytest.raises(IllegalStateError):
        booking_lifecycle.cancel(booking, TOMORROW, NOW)
    assert booking.status == status


def test_booking_cancel_for_past_event_fails_even_when_confirmed():
    booking = _booking(BookingStatus.CONFIRMED)
    with pytest.raises(PastEventError):
        booking_lifecycle.cancel(booking, YESTERDAY, NOW)
    assert booking.status == BookingStatus.CONFIRMED


def test_provider_cancel_skips_terminal_bookings():
    assert booking_lifecycle.can(_booking(BookingStatus.AWAITING_CONFIRMATION), "cancel_by_provider")
    assert not booking_lifecycle.can(_booking(BookingStatus.COMPLETED), "cancel_by_provider")

    booking = booking_lifecycle.cancel_by_provider(_booking(BookingStatus.CONFIRMED), NOW)
    assert booking.status == BookingStatus.CANCELLED_BY_PROVIDER


def test_reservation_transitions():
    reservation = reservation_lifecycle.confirm(_reservation(ReservationStatus.PENDING))
    assert reservation.status == ReservationStatus.CONFIRMED

    reservation_lifecycle.cancel(reservation)
    assert reservation.status == ReservationStatus.CANCELLED

    with pytest.raises(IllegalStateError, match="Reservation cannot be confirmed from status: CANCELLED"):
        reservation_lifecycle.confirm(reservation)
    with pytest.raises(IllegalStateError):
        reservation_lifecycle.cancel(_reservation(ReservationStatus.COMPLETED))


def test_reservation_delete_rules():
    with pytest.raises(IllegalStateError, match="Cannot delete active or future reservations."):
        reservation_lifecycle.ensure_deletable(_reservation(ReservationStatus.PENDING), NOW)
    with pytest.raises(IllegalStateError):
        reservation_lifecycle.ensure_deletable(_reservation(ReservationStatus.CONFIRMED), NOW)

    reservation_lifecycle.ensure_deletable(_reservation(ReservationStatus.CANCELLED), NOW)
    reservation_lifecycle.ensure_deletable(_reservation(ReservationStatus.PENDING, YESTERDAY), NOW)


def test_only_active_reservations_are_editable():
    reservation_lifecycle.ensure_editable(_reservation(ReservationStatus.PENDING))
    with pytest.raises(IllegalStateError):
        reservation_lifecycle.ensure_editable(_reservation(ReservationStatus.COMPLETED))
