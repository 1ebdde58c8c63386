from datetime import timedelta
from decimal import Decimal

import pytest
from sqlalchemy import update

from conftest import as_requester, at
from models import db
from models.audit_log import AuditLog
from models.booking import BookingStatus
from models.slot import TimeSlot, TimeSlotStatus
from services.booking_service import SlotBookingOrchestrator, slot_booking
from services.capacity import CapacityTracker, capacity_tracker
from services.errors import (
    AccessDeniedError,
    DuplicateBookingError,
    IllegalStateError,
    InvalidIdentifierError,
    InvalidInputError,
    PastEventError,
    ServiceNotAvailableError,
    TimeSlotNotFoundError,
)
from services.requester import RequesterContext
from utils.time import utcnow


@pytest.fixture
def slot(provider, service, day):
    return slot_booking.create_time_slot(as_requester(provider), service.public_id, at(day, 9), at(day, 10))


def _book(user, slot):
    return slot_booking.create_booking(as_requester(user), slot.public_id, user.id)


def test_fill_reject_and_reopen(slot, alice, bob, carol):
    assert slot.capacity == 2
    assert slot.price == Decimal("10.00")

    first = _book(alice, slot)
    assert first.status == BookingStatus.CONFIRMED
    assert first.price_paid == Decimal("10.00")
    assert slot.status == TimeSlotStatus.AVAILABLE

    _book(bob, slot)
    assert slot.status == TimeSlotStatus.FULL

    with pytest.raises(ServiceNotAvailableError, match="Status: FULL"):
        _book(carol, slot)
    db.session.rollback()

    cancelled = slot_booking.cancel_booking(as_requester(alice), first.public_id)
    assert cancelled.status == BookingStatus.CANCELLED_BY_CLIENT
    assert slot.status == TimeSlotStatus.AVAILABLE

    _book(carol, slot)
    assert slot.status == TimeSlotStatus.FULL
    assert capacity_tracker.count_active(slot.id) == 2


def test_duplicate_active_booking_is_rejected(slot, alice):
    first = _book(alice, slot)
    with pytest.raises(DuplicateBookingError):
        _book(alice, slot)
    db.session.rollback()

    slot_booking.cancel_booking(as_requester(alice), first.public_id)
    again = _book(alice, slot)
    assert again.status == BookingStatus.CONFIRMED


def test_status_full_blocks_booking_even_with_free_seats(slot, alice):
    slot.status = TimeSlotStatus.FULL
    db.session.commit()

    with pytest.raises(ServiceNotAvailableError, match="Status: FULL"):
        _book(alice, slot)
    assert capacity_tracker.count_active(slot.id) == 0


def test_cannot_book_on_behalf_of_someone_else(slot, alice, bob):
    with pytest.raises(AccessDeniedError):
        slot_booking.create_booking(as_requester(alice), slot.public_id, bob.id)
    with pytest.raises(AccessDeniedError):
        slot_booking.create_booking(RequesterContext.anonymous(), slot.public_id, bob.id)


def test_admin_books_for_a_client(slot, admin, alice):
    booking = slot_booking.create_booking(as_requester(admin), slot.public_id, alice.id)
    assert booking.client_id == alice.id


def test_cancelled_slot_rejects_bookings_and_cascades(provider, slot, alice, bob):
    kept = _book(alice, slot)
    slot_booking.cancel_time_slot(as_requester(provider), slot.public_id)

    assert slot.status == TimeSlotStatus.CANCELLED
    assert kept.status == BookingStatus.CANCELLED_BY_PROVIDER
    assert AuditLog.query.filter_by(action="BOOKING_CANCEL_BY_PROVIDER", entity_id=kept.public_id).count() == 1

    with pytest.raises(ServiceNotAvailableError, match="Status: CANCELLED"):
        _book(bob, slot)
    db.session.rollback()

    with pytest.raises(IllegalStateError):
        slot_booking.cancel_time_slot(as_requester(provider), slot.public_id)


def test_only_the_provider_manages_a_slot(slot, alice):
    with pytest.raises(AccessDeniedError):
        slot_booking.cancel_time_slot(as_requester(alice), slot.public_id)
    with pytest.raises(AccessDeniedError):
        slot_booking.update_time_slot(as_requester(alice), slot.public_id, capacity=3)


def test_capacity_cannot_drop_below_active_bookings(provider, slot, alice, bob):
    _book(alice, slot)
    _book(bob, slot)

    with pytest.raises(InvalidInputError):
        slot_booking.update_time_slot(as_requester(provider), slot.public_id, capacity=1)
    db.session.rollback()

    grown = slot_booking.update_time_slot(as_requester(provider), slot.public_id, capacity=3)
    assert grown.status == TimeSlotStatus.AVAILABLE


def test_cancelling_a_past_booking_fails(slot, alice):
    booking = _book(alice, slot)

    now = utcnow()
    slot.start_time = now - timedelta(hours=2)
    slot.end_time = now - timedelta(hours=1)
    db.session.commit()

    with pytest.raises(PastEventError):
        slot_booking.cancel_booking(as_requester(alice), booking.public_id)
    db.session.rollback()
    assert booking.status == BookingStatus.CONFIRMED


def test_slot_that_already_started_cannot_be_booked(provider, service, alice):
    now = utcnow()
    started = slot_booking.create_time_slot(
        as_requester(provider), service.public_id, now - timedelta(minutes=5), now + timedelta(minutes=55)
    )
    with pytest.raises(PastEventError):
        _book(alice, started)


def test_stale_slot_version_aborts_the_booking(slot, alice):
    class RacingTracker(CapacityTracker):
        """Another writer commits a booking between our read and our write."""

        def count_active(self, slot_id):
            db.session.execute(
                update(TimeSlot.__table__)
                .where(TimeSlot.__table__.c.id == slot_id)
                .values(version_id=TimeSlot.__table__.c.version_id + 1)
            )
            return super().count_active(slot_id)

    racing = SlotBookingOrchestrator(capacity=RacingTracker())
    with pytest.raises(ServiceNotAvailableError):
        racing.create_booking(as_requester(alice), slot.public_id, alice.id)

    assert capacity_tracker.count_active(slot.id) == 0


def test_confirm_requires_pending_state(provider, slot, alice):
    booking = _book(alice, slot)
    with pytest.raises(IllegalStateError, match="Booking cannot be confirmed from status: CONFIRMED"):
        slot_booking.confirm_booking(as_requester(provider), booking.public_id)
    db.session.rollback()

    booking.status = BookingStatus.AWAITING_CONFIRMATION
    db.session.commit()
    with pytest.raises(AccessDeniedError):
        slot_booking.confirm_booking(as_requester(alice), booking.public_id)

    confirmed = slot_booking.confirm_booking(as_requester(provider), booking.public_id)
    assert confirmed.status == BookingStatus.CONFIRMED


def test_booking_visibility(provider, slot, alice, bob):
    booking = _book(alice, slot)
    assert slot_booking.get_booking(as_requester(alice), booking.public_id) is booking
    assert slot_booking.get_booking(as_requester(provider), booking.public_id) is booking
    with pytest.raises(AccessDeniedError):
        slot_booking.get_booking(as_requester(bob), booking.public_id)

    assert [b.public_id for b in slot_booking.list_my_bookings(as_requester(alice))] == [booking.public_id]
    assert slot_booking.list_my_bookings(as_requester(bob)) == []
    assert len(slot_booking.list_slot_bookings(as_requester(provider), slot.public_id)) == 1


def test_listing_hides_full_slots_unless_asked(provider, service, slot, alice, bob, day):
    slot_booking.create_time_slot(as_requester(provider), service.public_id, at(day, 11), at(day, 12))
    _book(alice, slot)
    _book(bob, slot)

    assert len(slot_booking.list_time_slots(service.public_id)) == 1
    assert len(slot_booking.list_time_slots(service.public_id, available_only=False)) == 2


def test_unknown_and_malformed_slot_ids(alice):
    with pytest.raises(InvalidIdentifierError):
        slot_booking.get_time_slot("not-a-uuid")
    with pytest.raises(TimeSlotNotFoundError):
        slot_booking.get_time_slot("00000000-0000-4000-8000-000000000000")
