from conftest import as_requester, at
from services.booking_service import slot_booking
from services.capacity import capacity_tracker


def test_counts_only_seat_occupying_bookings(provider, alice, bob, service, day):
    slot = slot_booking.create_time_slot(as_requester(provider), service.public_id, at(day, 9), at(day, 10))
    assert capacity_tracker.count_active(slot.id) == 0
    assert capacity_tracker.remaining(slot) == 2

    first = slot_booking.create_booking(as_requester(alice), slot.public_id, alice.id)
    slot_booking.create_booking(as_requester(bob), slot.public_id, bob.id)
    assert capacity_tracker.is_full(slot)
    assert capacity_tracker.remaining(slot) == 0

    slot_booking.cancel_booking(as_requester(alice), first.public_id)
    assert capacity_tracker.count_active(slot.id) == 1
    assert not capacity_tracker.is_full(slot)


def test_slot_capacity_overrides_service_default(provider, service, day):
    slot = slot_booking.create_time_slot(
        as_requester(provider), service.public_id, at(day, 9), at(day, 10), capacity=5, price="12.50"
    )
    assert slot.capacity == 5
    assert str(slot.price) == "12.50"
    assert capacity_tracker.remaining(slot) == 5
