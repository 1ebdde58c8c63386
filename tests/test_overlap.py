import pytest

from conftest import as_requester, at
from services import offered_service_service as catalog
from services.booking_service import slot_booking
from services.errors import ReservationClashError, TimeSlotClashError
from services.overlap import reservation_overlap_checker, slot_overlap_checker
from services.reservation_service import reservations


def test_slot_clash_spans_every_service_of_the_provider(provider, service, day):
    other = catalog.create_offered_service(as_requester(provider), provider.id, "Pilates")
    slot_booking.create_time_slot(as_requester(provider), service.public_id, at(day, 9), at(day, 10))

    with pytest.raises(TimeSlotClashError):
        slot_booking.create_time_slot(as_requester(provider), other.public_id, at(day, 9, 30), at(day, 10, 30))


def test_back_to_back_slots_are_allowed(provider, service, day):
    req = as_requester(provider)
    slot_booking.create_time_slot(req, service.public_id, at(day, 9), at(day, 10))
    slot_booking.create_time_slot(req, service.public_id, at(day, 10), at(day, 11))
    slot_booking.create_time_slot(req, service.public_id, at(day, 8), at(day, 9))

    assert len(slot_overlap_checker.find_overlapping(provider.id, at(day, 8), at(day, 11))) == 3


def test_cancelled_slots_do_not_clash(provider, service, day):
    req = as_requester(provider)
    slot = slot_booking.create_time_slot(req, service.public_id, at(day, 9), at(day, 10))
    slot_booking.cancel_time_slot(req, slot.public_id)

    again = slot_booking.create_time_slot(req, service.public_id, at(day, 9), at(day, 10))
    assert again.public_id != slot.public_id


def test_slot_update_ignores_itself(provider, service, day):
    req = as_requester(provider)
    slot = slot_booking.create_time_slot(req, service.public_id, at(day, 9), at(day, 10))
    slot_booking.create_time_slot(req, service.public_id, at(day, 11), at(day, 12))

    moved = slot_booking.update_time_slot(req, slot.public_id, start_time=at(day, 9, 30), end_time=at(day, 10, 30))
    assert moved.start_time == at(day, 9, 30)

    with pytest.raises(TimeSlotClashError):
        slot_booking.update_time_slot(req, slot.public_id, end_time=at(day, 11, 15))


def test_reservations_clash_per_service_only(provider, alice, service, day):
    other = catalog.create_offered_service(as_requester(provider), provider.id, "Pilates")
    req = as_requester(alice)
    reservations.create_reservation(req, alice.id, service.public_id, at(day, 14), at(day, 15))

    with pytest.raises(ReservationClashError):
        reservations.create_reservation(req, alice.id, service.public_id, at(day, 14, 30), at(day, 15, 30))

    reservations.create_reservation(req, alice.id, other.public_id, at(day, 14, 30), at(day, 15, 30))
    reservations.create_reservation(req, alice.id, service.public_id, at(day, 15), at(day, 16))


def test_cancelled_reservations_do_not_clash(alice, service, day):
    req = as_requester(alice)
    first = reservations.create_reservation(req, alice.id, service.public_id, at(day, 14), at(day, 15))
    reservations.cancel_reservation(req, first.public_id)

    assert reservation_overlap_checker.find_overlapping(service.id, at(day, 14), at(day, 15)) == []
    reservations.create_reservation(req, alice.id, service.public_id, at(day, 14), at(day, 15))
