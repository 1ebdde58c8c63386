"""
Slot booking use cases.

Ties the overlap checker, the capacity tracker and the booking lifecycle
together. Every public method is one transaction: it either commits or
raises with the session rolled back.

Concurrent seat grabs on the same slot are closed twice over: the slot row
is read with ``SELECT ... FOR UPDATE`` before counting, and every booking
write bumps the slot's ``version_id``, so a writer holding a stale read
fails its flush instead of overselling.
"""
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.exc import StaleDataError

from models import db
from models.booking import Booking, BookingStatus
from models.slot import TimeSlot, TimeSlotStatus
from repositories import bookings as booking_repo
from repositories import offered_services as service_repo
from repositories import slots as slot_repo
from repositories import users as user_repo
from security.rbac import ensure_admin_or_owner, ensure_admin_or_any_owner, ensure_authenticated
from services.capacity import capacity_tracker
from services.errors import (
    AccessDeniedError,
    BookingNotFoundError,
    ConflictError,
    DuplicateBookingError,
    IllegalStateError,
    InvalidInputError,
    OfferedServiceNotFoundError,
    PastEventError,
    ServiceNotAvailableError,
    TimeSlotNotFoundError,
    UserNotFoundError,
)
from services.intervals import validate_time_range
from services.lifecycle import booking_lifecycle
from services.overlap import slot_overlap_checker
from services.validation import parse_positive_int, parse_price
from utils.audit import log_event
from utils.identifiers import parse_public_id
from utils.time import utcnow


class SlotBookingOrchestrator:

    def __init__(self, overlap_checker=None, capacity=None, lifecycle=None):
        self.overlap_checker = overlap_checker or slot_overlap_checker
        self.capacity = capacity or capacity_tracker
        self.lifecycle = lifecycle or booking_lifecycle

    # ---------- loaders ----------

    def _load_service(self, service_id):
        service = service_repo.find_service_by_public_id(parse_public_id(service_id, "service"))
        if not service:
            raise OfferedServiceNotFoundError(f"Service with id {service_id} not found.")
        return service

    def _load_slot(self, slot_id, for_update=False):
        slot = slot_repo.find_time_slot_by_public_id(parse_public_id(slot_id, "time slot"), for_update=for_update)
        if not slot:
            raise TimeSlotNotFoundError(f"TimeSlot with id {slot_id} not found.")
        return slot

    def _load_booking(self, booking_id):
        booking = booking_repo.find_booking_by_public_id(parse_public_id(booking_id, "booking"))
        if not booking:
            raise BookingNotFoundError(f"Booking with id {booking_id} not found.")
        return booking

    def provider_id_for(self, slot):
        return service_repo.find_service_by_id(slot.service_id).owner_id

    # ---------- time slots ----------

    def create_time_slot(self, requester, service_id, start_time, end_time, capacity=None, price=None):
        service = self._load_service(service_id)
        ensure_admin_or_owner(
            requester, service.owner_id,
            "You do not have permission to publish time slots for this service.",
        )
        validate_time_range(start_time, end_time)
        capacity = parse_positive_int(capacity, "Capacity")
        price = parse_price(price)

        # Serialise slot creation per provider so the overlap query and the
        # insert cannot interleave with another request.
        user_repo.lock_user(service.owner_id)
        self.overlap_checker.ensure_no_clash(service.owner_id, start_time, end_time)

        now = utcnow()
        slot = TimeSlot(
            service_id=service.id,
            start_time=start_time,
            end_time=end_time,
            capacity=capacity if capacity is not None else service.capacity,
            price=price if price is not None else service.price,
            status=TimeSlotStatus.AVAILABLE,
            created_at=now,
            updated_at=now,
        )
        slot_repo.save_time_slot(slot)
        log_event(
            "SLOT_CREATE",
            user_id=requester.user_id,
            entity="time_slot",
            entity_id=slot.public_id,
            metadata={"service_id": service.public_id, "capacity": slot.capacity},
            commit=False,
        )
        db.session.commit()
        return slot

    def update_time_slot(self, requester, slot_id, start_time=None, end_time=None, capacity=None, price=None):
        slot = self._load_slot(slot_id, for_update=True)
        provider_id = self.provider_id_for(slot)
        ensure_admin_or_owner(requester, provider_id, "You do not have permission to modify this time slot.")

        if slot.status == TimeSlotStatus.CANCELLED:
            raise IllegalStateError("A cancelled time slot cannot be modified.")

        new_start = start_time if start_time is not None else slot.start_time
        new_end = end_time if end_time is not None else slot.end_time
        capacity = parse_positive_int(capacity, "Capacity")
        price = parse_price(price)
        window_changed = new_start != slot.start_time or new_end != slot.end_time

        if window_changed:
            validate_time_range(new_start, new_end)
            user_repo.lock_user(provider_id)
            self.overlap_checker.ensure_no_clash(provider_id, new_start, new_end, exclude_slot_id=slot.id)

        active = self.capacity.count_active(slot.id)
        new_capacity = capacity if capacity is not None else slot.capacity
        if new_capacity < active:
            raise InvalidInputError(
                f"Capacity cannot be lower than the number of active bookings ({active})."
            )

        slot.start_time = new_start
        slot.end_time = new_end
        slot.capacity = new_capacity
        if price is not None:
            slot.price = price
        slot.status = TimeSlotStatus.FULL if active >= new_capacity else TimeSlotStatus.AVAILABLE
        slot.updated_at = utcnow()

        try:
            slot_repo.save_time_slot(slot)
            log_event(
                "SLOT_UPDATE",
                user_id=requester.user_id,
                entity="time_slot",
                entity_id=slot.public_id,
                metadata={"window_changed": window_changed, "capacity": new_capacity},
                commit=False,
            )
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConflictError("The time slot was modified concurrently.")
        return slot

    def cancel_time_slot(self, requester, slot_id):
        """Cancel a slot and every booking on it that is not already terminal.

        Terminal bookings (cancelled, completed, no-show) are left as they are.
        """
        slot = self._load_slot(slot_id, for_update=True)
        ensure_admin_or_owner(
            requester, self.provider_id_for(slot),
            "You do not have permission to cancel this time slot.",
        )
        if slot.status == TimeSlotStatus.CANCELLED:
            raise IllegalStateError("Time slot is already cancelled.")

        now = utcnow()
        if slot.start_time < now:
            raise PastEventError("Cannot cancel a time slot that has already started.")

        slot.status = TimeSlotStatus.CANCELLED
        slot.updated_at = now

        cancelled = []
        for booking in booking_repo.find_bookings_for_slot(slot.id):
            if self.lifecycle.can(booking, "cancel_by_provider"):
                self.lifecycle.cancel_by_provider(booking, now)
                cancelled.append(booking.public_id)
                log_event(
                    "BOOKING_CANCEL_BY_PROVIDER",
                    user_id=requester.user_id,
                    entity="booking",
                    entity_id=booking.public_id,
                    metadata={"slot_id": slot.public_id},
                    commit=False,
                )

        try:
            slot_repo.save_time_slot(slot)
            log_event(
                "SLOT_CANCEL",
                user_id=requester.user_id,
                entity="time_slot",
                entity_id=slot.public_id,
                metadata={"cancelled_bookings": len(cancelled)},
                commit=False,
            )
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConflictError("The time slot was modified concurrently.")
        return slot

    def get_time_slot(self, slot_id):
        return self._load_slot(slot_id)

    def list_time_slots(self, service_id, start=None, end=None, available_only=True):
        service = self._load_service(service_id)
        statuses = [TimeSlotStatus.AVAILABLE] if available_only else None
        return slot_repo.find_slots_for_service(service.id, start=start, end=end, statuses=statuses)

    # ---------- bookings ----------

    def create_booking(self, requester, slot_id, client_id, notes=None):
        ensure_admin_or_owner(requester, client_id, "You can only book for yourself.")

        client = user_repo.find_user_by_id(client_id)
        if not client:
            raise UserNotFoundError(f"User with id {client_id} not found.")
        if not client.is_active:
            raise AccessDeniedError("Inactive users cannot book time slots.")

        slot = self._load_slot(slot_id, for_update=True)

        if slot.status != TimeSlotStatus.AVAILABLE:
            raise ServiceNotAvailableError(
                f"This time slot is not available for booking. Status: {slot.status}"
            )

        now = utcnow()
        if slot.start_time <= now:
            raise PastEventError("Cannot book a time slot that has already started.")

        # Fresh count inside this transaction, never a cached one.
        active = self.capacity.count_active(slot.id)
        if active >= slot.capacity:
            raise ServiceNotAvailableError("This time slot is full.")

        if booking_repo.exists_booking_for_client_and_slot(client.id, slot.id):
            raise DuplicateBookingError("You already have a booking for this time slot.")

        booking = Booking(
            slot_id=slot.id,
            client_id=client.id,
            status=BookingStatus.CONFIRMED,
            price_paid=slot.price,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        try:
            booking_repo.save_booking(booking)
            if active + 1 >= slot.capacity:
                slot.status = TimeSlotStatus.FULL
            # always written, so the version check runs even when the status stays put
            slot.updated_at = now
            slot_repo.save_time_slot(slot)
            log_event(
                "BOOKING_CREATE",
                user_id=requester.user_id,
                entity="booking",
                entity_id=booking.public_id,
                metadata={"slot_id": slot.public_id, "client_id": client.id, "seats_taken": active + 1},
                commit=False,
            )
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise DuplicateBookingError("You already have a booking for this time slot.")
        except StaleDataError:
            db.session.rollback()
            raise ServiceNotAvailableError("This time slot changed while booking; it may be full.")
        return booking

    def cancel_booking(self, requester, booking_id):
        booking = self._load_booking(booking_id)
        ensure_admin_or_owner(requester, booking.client_id, "You do not have permission to cancel this booking.")

        slot = slot_repo.find_time_slot_by_id(booking.slot_id, for_update=True)
        now = utcnow()
        self.lifecycle.cancel(booking, slot.start_time, now)

        # A seat is free again: a FULL slot reopens without further checks.
        if slot.status == TimeSlotStatus.FULL:
            slot.status = TimeSlotStatus.AVAILABLE
        slot.updated_at = now

        try:
            booking_repo.save_booking(booking)
            slot_repo.save_time_slot(slot)
            log_event(
                "BOOKING_CANCEL",
                user_id=requester.user_id,
                entity="booking",
                entity_id=booking.public_id,
                metadata={"slot_id": slot.public_id, "slot_status": slot.status},
                commit=False,
            )
            db.session.commit()
        except StaleDataError:
            db.session.rollback()
            raise ConflictError("The time slot was modified concurrently.")
        return booking

    def confirm_booking(self, requester, booking_id):
        booking = self._load_booking(booking_id)
        slot = slot_repo.find_time_slot_by_id(booking.slot_id)
        ensure_admin_or_owner(
            requester, self.provider_id_for(slot),
            "Only the provider or an administrator can confirm bookings.",
        )
        self.lifecycle.confirm(booking)
        booking_repo.save_booking(booking)
        log_event(
            "BOOKING_CONFIRM",
            user_id=requester.user_id,
            entity="booking",
            entity_id=booking.public_id,
            commit=False,
        )
        db.session.commit()
        return booking

    def get_booking(self, requester, booking_id):
        booking = self._load_booking(booking_id)
        slot = slot_repo.find_time_slot_by_id(booking.slot_id)
        ensure_admin_or_any_owner(
            requester, (booking.client_id, self.provider_id_for(slot)),
            "You do not have permission to view this booking.",
        )
        return booking

    def list_my_bookings(self, requester, status=None, limit=200):
        ensure_authenticated(requester)
        if status is not None and status not in BookingStatus.ALL:
            raise InvalidInputError(f"Unknown booking status: {status}")
        return booking_repo.find_bookings_for_client(requester.user_id, status=status, limit=limit)

    def list_slot_bookings(self, requester, slot_id):
        slot = self._load_slot(slot_id)
        ensure_admin_or_owner(
            requester, self.provider_id_for(slot),
            "Only the provider or an administrator can list bookings of a time slot.",
        )
        return booking_repo.find_bookings_for_slot(slot.id)


slot_booking = SlotBookingOrchestrator()
