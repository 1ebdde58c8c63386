"""
Reservation use cases.

A reservation books a service directly for an arbitrary window; the
service is a single exclusive resource, so no two non-cancelled
reservations of the same service may overlap.
"""
from models import db
from models.reservation import Reservation, ReservationStatus
from repositories import offered_services as service_repo
from repositories import reservations as reservation_repo
from repositories import users as user_repo
from security.rbac import ensure_admin, ensure_admin_or_owner, ensure_admin_or_any_owner
from services.errors import (
    AccessDeniedError,
    OfferedServiceNotFoundError,
    ReservationNotFoundError,
    ServiceNotAvailableError,
    UserNotFoundError,
)
from services.intervals import validate_time_range
from services.lifecycle import reservation_lifecycle
from services.overlap import reservation_overlap_checker
from services.validation import parse_price
from utils.audit import log_event
from utils.identifiers import parse_public_id
from utils.time import utcnow


class ReservationOrchestrator:

    def __init__(self, overlap_checker=None, lifecycle=None):
        self.overlap_checker = overlap_checker or reservation_overlap_checker
        self.lifecycle = lifecycle or reservation_lifecycle

    def _load_user(self, user_id):
        user = user_repo.find_user_by_id(user_id)
        if not user:
            raise UserNotFoundError(f"User with ID {user_id} not found.")
        return user

    def _load_service(self, service_id):
        service = service_repo.find_service_by_public_id(parse_public_id(service_id, "service"))
        if not service:
            raise OfferedServiceNotFoundError(f"Service with id {service_id} not found.")
        return service

    def _load_reservation(self, reservation_id):
        reservation = reservation_repo.find_reservation_by_public_id(parse_public_id(reservation_id, "reservation"))
        if not reservation:
            raise ReservationNotFoundError(f"Reservation with id {reservation_id} not found.")
        return reservation

    def _provider_id(self, reservation):
        return service_repo.find_service_by_id(reservation.service_id).owner_id

    def create_reservation(self, requester, owner_id, service_id, start_time, end_time, price=None, notes=None):
        ensure_admin_or_owner(
            requester, owner_id,
            f"You do not have permission to create a reservation for user ID {owner_id}.",
        )
        owner = self._load_user(owner_id)
        service = self._load_service(service_id)
        if not service.is_active:
            raise ServiceNotAvailableError(f"Service '{service.name}' is not active.")

        validate_time_range(start_time, end_time, "Start time must be before end time.")
        price = parse_price(price)

        service_repo.lock_service(service.id)
        self.overlap_checker.ensure_no_clash(service.id, start_time, end_time)

        now = utcnow()
        reservation = Reservation(
            owner_id=owner.id,
            service_id=service.id,
            start_time=start_time,
            end_time=end_time,
            status=ReservationStatus.PENDING,
            price=price if price is not None else service.price,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        reservation_repo.save_reservation(reservation)
        log_event(
            "RESERVATION_CREATE",
            user_id=requester.user_id,
            entity="reservation",
            entity_id=reservation.public_id,
            metadata={"service_id": service.public_id, "owner_id": owner.id},
            commit=False,
        )
        db.session.commit()
        return reservation

    def get_reservation(self, requester, reservation_id):
        reservation = self._load_reservation(reservation_id)
        ensure_admin_or_any_owner(
            requester, (reservation.owner_id, self._provider_id(reservation)),
            "You do not have permission to view this reservation.",
        )
        return reservation

    def update_reservation(self, requester, reservation_id, start_time=None, end_time=None,
                           notes=None, price=None, owner_id=None, service_id=None):
        reservation = self._load_reservation(reservation_id)
        ensure_admin_or_owner(
            requester, reservation.owner_id,
            "You do not have permission to update this reservation.",
        )
        if (owner_id is not None or service_id is not None) and not requester.is_admin:
            raise AccessDeniedError("Only administrators can move a reservation to another user or service.")
        self.lifecycle.ensure_editable(reservation)

        new_owner = self._load_user(owner_id) if owner_id is not None else None
        new_service = self._load_service(service_id) if service_id is not None else None
        target_service_id = new_service.id if new_service else reservation.service_id

        new_start = start_time if start_time is not None else reservation.start_time
        new_end = end_time if end_time is not None else reservation.end_time
        window_changed = new_start != reservation.start_time or new_end != reservation.end_time
        service_changed = target_service_id != reservation.service_id
        price = parse_price(price)

        # validated before anything on the entity is touched
        if window_changed or service_changed:
            validate_time_range(new_start, new_end, "Start time must be before end time.")
            service_repo.lock_service(target_service_id)
            self.overlap_checker.ensure_no_clash(
                target_service_id, new_start, new_end, exclude_reservation_id=reservation.id
            )

        reservation.start_time = new_start
        reservation.end_time = new_end
        if notes is not None:
            reservation.notes = notes
        if price is not None:
            reservation.price = price
        if new_owner is not None:
            reservation.owner_id = new_owner.id
        if new_service is not None:
            reservation.service_id = new_service.id
        reservation.updated_at = utcnow()

        reservation_repo.save_reservation(reservation)
        log_event(
            "RESERVATION_UPDATE",
            user_id=requester.user_id,
            entity="reservation",
            entity_id=reservation.public_id,
            metadata={"window_changed": window_changed, "service_changed": service_changed},
            commit=False,
        )
        db.session.commit()
        return reservation

    def delete_reservation(self, requester, reservation_id):
        reservation = self._load_reservation(reservation_id)
        ensure_admin_or_owner(
            requester, reservation.owner_id,
            "You do not have permission to delete this reservation.",
        )
        self.lifecycle.ensure_deletable(reservation)

        public_id = reservation.public_id
        reservation_repo.delete_reservation(reservation)
        log_event(
            "RESERVATION_DELETE",
            user_id=requester.user_id,
            entity="reservation",
            entity_id=public_id,
            commit=False,
        )
        db.session.commit()
        return True

    def confirm_reservation(self, requester, reservation_id):
        reservation = self._load_reservation(reservation_id)
        ensure_admin_or_owner(
            requester, self._provider_id(reservation),
            "Only the service provider or an administrator can confirm reservations.",
        )
        self.lifecycle.confirm(reservation)
        reservation_repo.save_reservation(reservation)
        log_event(
            "RESERVATION_CONFIRM",
            user_id=requester.user_id,
            entity="reservation",
            entity_id=reservation.public_id,
            commit=False,
        )
        db.session.commit()
        return reservation

    def cancel_reservation(self, requester, reservation_id):
        reservation = self._load_reservation(reservation_id)
        ensure_admin_or_owner(
            requester, reservation.owner_id,
            "You do not have permission to cancel this reservation.",
        )
        self.lifecycle.cancel(reservation)
        reservation_repo.save_reservation(reservation)
        log_event(
            "RESERVATION_CANCEL",
            user_id=requester.user_id,
            entity="reservation",
            entity_id=reservation.public_id,
            commit=False,
        )
        db.session.commit()
        return reservation

    # ---------- listings ----------

    def list_reservations_for_owner(self, requester, owner_id, service_id=None, start=None, end=None):
        ensure_admin_or_owner(requester, owner_id, "You can only view your own reservations.")
        self._load_user(owner_id)
        service_pk = self._load_service(service_id).id if service_id is not None else None
        return reservation_repo.find_reservations(owner_id=owner_id, service_id=service_pk, start=start, end=end)

    def list_reservations_for_service(self, requester, service_id, start=None, end=None):
        service = self._load_service(service_id)
        ensure_admin_or_owner(
            requester, service.owner_id,
            "Only the service provider or an administrator can list its reservations.",
        )
        return reservation_repo.find_reservations(service_id=service.id, start=start, end=end)

    def list_reservations_admin(self, requester, owner_id=None, service_id=None, start=None, end=None):
        ensure_admin(requester, "Only administrators can list reservations using admin filters.")
        service_pk = self._load_service(service_id).id if service_id is not None else None
        return reservation_repo.find_reservations(owner_id=owner_id, service_id=service_pk, start=start, end=end)

    def count_active_reservations_in_window(self, service_id, start_time, end_time=None):
        service = self._load_service(service_id)
        return reservation_repo.count_active_reservations_in_window(service.id, start_time, end_time)


reservations = ReservationOrchestrator()
