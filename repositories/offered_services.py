from models import db
from models.offered_service import OfferedService
from models.slot import TimeSlot
from models.booking import Booking
from models.reservation import Reservation


def find_service_by_id(service_id):
    if service_id is None:
        return None
    return db.session.get(OfferedService, service_id)


def find_service_by_public_id(public_id):
    return OfferedService.query.filter_by(public_id=public_id).first()


def lock_service(service_id):
    return OfferedService.query.filter_by(id=service_id).with_for_update().first()


def exists_by_name_and_owner(name_normalized: str, owner_id: int, exclude_service_id=None) -> bool:
    q = OfferedService.query.filter(
        OfferedService.owner_id == owner_id,
        OfferedService.name_normalized == name_normalized,
    )
    if exclude_service_id is not None:
        q = q.filter(OfferedService.id != exclude_service_id)
    return db.session.query(q.exists()).scalar()


def find_services(owner_id=None, name_contains=None, active_only=False, limit=200):
    q = OfferedService.query
    if owner_id is not None:
        q = q.filter(OfferedService.owner_id == owner_id)
    if name_contains:
        q = q.filter(OfferedService.name.ilike(f"%{name_contains.strip()}%"))
    if active_only:
        q = q.filter(OfferedService.is_active.is_(True))
    return q.order_by(OfferedService.name.asc(), OfferedService.id.asc()).limit(limit).all()


def save_service(service):
    db.session.add(service)
    db.session.flush()
    return service


def delete_service(service):
    """Delete a service with its slots, their bookings and its reservations.

    Done explicitly because SQLite does not enforce ON DELETE CASCADE unless
    foreign keys are switched on.
    """
    slot_ids = db.select(TimeSlot.id).where(TimeSlot.service_id == service.id)
    Booking.query.filter(Booking.slot_id.in_(slot_ids)).delete(synchronize_session=False)
    TimeSlot.query.filter(TimeSlot.service_id == service.id).delete(synchronize_session=False)
    Reservation.query.filter(Reservation.service_id == service.id).delete(synchronize_session=False)
    db.session.delete(service)
    db.session.flush()
