from sqlalchemy import func

from models import db
from models.reservation import Reservation, ReservationStatus


def find_reservation_by_public_id(public_id):
    return Reservation.query.filter_by(public_id=public_id).first()


def find_overlapping_reservations(service_id, start_time, end_time, exclude_reservation_id=None):
    """Non-cancelled reservations of ``service_id`` sharing an instant with [start, end)."""
    q = Reservation.query.filter(
        Reservation.service_id == service_id,
        Reservation.status != ReservationStatus.CANCELLED,
        Reservation.start_time < end_time,
        Reservation.end_time > start_time,
    )
    if exclude_reservation_id is not None:
        q = q.filter(Reservation.id != exclude_reservation_id)
    return q.order_by(Reservation.start_time.asc()).all()


def count_active_reservations_in_window(service_id, start_time, end_time=None) -> int:
    """PENDING/CONFIRMED reservations of a service ending after ``start_time`` (and starting before ``end_time``)."""
    q = db.session.query(func.count(Reservation.id)).filter(
        Reservation.service_id == service_id,
        Reservation.status.in_(ReservationStatus.ACTIVE),
        Reservation.end_time > start_time,
    )
    if end_time is not None:
        q = q.filter(Reservation.start_time < end_time)
    return q.scalar() or 0


def find_reservations(owner_id=None, service_id=None, start=None, end=None, limit=200):
    q = Reservation.query
    if owner_id is not None:
        q = q.filter(Reservation.owner_id == owner_id)
    if service_id is not None:
        q = q.filter(Reservation.service_id == service_id)
    if start is not None:
        q = q.filter(Reservation.end_time > start)
    if end is not None:
        q = q.filter(Reservation.start_time < end)
    return q.order_by(Reservation.start_time.asc(), Reservation.id.asc()).limit(limit).all()


def save_reservation(reservation):
    db.session.add(reservation)
    db.session.flush()
    return reservation


def delete_reservation(reservation):
    db.session.delete(reservation)
    db.session.flush()
