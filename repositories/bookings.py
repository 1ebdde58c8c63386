from sqlalchemy import func

from models import db
from models.booking import Booking, BookingStatus


def find_booking_by_public_id(public_id):
    return Booking.query.filter_by(public_id=public_id).first()


def count_bookings_for_slot(slot_id) -> int:
    """Fresh COUNT(*) of seat-occupying bookings; never served from the identity map."""
    return (
        db.session.query(func.count(Booking.id))
        .filter(Booking.slot_id == slot_id, Booking.status.in_(BookingStatus.ACTIVE))
        .scalar()
    ) or 0


def exists_booking_for_client_and_slot(client_id, slot_id) -> bool:
    q = Booking.query.filter(
        Booking.client_id == client_id,
        Booking.slot_id == slot_id,
        Booking.status.in_(BookingStatus.ACTIVE),
    )
    return db.session.query(q.exists()).scalar()


def find_bookings_for_slot(slot_id, statuses=None):
    q = Booking.query.filter(Booking.slot_id == slot_id)
    if statuses:
        q = q.filter(Booking.status.in_(statuses))
    return q.order_by(Booking.created_at.asc(), Booking.id.asc()).all()


def find_bookings_for_client(client_id, status=None, limit=200):
    q = Booking.query.filter(Booking.client_id == client_id)
    if status:
        q = q.filter(Booking.status == status)
    return q.order_by(Booking.created_at.desc(), Booking.id.desc()).limit(limit).all()


def save_booking(booking):
    db.session.add(booking)
    db.session.flush()
    return booking
