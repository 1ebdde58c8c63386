from sqlalchemy import or_

from models import db
from models.booking import Booking
from models.offered_service import OfferedService
from models.reservation import Reservation
from models.session import Session
from models.user import User, Role
from services.requester import PROVIDER


def find_user_by_id(user_id):
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def lock_user(user_id):
    """Load a user row with SELECT ... FOR UPDATE (serialises writers on that provider's calendar)."""
    return User.query.filter_by(id=user_id).with_for_update().first()


def find_user_by_login(identifier: str):
    ident = (identifier or "").strip()
    return User.query.filter(
        or_(User.username == ident, User.email == ident.lower())
    ).first()


def exists_by_username(username: str, exclude_user_id=None) -> bool:
    q = User.query.filter(User.username == username)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return db.session.query(q.exists()).scalar()


def exists_by_email(email: str, exclude_user_id=None) -> bool:
    q = User.query.filter(User.email == email)
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return db.session.query(q.exists()).scalar()


def find_roles(names):
    return Role.query.filter(Role.name.in_(set(names))).all()


def list_users(role=None, limit=200):
    q = User.query
    if role:
        q = q.join(User.roles).filter(Role.name == role)
    return q.order_by(User.created_at.desc(), User.id.desc()).limit(limit).all()


def find_public_providers(search=None, limit=200):
    q = (
        User.query.join(User.roles)
        .filter(Role.name == PROVIDER, User.is_active.is_(True))
    )
    if search:
        q = q.filter(User.username.ilike(f"%{search}%"))
    return q.order_by(User.username.asc()).limit(limit).all()


def save_user(user):
    db.session.add(user)
    db.session.flush()
    return user


def has_dependents(user_id) -> bool:
    """True while the user still owns services, bookings or reservations."""
    for model, column in (
        (OfferedService, OfferedService.owner_id),
        (Booking, Booking.client_id),
        (Reservation, Reservation.owner_id),
    ):
        if db.session.query(model.query.filter(column == user_id).exists()).scalar():
            return True
    return False


def delete_user(user):
    Session.query.filter(Session.user_id == user.id).delete(synchronize_session=False)
    db.session.delete(user)
    db.session.flush()
