"""JSON shapes returned by the HTTP layer. Related rows are referenced by public id."""
from repositories.offered_services import find_service_by_id
from repositories.slots import find_time_slot_by_id
from services.capacity import capacity_tracker
from utils.time import isoformat


def _money(value):
    return str(value) if value is not None else None


def _public_id(row):
    return row.public_id if row is not None else None


def user_json(u):
    return {
        "id": u.id,
        "public_id": u.public_id,
        "username": u.username,
        "email": u.email,
        "roles": sorted(u.role_names),
        "is_active": u.is_active,
        "created_at": isoformat(u.created_at),
    }


def provider_json(u):
    return {
        "id": u.id,
        "public_id": u.public_id,
        "username": u.username,
    }


def service_json(s):
    return {
        "id": s.public_id,
        "owner_id": s.owner_id,
        "name": s.name,
        "description": s.description,
        "default_duration_minutes": s.default_duration_minutes,
        "price": _money(s.price),
        "capacity": s.capacity,
        "is_active": s.is_active,
        "created_at": isoformat(s.created_at),
    }


def slot_json(slot):
    return {
        "id": slot.public_id,
        "service_id": _public_id(find_service_by_id(slot.service_id)),
        "start_time": isoformat(slot.start_time),
        "end_time": isoformat(slot.end_time),
        "capacity": slot.capacity,
        "seats_left": capacity_tracker.remaining(slot),
        "price": _money(slot.price),
        "status": slot.status,
    }


def booking_json(b):
    return {
        "id": b.public_id,
        "slot_id": _public_id(find_time_slot_by_id(b.slot_id)),
        "client_id": b.client_id,
        "status": b.status,
        "price_paid": _money(b.price_paid),
        "notes": b.notes,
        "created_at": isoformat(b.created_at),
        "updated_at": isoformat(b.updated_at),
    }


def reservation_json(r):
    return {
        "id": r.public_id,
        "owner_id": r.owner_id,
        "service_id": _public_id(find_service_by_id(r.service_id)),
        "start_time": isoformat(r.start_time),
        "end_time": isoformat(r.end_time),
        "status": r.status,
        "price": _money(r.price),
        "notes": r.notes,
        "created_at": isoformat(r.created_at),
    }
