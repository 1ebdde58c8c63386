from flask import Blueprint, request, jsonify, g, current_app

from services.booking_service import slot_booking
from services.errors import InvalidInputError
from services.validation import parse_user_id
from utils.auth_context import current_requester, login_required
from utils.serializers import booking_json, slot_json
from utils.time import instant_field, parse_instant

booking_bp = Blueprint("booking", __name__)


def _query_instant(name):
    raw = request.args.get(name)
    if not raw:
        return None
    try:
        return parse_instant(raw)
    except ValueError:
        raise InvalidInputError(f"Invalid {name}. Use ISO e.g. 2026-01-20T18:00:00")


# ---------- PROVIDER/ADMIN: publish and manage slots ----------
@booking_bp.post("/services/<service_id>/slots")
@login_required
def create_slot(service_id):
    data = request.get_json(silent=True) or {}
    slot = slot_booking.create_time_slot(
        current_requester(),
        service_id,
        instant_field(data, "start_time"),
        instant_field(data, "end_time"),
        capacity=data.get("capacity"),
        price=data.get("price"),
    )
    return jsonify(slot_json(slot)), 201


@booking_bp.patch("/slots/<slot_id>")
@login_required
def update_slot(slot_id):
    data = request.get_json(silent=True) or {}
    slot = slot_booking.update_time_slot(
        current_requester(),
        slot_id,
        start_time=instant_field(data, "start_time", required=False),
        end_time=instant_field(data, "end_time", required=False),
        capacity=data.get("capacity"),
        price=data.get("price"),
    )
    return jsonify(slot_json(slot)), 200


@booking_bp.post("/slots/<slot_id>/cancel")
@login_required
def cancel_slot(slot_id):
    slot = slot_booking.cancel_time_slot(current_requester(), slot_id)
    return jsonify(slot_json(slot)), 200


@booking_bp.get("/slots/<slot_id>/bookings")
@login_required
def slot_bookings(slot_id):
    rows = slot_booking.list_slot_bookings(current_requester(), slot_id)
    return jsonify([booking_json(b) for b in rows]), 200


# ---------- EVERYONE: browse slots ----------
@booking_bp.get("/services/<service_id>/slots")
def list_slots(service_id):
    include_all = (request.args.get("all") or "").lower() in ("1", "true", "yes")
    rows = slot_booking.list_time_slots(
        service_id,
        start=_query_instant("from"),
        end=_query_instant("to"),
        available_only=not include_all,
    )
    return jsonify([slot_json(s) for s in rows]), 200


@booking_bp.get("/slots/<slot_id>")
def get_slot(slot_id):
    return jsonify(slot_json(slot_booking.get_time_slot(slot_id))), 200


# ---------- CLIENTS: book and cancel ----------
@booking_bp.post("/bookings")
@login_required
def create_booking():
    data = request.get_json(silent=True) or {}
    slot_id = data.get("slot_id")
    if not slot_id:
        raise InvalidInputError("slot_id required")

    booking = slot_booking.create_booking(
        current_requester(),
        slot_id,
        parse_user_id(data.get("client_id", g.user.id), "client_id"),
        notes=(data.get("notes") or "").strip() or None,
    )
    return jsonify(booking_json(booking)), 201


@booking_bp.get("/bookings/me")
@login_required
def my_bookings():
    rows = slot_booking.list_my_bookings(
        current_requester(),
        status=request.args.get("status"),
        limit=current_app.config.get("BOOKING_LIST_LIMIT", 200),
    )
    return jsonify([booking_json(b) for b in rows]), 200


@booking_bp.get("/bookings/<booking_id>")
@login_required
def get_booking(booking_id):
    return jsonify(booking_json(slot_booking.get_booking(current_requester(), booking_id))), 200


@booking_bp.post("/bookings/<booking_id>/cancel")
@login_required
def cancel_booking(booking_id):
    booking = slot_booking.cancel_booking(current_requester(), booking_id)
    return jsonify(booking_json(booking)), 200


@booking_bp.post("/bookings/<booking_id>/confirm")
@login_required
def confirm_booking(booking_id):
    booking = slot_booking.confirm_booking(current_requester(), booking_id)
    return jsonify(booking_json(booking)), 200
