from flask import Blueprint, request, jsonify, g

from services.errors import InvalidInputError
from services.reservation_service import reservations
from services.validation import parse_user_id
from utils.auth_context import current_requester, login_required
from utils.serializers import reservation_json
from utils.time import instant_field, parse_instant

reservations_bp = Blueprint("reservations", __name__, url_prefix="/reservations")


def _window_args():
    bounds = {}
    for key, name in (("from", "start"), ("to", "end")):
        raw = request.args.get(key)
        if not raw:
            bounds[name] = None
            continue
        try:
            bounds[name] = parse_instant(raw)
        except ValueError:
            raise InvalidInputError(f"Invalid {key}. Use ISO e.g. 2026-01-20T18:00:00")
    return bounds


@reservations_bp.post("")
@login_required
def create_reservation():
    data = request.get_json(silent=True) or {}
    service_id = data.get("service_id")
    if not service_id:
        raise InvalidInputError("service_id required")

    reservation = reservations.create_reservation(
        current_requester(),
        parse_user_id(data.get("owner_id", g.user.id), "owner_id"),
        service_id,
        instant_field(data, "start_time"),
        instant_field(data, "end_time"),
        price=data.get("price"),
        notes=data.get("notes"),
    )
    return jsonify(reservation_json(reservation)), 201


@reservations_bp.get("/me")
@login_required
def my_reservations():
    rows = reservations.list_reservations_for_owner(
        current_requester(),
        g.user.id,
        service_id=request.args.get("service_id"),
        **_window_args(),
    )
    return jsonify([reservation_json(r) for r in rows]), 200


@reservations_bp.get("/service/<service_id>")
@login_required
def service_reservations(service_id):
    rows = reservations.list_reservations_for_service(current_requester(), service_id, **_window_args())
    return jsonify([reservation_json(r) for r in rows]), 200


@reservations_bp.get("/admin")
@login_required
def admin_reservations():
    rows = reservations.list_reservations_admin(
        current_requester(),
        owner_id=request.args.get("owner_id", type=int),
        service_id=request.args.get("service_id"),
        **_window_args(),
    )
    return jsonify([reservation_json(r) for r in rows]), 200


@reservations_bp.get("/<reservation_id>")
@login_required
def get_reservation(reservation_id):
    return jsonify(reservation_json(reservations.get_reservation(current_requester(), reservation_id))), 200


@reservations_bp.patch("/<reservation_id>")
@login_required
def update_reservation(reservation_id):
    data = request.get_json(silent=True) or {}
    reservation = reservations.update_reservation(
        current_requester(),
        reservation_id,
        start_time=instant_field(data, "start_time", required=False),
        end_time=instant_field(data, "end_time", required=False),
        notes=data.get("notes"),
        price=data.get("price"),
        owner_id=parse_user_id(data.get("owner_id"), "owner_id"),
        service_id=data.get("service_id"),
    )
    return jsonify(reservation_json(reservation)), 200


@reservations_bp.delete("/<reservation_id>")
@login_required
def delete_reservation(reservation_id):
    reservations.delete_reservation(current_requester(), reservation_id)
    return jsonify(message="Reservation deleted"), 200


@reservations_bp.post("/<reservation_id>/confirm")
@login_required
def confirm_reservation(reservation_id):
    return jsonify(reservation_json(reservations.confirm_reservation(current_requester(), reservation_id))), 200


@reservations_bp.post("/<reservation_id>/cancel")
@login_required
def cancel_reservation(reservation_id):
    return jsonify(reservation_json(reservations.cancel_reservation(current_requester(), reservation_id))), 200
