from flask import Blueprint, request, jsonify, g

from services import offered_service_service as catalog
from services.validation import parse_user_id
from utils.auth_context import current_requester, login_required
from utils.serializers import service_json

services_bp = Blueprint("offered_services", __name__, url_prefix="/services")


def _flag(name, default):
    raw = request.args.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes")


@services_bp.post("")
@login_required
def create_service():
    data = request.get_json(silent=True) or {}
    service = catalog.create_offered_service(
        current_requester(),
        owner_id=parse_user_id(data.get("owner_id", g.user.id), "owner_id"),
        name=data.get("name"),
        description=data.get("description"),
        default_duration_minutes=data.get("default_duration_minutes"),
        price=data.get("price"),
        capacity=data.get("capacity"),
        is_active=data.get("is_active", True),
    )
    return jsonify(service_json(service)), 201


@services_bp.get("")
def search_services():
    rows = catalog.search_services(
        name_contains=(request.args.get("name") or "").strip() or None,
        owner_id=request.args.get("owner_id", type=int),
        active_only=True,
    )
    return jsonify([service_json(s) for s in rows]), 200


@services_bp.get("/me")
@login_required
def my_services():
    rows = catalog.list_my_services(
        current_requester(),
        name_contains=(request.args.get("name") or "").strip() or None,
        active_only=_flag("active", False),
    )
    return jsonify([service_json(s) for s in rows]), 200


@services_bp.get("/<service_id>")
def get_service(service_id):
    return jsonify(service_json(catalog.get_offered_service(service_id))), 200


@services_bp.patch("/<service_id>")
@login_required
def update_service(service_id):
    data = request.get_json(silent=True) or {}
    service = catalog.update_offered_service(
        current_requester(),
        service_id,
        name=data.get("name"),
        description=data.get("description"),
        default_duration_minutes=data.get("default_duration_minutes"),
        price=data.get("price"),
        capacity=data.get("capacity"),
        is_active=data.get("is_active"),
    )
    return jsonify(service_json(service)), 200


@services_bp.delete("/<service_id>")
@login_required
def delete_service(service_id):
    catalog.delete_offered_service(current_requester(), service_id)
    return jsonify(message="Service deleted"), 200
