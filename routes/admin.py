from flask import Blueprint, jsonify, g, request

from models.audit_log import AUDITED_ENTITIES, AuditLog
from security.rbac import require_roles
from services import offered_service_service as catalog
from services import user_service
from services.errors import InvalidInputError
from services.requester import ADMIN
from utils.audit import log_event
from utils.auth_context import current_requester, login_required
from utils.serializers import service_json, user_json
from utils.time import isoformat

admin_bp = Blueprint("admin", __name__, url_prefix="/admin")


# ---------- users ----------
@admin_bp.get("/users")
@require_roles(ADMIN)
def list_users():
    rows = user_service.list_users(current_requester(), role=request.args.get("role"))
    return jsonify([user_json(u) for u in rows]), 200


@admin_bp.post("/users")
@require_roles(ADMIN)
def create_user():
    data = request.get_json(silent=True) or {}
    user = user_service.create_user(
        current_requester(),
        data.get("username"),
        data.get("email"),
        data.get("password") or "",
        roles=data.get("roles"),
        is_active=data.get("is_active", True),
    )
    return jsonify(user_json(user)), 201


# Owners reach their own profile here as well; the service layer decides.
@admin_bp.get("/users/<int:user_id>")
@login_required
def get_user(user_id):
    return jsonify(user_json(user_service.get_user(current_requester(), user_id))), 200


@admin_bp.patch("/users/<int:user_id>")
@login_required
def update_user(user_id):
    data = request.get_json(silent=True) or {}
    user = user_service.update_user(
        current_requester(),
        user_id,
        username=data.get("username"),
        email=data.get("email"),
        password=data.get("password"),
        roles=data.get("roles"),
        is_active=data.get("is_active"),
    )
    return jsonify(user_json(user)), 200


@admin_bp.delete("/users/<int:user_id>")
@login_required
def delete_user(user_id):
    user_service.delete_user(current_requester(), user_id)
    return jsonify(message="User deleted"), 200


# ---------- catalogue ----------
@admin_bp.get("/services")
@require_roles(ADMIN)
def list_services():
    rows = catalog.list_all_services(
        current_requester(),
        name_contains=(request.args.get("name") or "").strip() or None,
        owner_id=request.args.get("owner_id", type=int),
    )
    return jsonify([service_json(s) for s in rows]), 200


# ---------- audit trail ----------
@admin_bp.get("/audit-logs")
@require_roles(ADMIN)
def list_audit_logs():
    limit = request.args.get("limit", type=int) or 200
    limit = max(1, min(limit, 500))

    q = AuditLog.query
    action = request.args.get("action")
    if action:
        q = q.filter(AuditLog.action == action)
    user_id = request.args.get("user_id", type=int)
    if user_id is not None:
        q = q.filter(AuditLog.user_id == user_id)
    entity = request.args.get("entity")
    if entity:
        if entity not in AUDITED_ENTITIES:
            raise InvalidInputError(f"entity must be one of: {', '.join(AUDITED_ENTITIES)}")
        q = q.filter(AuditLog.entity == entity)
    entity_id = request.args.get("entity_id")
    if entity_id:
        q = q.filter(AuditLog.entity_id == entity_id)

    rows = q.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(limit).all()
    log_event("AUDIT_LOG_VIEW", user_id=g.user.id, metadata={"count": len(rows)})

    return jsonify([
        {
            "id": r.id,
            "created_at": isoformat(r.timestamp),
            "user_id": r.user_id,
            "action": r.action,
            "entity": r.entity,
            "entity_id": r.entity_id,
            "ip": r.ip,
            "user_agent": r.user_agent,
            "metadata": r.details,
        }
        for r in rows
    ]), 200
