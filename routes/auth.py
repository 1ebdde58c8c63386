from flask import Blueprint, request, jsonify, current_app, g

from repositories.users import find_user_by_login
from security.bruteforce import is_locked, register_failure, reset_attempts
from security.csrf import issue_csrf_token
from security.password import verify_password
from security.password_policy import password_strength
from security.session import create_session, revoke_session, revoke_all_sessions
from services import user_service
from utils.audit import log_event
from utils.auth_context import login_required
from utils.serializers import user_json


auth_bp = Blueprint("auth", __name__, url_prefix="/auth")


def _cookie_name():
    return current_app.config.get("AUTH_COOKIE_NAME", "booking_session")


@auth_bp.post("/register")
def register():
    data = request.get_json(silent=True) or {}
    user = user_service.register_user(
        data.get("username"),
        data.get("email"),
        data.get("password") or "",
    )
    return jsonify(message="Registered successfully", user=user_json(user)), 201


@auth_bp.post("/login")
def login():
    data = request.get_json(silent=True) or {}
    identifier = (data.get("username") or data.get("email") or "").strip()
    password = data.get("password") or ""

    locked, seconds_left = is_locked(identifier)
    if locked:
        log_event("LOGIN_LOCKED", metadata={"identifier": identifier, "seconds_left": seconds_left})
        return jsonify(error="Account temporarily locked. Try again later.", retry_after_seconds=seconds_left), 429

    user = find_user_by_login(identifier)
    if not user or not user.is_active or not verify_password(password, user.password_hash):
        fail_count, locked_now = register_failure(identifier)
        log_event(
            "LOGIN_FAIL",
            user_id=user.id if user else None,
            metadata={"identifier": identifier, "fail_count": fail_count, "locked_now": locked_now}
        )
        if locked_now:
            return jsonify(error="Too many failed attempts. Account locked.", lockout_minutes=current_app.config.get("LOCKOUT_MINUTES", 10)), 429
        return jsonify(error="Invalid credentials"), 401

    reset_attempts(identifier)

    # Rotate: one live session per user
    revoked_count = revoke_all_sessions(user.id)
    raw_token = create_session(user.id)

    resp = jsonify(message="Login OK", user=user_json(user))
    resp.set_cookie(
        _cookie_name(),
        raw_token,
        httponly=True,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        max_age=current_app.config.get("SESSION_LIFETIME_SECONDS", 8 * 60 * 60),
        path="/",
    )
    resp = issue_csrf_token(resp)

    log_event("LOGIN_SUCCESS", user_id=user.id, metadata={"revoked_sessions": revoked_count})
    return resp, 200


@auth_bp.post("/password_strength")
def check_password_strength():
    data = request.get_json(silent=True) or {}
    return jsonify(password_strength(data.get("password") or "")), 200


@auth_bp.get("/me")
@login_required
def me():
    return jsonify(user_json(g.user)), 200


@auth_bp.post("/logout")
@login_required
def logout():
    revoke_session(request.cookies.get(_cookie_name()))
    log_event("LOGOUT", user_id=g.user.id)

    resp = jsonify(message="Logged out")
    resp.delete_cookie(_cookie_name(), path="/")
    return resp, 200


@auth_bp.post("/logout_all")
@login_required
def logout_all():
    count = revoke_all_sessions(g.user.id)
    log_event("LOGOUT_ALL", user_id=g.user.id, metadata={"revoked_sessions": count})

    resp = jsonify(message="Logged out everywhere", revoked_sessions=count)
    resp.delete_cookie(_cookie_name(), path="/")
    return resp, 200
