from functools import wraps
from flask import g, jsonify

from services.errors import AccessDeniedError

def require_roles(*role_names: str):
    """
    Usage: @require_roles("ADMIN")
    """
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            user = getattr(g, "user", None)
            if user is None:
                return jsonify(error="Authentication required"), 401

            user_roles = {r.name for r in user.roles}
            if "ADMIN" not in user_roles and not user_roles.intersection(set(role_names)):
                return jsonify(error="Forbidden"), 403

            return fn(*args, **kwargs)
        return wrapper
    return decorator


# ---------- explicit guards for the service layer ----------

def ensure_authenticated(requester, message="Authentication required"):
    if requester is None or not requester.authenticated:
        raise AccessDeniedError(message)


def ensure_admin(requester, message="Only administrators can perform this action"):
    ensure_authenticated(requester)
    if not requester.is_admin:
        raise AccessDeniedError(message)


def ensure_admin_or_owner(requester, owner_id, message="You do not have permission to access this resource"):
    ensure_authenticated(requester)
    if not requester.is_admin and not requester.is_owner(owner_id):
        raise AccessDeniedError(message)


def ensure_admin_or_any_owner(requester, owner_ids, message="You do not have permission to access this resource"):
    """Passes for admins or when the requester is one of ``owner_ids``."""
    ensure_authenticated(requester)
    if requester.is_admin:
        return
    if not any(requester.is_owner(owner_id) for owner_id in owner_ids):
        raise AccessDeniedError(message)
