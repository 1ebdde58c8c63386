import secrets
from flask import request, g, current_app

from services.errors import AccessDeniedError

CSRF_COOKIE = "csrf_token"
CSRF_HEADER = "X-CSRF-Token"

UNSAFE_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})

# Reachable before a session cookie exists
CSRF_EXEMPT_PATHS = frozenset({
    "/auth/login",
    "/auth/register",
    "/health",
})


def issue_csrf_token(resp):
    """Set a fresh token on login; the client echoes it in ``X-CSRF-Token``."""
    token = secrets.token_urlsafe(32)
    resp.set_cookie(
        CSRF_COOKIE,
        token,
        httponly=False,
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        samesite=current_app.config.get("SESSION_COOKIE_SAMESITE", "Lax"),
        path="/",
    )
    return resp


def csrf_applies() -> bool:
    """Booking, slot and reservation writes made with a session cookie."""
    if request.method not in UNSAFE_METHODS or request.path in CSRF_EXEMPT_PATHS:
        return False
    return getattr(g, "user", None) is not None


def require_csrf():
    cookie_token = request.cookies.get(CSRF_COOKIE)
    header_token = request.headers.get(CSRF_HEADER)
    if not cookie_token or not header_token or not secrets.compare_digest(cookie_token, header_token):
        raise AccessDeniedError("CSRF validation failed")
