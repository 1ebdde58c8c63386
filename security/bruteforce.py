from datetime import timedelta
from flask import request, current_app

from models import db
from models.login_attempt import LoginAttempt
from utils.time import utcnow

def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr) or "unknown"

def _row(identifier: str):
    return LoginAttempt.query.filter_by(identifier=identifier, ip=_client_ip()).first()

def is_locked(identifier: str) -> tuple[bool, int]:
    """
    Returns (locked, seconds_remaining)
    """
    row = _row(identifier)
    if not row or not row.locked_until:
        return False, 0

    now = utcnow()
    if row.locked_until <= now:
        return False, 0

    seconds = int((row.locked_until - now).total_seconds())
    return True, max(seconds, 1)

def register_failure(identifier: str) -> tuple[int, bool]:
    """
    Increments failure counter. Returns (fail_count, locked_now)
    """
    now = utcnow()
    row = _row(identifier)
    if not row:
        row = LoginAttempt(identifier=identifier, ip=_client_ip(), fail_count=0)
        db.session.add(row)

    row.fail_count += 1
    row.last_fail_at = now

    max_attempts = current_app.config.get("MAX_LOGIN_ATTEMPTS", 5)
    lock_minutes = current_app.config.get("LOCKOUT_MINUTES", 10)

    locked_now = row.fail_count >= max_attempts
    if locked_now:
        row.locked_until = now + timedelta(minutes=lock_minutes)

    db.session.commit()
    return row.fail_count, locked_now

def reset_attempts(identifier: str):
    row = _row(identifier)
    if not row:
        return
    row.fail_count = 0
    row.last_fail_at = None
    row.locked_until = None
    db.session.commit()
