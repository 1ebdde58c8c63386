import re
from typing import List, Tuple

from flask import current_app, has_app_context

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")

_DEFAULTS = {
    "PASSWORD_MIN_LEN": 12,
    "PASSWORD_MAX_LEN": 128,
    "PASSWORD_REQUIRE_UPPER": True,
    "PASSWORD_REQUIRE_LOWER": True,
    "PASSWORD_REQUIRE_DIGIT": True,
    "PASSWORD_REQUIRE_SYMBOL": True,
}


def _cfg(name: str):
    if not has_app_context():
        return _DEFAULTS[name]
    return current_app.config.get(name, _DEFAULTS[name])


def _required_classes():
    checks = []
    if _cfg("PASSWORD_REQUIRE_UPPER"):
        checks.append((_UPPER, "Password must include at least 1 uppercase letter"))
    if _cfg("PASSWORD_REQUIRE_LOWER"):
        checks.append((_LOWER, "Password must include at least 1 lowercase letter"))
    if _cfg("PASSWORD_REQUIRE_DIGIT"):
        checks.append((_DIGIT, "Password must include at least 1 number"))
    if _cfg("PASSWORD_REQUIRE_SYMBOL"):
        checks.append((_SYMBOL, "Password must include at least 1 symbol"))
    return checks


def validate_password(pw: str) -> Tuple[bool, List[str]]:
    if not isinstance(pw, str):
        return False, ["Password must be a string"]

    errors: List[str] = []
    min_len = int(_cfg("PASSWORD_MIN_LEN"))
    max_len = int(_cfg("PASSWORD_MAX_LEN"))

    if len(pw) < min_len:
        errors.append(f"Password must be at least {min_len} characters")
    if len(pw) > max_len:
        errors.append(f"Password must be at most {max_len} characters")
    errors.extend(message for pattern, message in _required_classes() if not pattern.search(pw))

    return (len(errors) == 0), errors


def password_strength(pw: str) -> dict:
    """Score 0-4 plus feedback, for sign-up forms."""
    valid, errors = validate_password(pw)
    if not isinstance(pw, str):
        return {"score": 0, "valid": False, "feedback": errors}

    min_len = int(_cfg("PASSWORD_MIN_LEN"))
    checks = _required_classes()
    variety = sum(1 for pattern, _ in checks if pattern.search(pw))
    max_variety = max(1, len(checks))

    score = 0
    if len(pw) >= min_len:
        score += 1
    if len(pw) >= min_len + 4:
        score += 1
    if variety >= min(3, max_variety):
        score += 1
    if variety == max_variety and len(pw) >= min_len:
        score += 1

    feedback: List[str] = list(errors)
    if valid and len(pw) < min_len + 4:
        feedback.append("Use a longer passphrase for extra strength")
    if valid and variety < max_variety:
        feedback.append("Add more character variety to strengthen the password")

    return {"score": min(score, 4), "valid": valid, "feedback": feedback}
