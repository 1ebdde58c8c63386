from datetime import datetime, timezone

from services.errors import InvalidInputError


def utcnow() -> datetime:
    """Naive UTC "now"; every instant in the database is stored naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def parse_instant(value):
    """Parse an ISO-8601 string into a naive UTC datetime.

    Offsets are honoured and converted; strings without an offset are taken as UTC.
    """
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def isoformat(dt):
    return dt.isoformat() if dt else None


def instant_field(data, key, required=True):
    """Read an ISO-8601 field from a JSON body."""
    value = (data or {}).get(key)
    if value in (None, ""):
        if required:
            raise InvalidInputError(f"{key} is required")
        return None
    try:
        return parse_instant(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid {key}. Use ISO e.g. 2026-01-20T18:00:00")
