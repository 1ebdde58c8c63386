import uuid

from services.errors import InvalidIdentifierError


def parse_public_id(value, kind="resource") -> str:
    """Normalise an opaque public identifier (a UUID string) or raise InvalidIdentifierError."""
    if isinstance(value, uuid.UUID):
        return str(value)
    try:
        return str(uuid.UUID(str(value).strip()))
    except (ValueError, AttributeError, TypeError):
        raise InvalidIdentifierError(f"Invalid {kind} identifier: {value!r}")
