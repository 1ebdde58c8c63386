from decimal import Decimal

from services.errors import InvalidInputError


def parse_price(value):
    """Amounts are non-negative Decimals with two places; ``None`` passes through."""
    if value is None:
        return None
    try:
        price = Decimal(str(value))
    except ArithmeticError:
        raise InvalidInputError(f"Invalid price: {value!r}")
    if not price.is_finite() or price < 0:
        raise InvalidInputError("Price must be a non-negative amount.")
    return price.quantize(Decimal("0.01"))


def parse_positive_int(value, field_name):
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{field_name} must be a positive integer.")
    return value


def parse_name(value, field_name="name", max_len=120):
    if not isinstance(value, str) or not value.strip():
        raise InvalidInputError(f"{field_name} is required.")
    value = value.strip()
    if len(value) > max_len:
        raise InvalidInputError(f"{field_name} must be at most {max_len} characters.")
    return value


def parse_bool(value, field_name):
    if not isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be a boolean.")
    return value


def parse_user_id(value, field_name="user_id"):
    """User ids arrive as JSON ints or digit strings; ``None`` passes through."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise InvalidInputError(f"{field_name} must be a user id.")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value <= 0:
        raise InvalidInputError(f"{field_name} must be a user id.")
    return value
