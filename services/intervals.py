"""Half-open interval helpers. ``[start, end)``: touching endpoints never overlap."""
from services.errors import InvalidTimeRangeError


def overlaps(start_a, end_a, start_b, end_b) -> bool:
    return start_a < end_b and start_b < end_a


def validate_time_range(start_time, end_time, message="End time must be after start time."):
    if start_time is None or end_time is None:
        raise InvalidTimeRangeError("Start time and end time are required.")
    if not end_time > start_time:
        raise InvalidTimeRangeError(message)
