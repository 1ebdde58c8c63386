from .db import db
from .user import User, Role, user_roles
from .audit_log import AuditLog
from .session import Session
from .login_attempt import LoginAttempt
from .offered_service import OfferedService
from .slot import TimeSlot, TimeSlotStatus
from .booking import Booking, BookingStatus
from .reservation import Reservation, ReservationStatus
