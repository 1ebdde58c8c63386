import uuid
from utils.time import utcnow
from models.db import db

class BookingStatus:
    PENDING_PAYMENT = "PENDING_PAYMENT"
    AWAITING_CONFIRMATION = "AWAITING_CONFIRMATION"
    CONFIRMED = "CONFIRMED"
    CANCELLED_BY_CLIENT = "CANCELLED_BY_CLIENT"
    CANCELLED_BY_PROVIDER = "CANCELLED_BY_PROVIDER"
    COMPLETED = "COMPLETED"
    NO_SHOW = "NO_SHOW"

    ALL = (
        PENDING_PAYMENT,
        AWAITING_CONFIRMATION,
        CONFIRMED,
        CANCELLED_BY_CLIENT,
        CANCELLED_BY_PROVIDER,
        COMPLETED,
        NO_SHOW,
    )
    # statuses that occupy a seat in the slot
    ACTIVE = (PENDING_PAYMENT, AWAITING_CONFIRMATION, CONFIRMED, COMPLETED, NO_SHOW)


_active_sql = "status IN ('PENDING_PAYMENT', 'AWAITING_CONFIRMATION', 'CONFIRMED', 'COMPLETED', 'NO_SHOW')"


class Booking(db.Model):
    __tablename__ = "bookings"

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))

    slot_id = db.Column(
        db.Integer,
        db.ForeignKey("time_slots.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    client_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    status = db.Column(db.String(30), nullable=False, default=BookingStatus.CONFIRMED)
    price_paid = db.Column(db.Numeric(10, 2), nullable=True)
    notes = db.Column(db.String(500), nullable=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        # Hard business-rule: one active booking per client per slot
        db.Index(
            "uq_booking_active_client_slot",
            "slot_id",
            "client_id",
            unique=True,
            sqlite_where=db.text(_active_sql),
            postgresql_where=db.text(_active_sql),
        ),
    )
