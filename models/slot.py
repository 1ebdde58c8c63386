import uuid
from utils.time import utcnow
from models.db import db

class TimeSlotStatus:
    AVAILABLE = "AVAILABLE"
    FULL = "FULL"
    CANCELLED = "CANCELLED"

    ALL = (AVAILABLE, FULL, CANCELLED)


class TimeSlot(db.Model):
    __tablename__ = "time_slots"

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))

    # Bookings point back at the slot by id only; there is no relationship collection here.
    service_id = db.Column(
        db.Integer,
        db.ForeignKey("offered_services.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    start_time = db.Column(db.DateTime, nullable=False, index=True)
    end_time = db.Column(db.DateTime, nullable=False)

    capacity = db.Column(db.Integer, nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    status = db.Column(db.String(20), nullable=False, default=TimeSlotStatus.AVAILABLE)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, nullable=False)

    # Every write is "UPDATE ... WHERE version_id = <read version>"; a concurrent
    # writer makes the flush fail with StaleDataError.
    version_id = db.Column(db.Integer, nullable=False, default=1)

    __mapper_args__ = {"version_id_col": version_id}

    __table_args__ = (
        db.CheckConstraint("end_time > start_time", name="ck_slot_time_order"),
        db.CheckConstraint("capacity > 0", name="ck_slot_capacity_positive"),
    )
