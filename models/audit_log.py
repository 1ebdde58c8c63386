import json

from utils.time import utcnow
from models.db import db

# Values written to ``entity``; ``entity_id`` is the row's public id,
# or the integer id for users.
AUDITED_ENTITIES = ("user", "offered_service", "time_slot", "booking", "reservation")


class AuditLog(db.Model):
    __tablename__ = "audit_logs"
    __table_args__ = (
        # history of one slot, booking or reservation
        db.Index("ix_audit_logs_entity", "entity", "entity_id"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, nullable=True, index=True)  # null for anonymous requests
    action = db.Column(db.String(80), nullable=False, index=True)  # BOOKING_CREATE, SLOT_CANCEL, RESERVATION_CONFIRM ...
    entity = db.Column(db.String(80), nullable=True)
    entity_id = db.Column(db.String(80), nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    metadata_json = db.Column(db.Text, nullable=True)

    timestamp = db.Column(db.DateTime, default=utcnow, nullable=False)

    @property
    def details(self):
        return json.loads(self.metadata_json) if self.metadata_json else {}
