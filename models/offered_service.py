import uuid
from utils.time import utcnow
from models.db import db

class OfferedService(db.Model):
    __tablename__ = "offered_services"

    id = db.Column(db.Integer, primary_key=True)
    public_id = db.Column(db.String(36), unique=True, nullable=False, default=lambda: str(uuid.uuid4()))

    owner_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    name_normalized = db.Column(db.String(120), nullable=False)
    description = db.Column(db.Text, nullable=True)

    default_duration_minutes = db.Column(db.Integer, nullable=True)
    price = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    capacity = db.Column(db.Integer, nullable=False, default=1)

    is_active = db.Column(db.Boolean, default=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    __table_args__ = (
        # Service names are unique per provider, case-insensitive
        db.UniqueConstraint("owner_id", "name_normalized", name="uq_service_owner_name"),
    )
