from datetime import timedelta

from utils.time import utcnow
from models.db import db


class Session(db.Model):
    """Server-side login session; the cookie carries the raw token."""
    __tablename__ = "sessions"
    __table_args__ = (
        # revoke_all_sessions() and the per-request lookup both filter on live rows
        db.Index("ix_sessions_user_live", "user_id", "revoked"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    token_hash = db.Column(db.String(128), unique=True, nullable=False, index=True)

    created_at = db.Column(db.DateTime, default=utcnow, nullable=False)
    last_seen_at = db.Column(db.DateTime, default=utcnow, nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)

    revoked = db.Column(db.Boolean, default=False, nullable=False)
    revoked_at = db.Column(db.DateTime, nullable=True)

    ip = db.Column(db.String(64), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)

    def is_live(self, now, idle_seconds):
        if self.revoked or self.expires_at <= now:
            return False
        return (self.last_seen_at or self.created_at) + timedelta(seconds=idle_seconds) > now

    def revoke(self, now):
        self.revoked = True
        self.revoked_at = now
