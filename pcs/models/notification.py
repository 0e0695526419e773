"""
Notification domain model.

One record per recipient per event. Immutable after creation except for
the one-way ``is_read`` flip.
"""

from datetime import datetime, timezone

from pcs.models import db


class Notification(db.Model):
    """In-app notification entity, polled by the front end."""

    __tablename__ = "notifications"

    id = db.Column(db.Integer, primary_key=True)
    recipient_id = db.Column(
        db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    recipient = db.relationship("User", back_populates="notifications")

    __table_args__ = (
        db.Index("ix_notifications_recipient_unread", "recipient_id", "is_read"),
    )

    def mark_read(self):
        self.is_read = True

    def to_dict(self):
        return {
            "id": self.id,
            "recipient_id": self.recipient_id,
            "message": self.message,
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Notification {self.id}: {self.message[:40]}>"
