"""
Ticket & Comment models.

Tickets belong to a Scope and carry a many-to-many assignee set.
Comments are scope-level (not ticket-level) and are edited only by
their author.
"""

from datetime import datetime, timezone

from pcs.models import db


# ── Constants ────────────────────────────────────────────────────────────────

TICKET_PRIORITIES = ("P0", "P1", "P2")
DEFAULT_TICKET_PRIORITY = "P2"

STATUS_PLANNING = "PLANNING"
STATUS_IN_PROGRESS = "IN_PROGRESS"
STATUS_AWAITING_REVIEW = "AWAITING_REVIEW"
STATUS_REJECTED = "REJECTED"
STATUS_COMPLETED = "COMPLETED"
TICKET_STATUSES = (
    STATUS_PLANNING,
    STATUS_IN_PROGRESS,
    STATUS_AWAITING_REVIEW,
    STATUS_REJECTED,
    STATUS_COMPLETED,
)
DEFAULT_TICKET_STATUS = STATUS_PLANNING


ticket_assignees = db.Table(
    "ticket_assignees",
    db.Column("ticket_id", db.Integer, db.ForeignKey("tickets.id", ondelete="CASCADE"), primary_key=True),
    db.Column("user_id", db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Ticket(db.Model):
    __tablename__ = "tickets"

    id = db.Column(db.Integer, primary_key=True)
    scope_id = db.Column(
        db.Integer, db.ForeignKey("scopes.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    title = db.Column(db.String(300), nullable=False)
    technical_specs = db.Column(db.Text, default="")
    priority = db.Column(db.String(5), nullable=False, default=DEFAULT_TICKET_PRIORITY)
    status = db.Column(db.String(30), nullable=False, default=DEFAULT_TICKET_STATUS)
    creator_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc),
                           onupdate=lambda: datetime.now(timezone.utc))

    scope = db.relationship("Scope", back_populates="tickets")
    creator = db.relationship("User", foreign_keys=[creator_id])
    assignees = db.relationship("User", secondary=ticket_assignees, order_by="User.username")

    def to_dict(self):
        return {
            "id": self.id,
            "scope_id": self.scope_id,
            "title": self.title,
            "technical_specs": self.technical_specs or "",
            "priority": self.priority,
            "status": self.status,
            "creator": self.creator.to_dict() if self.creator else None,
            "assignees": [u.to_dict() for u in self.assignees],
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f"<Ticket {self.id}: {self.title[:40]} [{self.status}]>"


class Comment(db.Model):
    __tablename__ = "comments"

    id = db.Column(db.Integer, primary_key=True)
    scope_id = db.Column(
        db.Integer, db.ForeignKey("scopes.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    content = db.Column(db.Text, nullable=False)
    author_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    scope = db.relationship("Scope", back_populates="comments")
    author = db.relationship("User")

    def to_dict(self):
        return {
            "id": self.id,
            "scope_id": self.scope_id,
            "content": self.content,
            "author": self.author.to_dict() if self.author else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
