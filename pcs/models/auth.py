"""
Auth Models — users and their role / team partition.

Roles:
    ADMIN     — sees and moderates every team; the only role without a team
    LEAD      — runs one team's scopes (tickets, assignment, comment gate)
    ENGINEER  — works tickets inside one team
"""

from datetime import datetime, timezone

from sqlalchemy.orm import validates

from pcs.models import db


# ── Constants ────────────────────────────────────────────────────────────────

ROLE_ADMIN = "ADMIN"
ROLE_LEAD = "LEAD"
ROLE_ENGINEER = "ENGINEER"
ROLES = (ROLE_ADMIN, ROLE_LEAD, ROLE_ENGINEER)

TEAMS = ("SOFTWARE", "STRUCTURAL", "ELECTRICAL", "ENVIRONMENTAL")


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(100), unique=True, nullable=False, index=True)
    full_name = db.Column(db.String(200))
    password_hash = db.Column(db.String(256), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_ENGINEER)
    team = db.Column(db.String(20), nullable=True, comment="NULL only for ADMIN")
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        db.CheckConstraint(
            "role = 'ADMIN' OR team IS NOT NULL",
            name="ck_users_team_required",
        ),
    )

    notifications = db.relationship(
        "Notification", back_populates="recipient",
        lazy="dynamic", cascade="all, delete-orphan",
    )

    @validates("role")
    def _validate_role(self, key, value):
        if value not in ROLES:
            raise ValueError(f"Unknown role {value!r}")
        return value

    @validates("team")
    def _validate_team(self, key, value):
        if value is not None and value not in TEAMS:
            raise ValueError(f"Unknown team {value!r}")
        return value

    def to_dict(self):
        return {
            "id": self.id,
            "username": self.username,
            "full_name": self.full_name,
            "role": self.role,
            "team": self.team,
        }

    def __repr__(self):
        return f"<User {self.id}: {self.username} {self.role}/{self.team}>"
