"""
Project domain models — Client -> Project -> Scope hierarchy.

A Scope is one team's slice of work inside a Project. It owns the team's
tickets and the scope-level comment thread, and carries the
cross-team comment gate.
"""

from datetime import datetime, timezone

from sqlalchemy.orm import validates

from pcs.models import db


# ── Constants ────────────────────────────────────────────────────────────────

CLIENT_ACTIVE = "ACTIVE"
CLIENT_INACTIVE = "INACTIVE"
CLIENT_STATUSES = (CLIENT_ACTIVE, CLIENT_INACTIVE)


class Client(db.Model):
    __tablename__ = "clients"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False)
    logo_url = db.Column(db.String(500))
    status = db.Column(db.String(20), nullable=False, default=CLIENT_ACTIVE, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    projects = db.relationship(
        "Project", back_populates="client",
        cascade="all, delete-orphan", order_by="Project.code_name",
    )

    @validates("status")
    def _validate_status(self, key, value):
        if value not in CLIENT_STATUSES:
            raise ValueError(f"Unknown client status {value!r}")
        return value

    def to_dict(self, include_projects=False):
        d = {
            "id": self.id,
            "name": self.name,
            "logo_url": self.logo_url,
            "status": self.status,
        }
        if include_projects:
            d["projects"] = [p.to_dict() for p in self.projects]
        return d


class Project(db.Model):
    __tablename__ = "projects"

    id = db.Column(db.Integer, primary_key=True)
    code_name = db.Column(db.String(50), unique=True, nullable=False)
    client_id = db.Column(
        db.Integer, db.ForeignKey("clients.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    client_contact_person = db.Column(db.String(200))
    status = db.Column(db.String(50), nullable=False, default="PLANNING", comment="Free-form lifecycle label")
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    client = db.relationship("Client", back_populates="projects")
    scopes = db.relationship(
        "Scope", back_populates="project",
        cascade="all, delete-orphan", order_by="Scope.id",
    )

    def to_dict(self, scopes=None):
        """Serialize the project; ``scopes`` is the caller-visible subset to nest."""
        d = {
            "id": self.id,
            "code_name": self.code_name,
            "client_id": self.client_id,
            "client": self.client.name if self.client else None,
            "client_contact_person": self.client_contact_person,
            "status": self.status,
        }
        if scopes is not None:
            d["scopes"] = [s.to_dict(include_children=True) for s in scopes]
        return d


class Scope(db.Model):
    __tablename__ = "scopes"

    id = db.Column(db.Integer, primary_key=True)
    project_id = db.Column(
        db.Integer, db.ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True,
    )
    team = db.Column(db.String(20), nullable=False, index=True)
    allow_cross_team_comments = db.Column(db.Boolean, nullable=False, default=False)

    project = db.relationship("Project", back_populates="scopes")
    tickets = db.relationship(
        "Ticket", back_populates="scope",
        cascade="all, delete-orphan", order_by="Ticket.id",
    )
    comments = db.relationship(
        "Comment", back_populates="scope",
        cascade="all, delete-orphan", order_by="Comment.id.desc()",
    )

    def to_dict(self, include_children=False):
        d = {
            "id": self.id,
            "project_id": self.project_id,
            "team": self.team,
            "allow_cross_team_comments": self.allow_cross_team_comments,
        }
        if include_children:
            d["tickets"] = [t.to_dict() for t in self.tickets]
            d["comments"] = [c.to_dict() for c in self.comments]
        return d

    def __repr__(self):
        return f"<Scope {self.id}: project={self.project_id} team={self.team}>"
