"""
Domain Store — the persistence capability handed to every operation.

Wraps one SQLAlchemy session. The policy engine never sees it; the
orchestrator and query surface receive it as their first argument, so
tests can build one over any session they like.
"""

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from pcs.models.auth import ROLE_ENGINEER, ROLE_LEAD, User
from pcs.models.notification import Notification
from pcs.models.project import CLIENT_ACTIVE, Client, Project, Scope
from pcs.models.ticket import Comment, Ticket


class DomainStore:
    """Repository facade over a SQLAlchemy session."""

    def __init__(self, session):
        self.session = session

    # ── Lookups ──────────────────────────────────────────────────────────

    def get_user(self, user_id):
        return self.session.get(User, user_id)

    def get_user_by_username(self, username):
        return self.session.execute(
            select(User).where(User.username == username)
        ).scalar_one_or_none()

    def get_users(self, user_ids):
        """Return ``{id: User}`` for the ids that exist."""
        if not user_ids:
            return {}
        rows = self.session.execute(select(User).where(User.id.in_(set(user_ids)))).scalars()
        return {u.id: u for u in rows}

    def get_client_by_name(self, name):
        return self.session.execute(
            select(Client).where(Client.name == name)
        ).scalars().first()

    def get_project_by_code(self, code_name):
        return self.session.execute(
            select(Project).where(Project.code_name == code_name)
        ).scalar_one_or_none()

    def get_scope(self, scope_id):
        return self.session.get(Scope, scope_id)

    def get_ticket(self, ticket_id):
        return self.session.get(Ticket, ticket_id)

    def get_comment(self, comment_id):
        return self.session.get(Comment, comment_id)

    def get_notification(self, notification_id):
        return self.session.get(Notification, notification_id)

    # ── Collections ──────────────────────────────────────────────────────

    def tickets_in_scope(self, scope_id):
        stmt = (
            select(Ticket)
            .where(Ticket.scope_id == scope_id)
            .options(selectinload(Ticket.assignees))
            .order_by(Ticket.id)
        )
        return list(self.session.execute(stmt).scalars())

    def active_clients(self):
        stmt = (
            select(Client)
            .where(Client.status == CLIENT_ACTIVE)
            .options(selectinload(Client.projects))
            .order_by(Client.name)
        )
        return list(self.session.execute(stmt).scalars())

    def projects_with_scopes(self):
        stmt = (
            select(Project)
            .options(
                selectinload(Project.client),
                selectinload(Project.scopes).selectinload(Scope.tickets),
                selectinload(Project.scopes).selectinload(Scope.comments),
            )
            .order_by(Project.code_name)
        )
        return list(self.session.execute(stmt).scalars())

    def unread_notifications(self, user_id):
        stmt = (
            select(Notification)
            .where(Notification.recipient_id == user_id, Notification.is_read.is_(False))
            .order_by(Notification.created_at.desc(), Notification.id.desc())
        )
        return list(self.session.execute(stmt).scalars())

    def engineers_for_team(self, team):
        """Users who can be assigned work in ``team``: its engineers and leads."""
        stmt = (
            select(User)
            .where(User.team == team, User.role.in_((ROLE_ENGINEER, ROLE_LEAD)))
            .order_by(User.username)
        )
        return list(self.session.execute(stmt).scalars())

    # ── Unit of work ─────────────────────────────────────────────────────

    def add(self, obj):
        self.session.add(obj)
        return obj

    def add_all(self, objs):
        self.session.add_all(objs)

    def flush(self):
        self.session.flush()

    def commit(self):
        self.session.commit()

    def rollback(self):
        self.session.rollback()
