"""
Notification Service — fan-out, delivery and read tracking.

Fan-out is computed by pure functions that turn one state change into a
list of ``Delivery`` records; ``NotificationService.broadcast`` then
persists one Notification per delivery inside the caller's unit of work
(it does not commit). Repeated events are never de-duplicated.

Qualifying events:
    - ticket status change  -> ticket assignees + creator, minus the actor
    - scope comment added   -> assignees + creators of every ticket in the
                               scope, minus the actor
Ticket assignment deliberately notifies nobody.
"""

import logging
from dataclasses import dataclass

from pcs.core.exceptions import NotFoundError
from pcs.models.notification import Notification

logger = logging.getLogger(__name__)


STATUS_CHANGE_TEMPLATE = 'Ticket "{title}" status changed to {status} by {actor}'
SCOPE_COMMENT_TEMPLATE = "New comment in scope (Team {team}) by {actor}"


@dataclass(frozen=True)
class Delivery:
    """One notification to create: who receives it and what it says."""

    recipient_id: int
    message: str


# ── Recipient computation (pure) ─────────────────────────────────────────────

def ticket_stakeholders(ticket) -> set[int]:
    """Assignees of ``ticket`` plus its creator."""
    ids = {u.id for u in ticket.assignees}
    if ticket.creator_id is not None:
        ids.add(ticket.creator_id)
    return ids


def status_change_deliveries(ticket, new_status: str, actor_id: int, actor_username: str) -> list[Delivery]:
    recipients = ticket_stakeholders(ticket) - {actor_id}
    message = STATUS_CHANGE_TEMPLATE.format(title=ticket.title, status=new_status, actor=actor_username)
    return [Delivery(rid, message) for rid in sorted(recipients)]


def scope_comment_deliveries(scope_team: str, tickets, actor_id: int, actor_username: str) -> list[Delivery]:
    recipients = set()
    for ticket in tickets:
        recipients |= ticket_stakeholders(ticket)
    recipients.discard(actor_id)
    message = SCOPE_COMMENT_TEMPLATE.format(team=scope_team, actor=actor_username)
    return [Delivery(rid, message) for rid in sorted(recipients)]


class NotificationService:
    """Stateless service class for notification persistence and queries."""

    # ── Create ────────────────────────────────────────────────────────────

    @staticmethod
    def broadcast(store, deliveries):
        """Stage one Notification per delivery; the caller commits.

        Returns:
            List of the new Notification instances.
        """
        notifications = [
            Notification(recipient_id=d.recipient_id, message=d.message)
            for d in deliveries
        ]
        if notifications:
            store.add_all(notifications)
            store.flush()
        logger.info("Notification fan-out: %d recipient(s)", len(notifications))
        return notifications

    # ── Query ─────────────────────────────────────────────────────────────

    @staticmethod
    def list_unread(store, recipient_id):
        """Unread notifications for a recipient, newest first."""
        return store.unread_notifications(recipient_id)

    # ── Actions ───────────────────────────────────────────────────────────

    @staticmethod
    def mark_read(store, notification_id, recipient_id):
        """Flip ``is_read`` on the recipient's own notification.

        Someone else's notification is reported as missing.
        """
        notif = store.get_notification(notification_id)
        if notif is None or notif.recipient_id != recipient_id:
            raise NotFoundError("Notification", notification_id)
        if not notif.is_read:
            notif.mark_read()
            store.commit()
        return notif
