"""
Tracking Service — the mutation orchestrator.

Every operation runs the same pipeline:

    authenticate -> load target -> authorize (policy) -> mutate
                 -> fan out notifications (status change, comment) -> commit

The Domain Store is the first argument, the caller's ``Actor`` (or None)
the second. Operations return an ``Outcome``; taxonomy errors come back
as failed outcomes and roll back the unit of work. Notification rows
are written in the same commit as the change that triggered them, so a
failed fan-out insert fails the whole mutation.

There is no optimistic-concurrency check: concurrent edits to the same
ticket are last-writer-wins.
"""

import logging

from pcs.core.exceptions import (
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from pcs.core.outcome import returns_outcome
from pcs.models.ticket import TICKET_PRIORITIES, TICKET_STATUSES, Comment, Ticket
from pcs.services import policy
from pcs.services.notification import (
    NotificationService,
    scope_comment_deliveries,
    status_change_deliveries,
)

logger = logging.getLogger(__name__)


# ── Pipeline helpers ─────────────────────────────────────────────────────────


def require_actor(actor):
    """Reject anonymous callers before any policy rule runs."""
    if actor is None:
        raise NotAuthenticatedError()
    return actor


def _enforce(decision: policy.Decision) -> None:
    if not decision.allowed:
        raise PermissionDeniedError(decision.reason)


def _load(store, loader, resource, pk):
    obj = loader(pk)
    if obj is None:
        raise NotFoundError(resource, pk)
    return obj


def _acting_user(store, actor):
    """Resolve the caller's User row; a token may outlive the account it names."""
    user = store.get_user(actor.user_id)
    if user is None:
        raise NotAuthenticatedError()
    return user


# ── Tickets ──────────────────────────────────────────────────────────────────


@returns_outcome
def create_ticket(store, actor, scope_id, request):
    """Create a ticket in a scope. Engineers are refused."""
    actor = require_actor(actor)
    _acting_user(store, actor)
    scope = _load(store, store.get_scope, "Scope", scope_id)
    _enforce(policy.authorize(actor, policy.Action.CREATE_TICKET, scope))

    if request.priority not in TICKET_PRIORITIES:
        raise ValidationError("Invalid priority", details={"priority": request.priority})

    ticket = Ticket(
        scope_id=scope.id,
        title=request.title,
        technical_specs=request.technical_specs,
        priority=request.priority,
        creator_id=actor.user_id,
    )
    store.add(ticket)
    store.commit()
    logger.info("Ticket %s created in scope %s by user %s", ticket.id, scope.id, actor.user_id)
    return ticket


@returns_outcome
def update_ticket_status(store, actor, ticket_id, request):
    """Move a ticket to a new status and notify its stakeholders."""
    actor = require_actor(actor)
    user = _acting_user(store, actor)
    ticket = _load(store, store.get_ticket, "Ticket", ticket_id)
    if request.status not in TICKET_STATUSES:
        raise ValidationError("Invalid status", details={"status": request.status})
    _enforce(policy.authorize(
        actor, policy.Action.UPDATE_TICKET_STATUS, ticket, target_status=request.status,
    ))

    ticket.status = request.status
    deliveries = status_change_deliveries(
        ticket, request.status, actor.user_id, user.username,
    )
    NotificationService.broadcast(store, deliveries)
    store.commit()
    logger.info("Ticket %s -> %s by user %s", ticket.id, ticket.status, actor.user_id)
    return ticket


@returns_outcome
def assign_ticket(store, actor, ticket_id, request):
    """Replace the ticket's assignee set. Sends no notifications."""
    actor = require_actor(actor)
    _acting_user(store, actor)
    ticket = _load(store, store.get_ticket, "Ticket", ticket_id)
    _enforce(policy.authorize(actor, policy.Action.ASSIGN_TICKET, ticket))

    users = store.get_users(request.user_ids)
    for uid in request.user_ids:
        if uid not in users:
            raise NotFoundError("User", uid)

    ticket.assignees = [users[uid] for uid in request.user_ids]
    store.commit()
    return ticket


@returns_outcome
def update_ticket(store, actor, ticket_id, request):
    """Edit title / technical specs / priority; absent fields are untouched."""
    actor = require_actor(actor)
    _acting_user(store, actor)
    ticket = _load(store, store.get_ticket, "Ticket", ticket_id)
    _enforce(policy.authorize(actor, policy.Action.UPDATE_TICKET, ticket))

    changes = request.changes()
    if "priority" in changes and changes["priority"] not in TICKET_PRIORITIES:
        raise ValidationError("Invalid priority", details={"priority": changes["priority"]})
    for field, value in changes.items():
        setattr(ticket, field, value)
    store.commit()
    return ticket


# ── Comments ─────────────────────────────────────────────────────────────────


@returns_outcome
def add_comment(store, actor, scope_id, request):
    """Post to a scope's thread and notify everyone with a ticket stake in it."""
    actor = require_actor(actor)
    user = _acting_user(store, actor)
    scope = _load(store, store.get_scope, "Scope", scope_id)
    _enforce(policy.authorize(actor, policy.Action.ADD_COMMENT, scope))

    comment = Comment(scope_id=scope.id, content=request.content, author_id=actor.user_id)
    store.add(comment)
    deliveries = scope_comment_deliveries(
        scope.team, store.tickets_in_scope(scope.id), actor.user_id, user.username,
    )
    NotificationService.broadcast(store, deliveries)
    store.commit()
    return comment


@returns_outcome
def update_comment(store, actor, comment_id, request):
    """Edit a comment's content. Only its author may do this."""
    actor = require_actor(actor)
    _acting_user(store, actor)
    comment = _load(store, store.get_comment, "Comment", comment_id)
    _enforce(policy.authorize(actor, policy.Action.UPDATE_COMMENT, comment))

    comment.content = request.content
    store.commit()
    return comment


# ── Scopes & notifications ───────────────────────────────────────────────────


@returns_outcome
def toggle_scope_comments(store, actor, scope_id):
    """Flip the scope's cross-team comment gate."""
    actor = require_actor(actor)
    _acting_user(store, actor)
    scope = _load(store, store.get_scope, "Scope", scope_id)
    _enforce(policy.authorize(actor, policy.Action.TOGGLE_SCOPE_COMMENTS, scope))

    scope.allow_cross_team_comments = not scope.allow_cross_team_comments
    store.commit()
    logger.info(
        "Scope %s cross-team comments %s by user %s",
        scope.id, "enabled" if scope.allow_cross_team_comments else "disabled", actor.user_id,
    )
    return scope


@returns_outcome
def mark_notification_read(store, actor, notification_id):
    actor = require_actor(actor)
    _acting_user(store, actor)
    return NotificationService.mark_read(store, notification_id, actor.user_id)
