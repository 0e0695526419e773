"""
Access Policy Engine — per-action authorization rules.

Pure decision functions over the caller's claims and a snapshot of the
target entity. No I/O and no store access: anything with the attributes
a rule reads (``team``, ``allow_cross_team_comments``, ``creator_id``,
``author_id``) is a valid target.

Usage:
    from pcs.services.policy import Action, authorize
    decision = authorize(actor, Action.ADD_COMMENT, scope)
    # -> Decision(allowed=False, reason="Forbidden: ...")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from pcs.models.auth import ROLE_ADMIN, ROLE_ENGINEER, ROLE_LEAD
from pcs.models.ticket import STATUS_AWAITING_REVIEW, STATUS_IN_PROGRESS

logger = logging.getLogger(__name__)


class Action(str, Enum):
    CREATE_TICKET = "createTicket"
    UPDATE_TICKET_STATUS = "updateTicketStatus"
    ASSIGN_TICKET = "assignTicket"
    UPDATE_TICKET = "updateTicket"
    ADD_COMMENT = "addComment"
    UPDATE_COMMENT = "updateComment"
    TOGGLE_SCOPE_COMMENTS = "toggleScopeComments"
    VIEW_SCOPE = "viewScope"


# Statuses an engineer may move a ticket into; everything else is a lead decision.
ENGINEER_STATUS_TARGETS = frozenset({STATUS_IN_PROGRESS, STATUS_AWAITING_REVIEW})


@dataclass(frozen=True)
class Decision:
    """Allow, or Deny with the reason shown to the caller."""

    allowed: bool
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def deny(reason: str) -> Decision:
    return Decision(False, reason)


# ═════════════════════════════════════════════════════════════════════════════
# Rules
# ═════════════════════════════════════════════════════════════════════════════

def can_create_ticket(actor) -> Decision:
    if actor.role == ROLE_ENGINEER:
        return deny("Forbidden: Engineers cannot create tickets.")
    return ALLOW


def can_update_ticket_status(actor, target_status: str) -> Decision:
    """Engineers may only start work or hand it in for review."""
    if actor.role == ROLE_ENGINEER and target_status not in ENGINEER_STATUS_TARGETS:
        return deny(
            "Forbidden: Engineers can only move tickets to IN_PROGRESS or AWAITING_REVIEW."
        )
    return ALLOW


def can_assign_ticket(actor) -> Decision:
    if actor.role == ROLE_ENGINEER:
        return deny("Forbidden: Engineers cannot assign tickets.")
    return ALLOW


def can_update_ticket(actor, ticket) -> Decision:
    if actor.user_id == ticket.creator_id or actor.role in (ROLE_ADMIN, ROLE_LEAD):
        return ALLOW
    return deny("Forbidden: Only the ticket creator, Leads or Admins can edit this ticket.")


def can_add_comment(actor, scope) -> Decision:
    if actor.team == scope.team or actor.role == ROLE_ADMIN or scope.allow_cross_team_comments:
        return ALLOW
    return deny("Forbidden: You do not have permission to comment on this scope.")


def can_update_comment(actor, comment) -> Decision:
    # Authorship only; no role can edit someone else's comment.
    if actor.user_id == comment.author_id:
        return ALLOW
    return deny("Forbidden: You can only edit your own comments.")


def can_toggle_scope_comments(actor, scope) -> Decision:
    if actor.role == ROLE_ADMIN or (actor.role == ROLE_LEAD and actor.team == scope.team):
        return ALLOW
    return deny("Forbidden: Only Admins or Team Leads can toggle comments.")


def can_view_scope(actor, scope) -> Decision:
    if actor.role == ROLE_ADMIN or actor.team == scope.team:
        return ALLOW
    return deny("Forbidden: This scope belongs to another team.")


def visible_scopes(actor, scopes) -> list:
    """Filter ``scopes`` down to those the actor may see, keeping order."""
    return [s for s in scopes if can_view_scope(actor, s)]


# ═════════════════════════════════════════════════════════════════════════════
# Dispatcher
# ═════════════════════════════════════════════════════════════════════════════

def authorize(actor, action: Action | str, target=None, *, target_status: str | None = None) -> Decision:
    """Evaluate ``action`` for ``actor`` against ``target``.

    ``target_status`` is required for UPDATE_TICKET_STATUS.
    """
    action = Action(action)

    if action is Action.CREATE_TICKET:
        decision = can_create_ticket(actor)
    elif action is Action.UPDATE_TICKET_STATUS:
        if target_status is None:
            raise ValueError("target_status is required for updateTicketStatus")
        decision = can_update_ticket_status(actor, target_status)
    elif action is Action.ASSIGN_TICKET:
        decision = can_assign_ticket(actor)
    elif action is Action.UPDATE_TICKET:
        decision = can_update_ticket(actor, target)
    elif action is Action.ADD_COMMENT:
        decision = can_add_comment(actor, target)
    elif action is Action.UPDATE_COMMENT:
        decision = can_update_comment(actor, target)
    elif action is Action.TOGGLE_SCOPE_COMMENTS:
        decision = can_toggle_scope_comments(actor, target)
    else:
        decision = can_view_scope(actor, target)

    if not decision.allowed:
        logger.warning(
            "Policy deny: action=%s user=%s role=%s team=%s reason=%s",
            action.value, actor.user_id, actor.role, actor.team, decision.reason,
        )
    return decision
