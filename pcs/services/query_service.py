"""
Query Service — read-only projections filtered by the caller's team/role.

Visibility is decided at scope granularity: a non-admin sees only the
scopes of their own team, with all of those scopes' tickets and comments.
"""

from pcs.core.exceptions import ValidationError
from pcs.core.outcome import returns_outcome
from pcs.models.auth import TEAMS
from pcs.services import policy
from pcs.services.notification import NotificationService
from pcs.services.tracking_service import require_actor


@returns_outcome
def me(store, actor):
    """The caller's user record, or None when anonymous."""
    if actor is None:
        return None
    return store.get_user(actor.user_id)


@returns_outcome
def clients(store, actor):
    """ACTIVE clients with their projects."""
    require_actor(actor)
    return store.active_clients()


@returns_outcome
def projects(store, actor):
    """Every project paired with the scopes the caller may see.

    Returns:
        list of (Project, [Scope, ...]) tuples.
    """
    actor = require_actor(actor)
    return [
        (project, policy.visible_scopes(actor, project.scopes))
        for project in store.projects_with_scopes()
    ]


@returns_outcome
def unread_notifications(store, actor):
    actor = require_actor(actor)
    return NotificationService.list_unread(store, actor.user_id)


@returns_outcome
def engineers(store, actor, team):
    """Engineers and leads of ``team`` — the candidates for assignment."""
    require_actor(actor)
    if team not in TEAMS:
        raise ValidationError("Invalid team", details={"team": f"Must be one of: {', '.join(TEAMS)}."})
    return store.engineers_for_team(team)
