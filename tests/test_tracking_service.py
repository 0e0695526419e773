"""
Mutation orchestrator — operations return Outcomes against a real store.

Covers:
    1. Authentication precedes authorization
    2. Ticket creation / status / assignment / edit
    3. Comments and the cross-team gate
    4. Notification fan-out side effects
    5. Rollback of failed units of work
"""

import logging
from unittest.mock import patch

import pytest

from pcs.core.exceptions import (
    NotAuthenticatedError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from pcs.models import db
from pcs.models.notification import Notification
from pcs.models.ticket import TICKET_STATUSES, Comment, Ticket
from pcs.services import tracking_service as svc
from pcs.services.contracts import (
    AssignTicketRequest,
    CommentRequest,
    CreateTicketRequest,
    UpdateTicketRequest,
    UpdateTicketStatusRequest,
)
from pcs.services.session_service import Actor

# Validly signed claims for an account that does not exist
GHOST = Actor(user_id=424242, role="ADMIN", team=None)


def _notifications_for(user):
    return Notification.query.filter_by(recipient_id=user.id).all()


# ═══════════════════════════════════════════════════════════════════════════
#  Authentication
# ═══════════════════════════════════════════════════════════════════════════

class TestAuthentication:

    def test_anonymous_is_rejected_before_lookup(self, store):
        outcome = svc.create_ticket(store, None, 9999, CreateTicketRequest(title="x"))
        assert not outcome.ok
        assert isinstance(outcome.error, NotAuthenticatedError)
        assert outcome.error.message == "Not authenticated"

    @pytest.mark.parametrize("call", [
        lambda s: svc.update_ticket_status(s, None, 1, UpdateTicketStatusRequest("IN_PROGRESS")),
        lambda s: svc.assign_ticket(s, None, 1, AssignTicketRequest(user_ids=())),
        lambda s: svc.update_ticket(s, None, 1, UpdateTicketRequest(title="x")),
        lambda s: svc.add_comment(s, None, 1, CommentRequest("hi")),
        lambda s: svc.update_comment(s, None, 1, CommentRequest("hi")),
        lambda s: svc.toggle_scope_comments(s, None, 1),
        lambda s: svc.mark_notification_read(s, None, 1),
    ])
    def test_every_mutation_requires_a_session(self, store, call):
        outcome = call(store)
        assert isinstance(outcome.error, NotAuthenticatedError)

    @pytest.mark.parametrize("call", [
        lambda s, w, t, c: svc.create_ticket(s, GHOST, w.sw_scope.id, CreateTicketRequest("x")),
        lambda s, w, t, c: svc.update_ticket_status(s, GHOST, t.id, UpdateTicketStatusRequest("IN_PROGRESS")),
        lambda s, w, t, c: svc.assign_ticket(s, GHOST, t.id, AssignTicketRequest(user_ids=(w.eng_1.id,))),
        lambda s, w, t, c: svc.update_ticket(s, GHOST, t.id, UpdateTicketRequest(title="Renamed")),
        lambda s, w, t, c: svc.add_comment(s, GHOST, w.sw_scope.id, CommentRequest("hi")),
        lambda s, w, t, c: svc.update_comment(s, GHOST, c.id, CommentRequest("edited")),
        lambda s, w, t, c: svc.toggle_scope_comments(s, GHOST, w.sw_scope.id),
        lambda s, w, t, c: svc.mark_notification_read(s, GHOST, 1),
    ])
    def test_token_for_deleted_user_is_unauthenticated(self, store, world, make_ticket, make_comment, call):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        comment = make_comment(world.sw_scope, world.sw_lead)
        outcome = call(store, world, ticket, comment)
        assert isinstance(outcome.error, NotAuthenticatedError)
        assert Ticket.query.count() == 1
        assert Comment.query.count() == 1
        assert Notification.query.count() == 0
        fresh = db.session.get(Ticket, ticket.id)
        assert fresh.title == "Beam load analysis"
        assert fresh.status == "PLANNING"
        assert db.session.get(Comment, comment.id).content == "Looks good"
        assert world.sw_scope.allow_cross_team_comments is False


# ═══════════════════════════════════════════════════════════════════════════
#  Tickets
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateTicket:

    def test_engineer_denied(self, store, world, actor_for):
        outcome = svc.create_ticket(
            store, actor_for(world.eng_1), world.sw_scope.id, CreateTicketRequest(title="Login page"),
        )
        assert isinstance(outcome.error, PermissionDeniedError)
        assert outcome.error.message == "Forbidden: Engineers cannot create tickets."
        assert Ticket.query.count() == 0

    def test_lead_creates_with_default_priority(self, store, world, actor_for):
        outcome = svc.create_ticket(
            store, actor_for(world.sw_lead), world.sw_scope.id, CreateTicketRequest(title="Login page"),
        )
        ticket = outcome.unwrap()
        assert ticket.id is not None
        assert ticket.priority == "P2"
        assert ticket.status == "PLANNING"
        assert ticket.creator_id == world.sw_lead.id

    def test_missing_scope(self, store, world, actor_for):
        outcome = svc.create_ticket(store, actor_for(world.admin), 9999, CreateTicketRequest(title="x"))
        assert isinstance(outcome.error, NotFoundError)
        assert outcome.error.message == "Scope not found"


class TestUpdateTicketStatus:

    def test_struct_lead_completes_and_notifies(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.struct_scope, world.admin, assignees=[world.struct_eng, world.struct_lead])
        outcome = svc.update_ticket_status(
            store, actor_for(world.struct_lead), ticket.id, UpdateTicketStatusRequest("COMPLETED"),
        )
        assert outcome.ok
        assert outcome.value.status == "COMPLETED"

        eng_notes = _notifications_for(world.struct_eng)
        assert len(eng_notes) == 1
        assert eng_notes[0].message == 'Ticket "Beam load analysis" status changed to COMPLETED by struct_lead'
        assert len(_notifications_for(world.admin)) == 1
        assert _notifications_for(world.struct_lead) == []

    @pytest.mark.parametrize("status", TICKET_STATUSES)
    def test_engineer_status_matrix(self, store, world, actor_for, make_ticket, status):
        ticket = make_ticket(world.sw_scope, world.sw_lead, status="REJECTED", assignees=[world.eng_1])
        outcome = svc.update_ticket_status(
            store, actor_for(world.eng_1), ticket.id, UpdateTicketStatusRequest(status),
        )
        if status in ("IN_PROGRESS", "AWAITING_REVIEW"):
            assert outcome.ok
            assert outcome.value.status == status
        else:
            assert isinstance(outcome.error, PermissionDeniedError)
            assert db.session.get(Ticket, ticket.id).status == "REJECTED"

    def test_denied_status_change_sends_nothing(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        svc.update_ticket_status(store, actor_for(world.eng_1), ticket.id, UpdateTicketStatusRequest("COMPLETED"))
        assert Notification.query.count() == 0

    def test_unknown_status_is_validation_error(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead)
        outcome = svc.update_ticket_status(
            store, actor_for(world.sw_lead), ticket.id, UpdateTicketStatusRequest("DONE"),
        )
        assert isinstance(outcome.error, ValidationError)

    def test_repeated_changes_are_not_deduplicated(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        lead = actor_for(world.sw_lead)
        svc.update_ticket_status(store, lead, ticket.id, UpdateTicketStatusRequest("IN_PROGRESS"))
        svc.update_ticket_status(store, lead, ticket.id, UpdateTicketStatusRequest("IN_PROGRESS"))
        assert len(_notifications_for(world.eng_1)) == 2

    def test_failed_fanout_fails_the_mutation(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        with patch.object(store, "add_all", side_effect=RuntimeError("insert failed")):
            with pytest.raises(RuntimeError):
                svc.update_ticket_status(
                    store, actor_for(world.sw_lead), ticket.id, UpdateTicketStatusRequest("COMPLETED"),
                )
        assert db.session.get(Ticket, ticket.id).status == "PLANNING"
        assert Notification.query.count() == 0

    def test_failed_commit_logged_and_rolled_back_once(self, store, world, actor_for, caplog):
        caplog.set_level(logging.ERROR)
        with patch.object(store.session, "commit", side_effect=RuntimeError("disk full")), \
                patch.object(store.session, "rollback", wraps=store.session.rollback) as rollback:
            with pytest.raises(RuntimeError, match="disk full"):
                svc.create_ticket(
                    store, actor_for(world.sw_lead), world.sw_scope.id, CreateTicketRequest(title="Login page"),
                )
        assert rollback.call_count == 1
        tracebacks = [r for r in caplog.records if r.exc_info]
        assert len(tracebacks) == 1
        assert tracebacks[0].getMessage() == "Unexpected failure in create_ticket"
        assert Ticket.query.count() == 0


class TestAssignTicket:

    def test_replaces_assignee_set_without_notifying(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        outcome = svc.assign_ticket(
            store, actor_for(world.sw_lead), ticket.id,
            AssignTicketRequest(user_ids=(world.sw_lead.id,)),
        )
        assert {u.id for u in outcome.value.assignees} == {world.sw_lead.id}
        assert Notification.query.count() == 0

    def test_empty_list_clears(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        outcome = svc.assign_ticket(store, actor_for(world.admin), ticket.id, AssignTicketRequest(user_ids=()))
        assert outcome.value.assignees == []

    def test_engineer_denied(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead)
        outcome = svc.assign_ticket(
            store, actor_for(world.eng_1), ticket.id, AssignTicketRequest(user_ids=(world.eng_1.id,)),
        )
        assert isinstance(outcome.error, PermissionDeniedError)

    def test_unknown_user(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        outcome = svc.assign_ticket(
            store, actor_for(world.sw_lead), ticket.id, AssignTicketRequest(user_ids=(world.eng_1.id, 9999)),
        )
        assert isinstance(outcome.error, NotFoundError)
        assert outcome.error.message == "User not found"
        assert {u.id for u in db.session.get(Ticket, ticket.id).assignees} == {world.eng_1.id}


class TestUpdateTicket:

    def test_partial_update(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, priority="P1")
        outcome = svc.update_ticket(
            store, actor_for(world.sw_lead), ticket.id, UpdateTicketRequest(title="Renamed"),
        )
        assert outcome.value.title == "Renamed"
        assert outcome.value.priority == "P1"

    def test_creator_engineer_may_edit(self, store, world, actor_for, make_ticket):
        # Seeded directly: engineers cannot create tickets through the orchestrator.
        ticket = make_ticket(world.sw_scope, world.eng_1)
        outcome = svc.update_ticket(
            store, actor_for(world.eng_1), ticket.id, UpdateTicketRequest(priority="P0"),
        )
        assert outcome.value.priority == "P0"

    def test_other_engineer_denied(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.struct_scope, world.struct_lead)
        outcome = svc.update_ticket(
            store, actor_for(world.struct_eng), ticket.id, UpdateTicketRequest(title="x"),
        )
        assert isinstance(outcome.error, PermissionDeniedError)


# ═══════════════════════════════════════════════════════════════════════════
#  Comments & scopes
# ═══════════════════════════════════════════════════════════════════════════

class TestComments:

    def test_same_team_comment_notifies_scope_stakeholders(self, store, world, actor_for, make_ticket):
        make_ticket(world.struct_scope, world.struct_lead, assignees=[world.struct_eng])
        make_ticket(world.struct_scope, world.admin, title="Second")
        outcome = svc.add_comment(
            store, actor_for(world.struct_eng), world.struct_scope.id, CommentRequest("Loads look off"),
        )
        assert outcome.ok
        assert outcome.value.author_id == world.struct_eng.id
        recipients = {n.recipient_id for n in Notification.query.all()}
        assert recipients == {world.struct_lead.id, world.admin.id}
        assert _notifications_for(world.admin)[0].message == "New comment in scope (Team STRUCTURAL) by struct_eng"

    def test_cross_team_denied_until_gate_opens(self, store, world, actor_for):
        eng = actor_for(world.eng_1)
        denied = svc.add_comment(store, eng, world.struct_scope.id, CommentRequest("hi"))
        assert isinstance(denied.error, PermissionDeniedError)
        assert denied.error.message == "Forbidden: You do not have permission to comment on this scope."

        svc.toggle_scope_comments(store, actor_for(world.struct_lead), world.struct_scope.id).unwrap()
        assert svc.add_comment(store, eng, world.struct_scope.id, CommentRequest("hi")).ok

    def test_admin_comments_anywhere(self, store, world, actor_for):
        assert svc.add_comment(store, actor_for(world.admin), world.sw_scope.id, CommentRequest("ok")).ok

    def test_admin_cannot_edit_another_users_comment(self, store, world, actor_for, make_comment):
        comment = make_comment(world.sw_scope, world.eng_1)
        outcome = svc.update_comment(store, actor_for(world.admin), comment.id, CommentRequest("edited"))
        assert isinstance(outcome.error, PermissionDeniedError)

    def test_author_edits_own_comment(self, store, world, actor_for, make_comment):
        comment = make_comment(world.sw_scope, world.eng_1)
        outcome = svc.update_comment(store, actor_for(world.eng_1), comment.id, CommentRequest("edited"))
        assert outcome.value.content == "edited"

    def test_missing_comment(self, store, world, actor_for):
        outcome = svc.update_comment(store, actor_for(world.eng_1), 9999, CommentRequest("x"))
        assert outcome.error.message == "Comment not found"


class TestToggleScopeComments:

    def test_toggle_twice_restores(self, store, world, actor_for):
        admin = actor_for(world.admin)
        first = svc.toggle_scope_comments(store, admin, world.sw_scope.id).unwrap()
        assert first.allow_cross_team_comments is True
        second = svc.toggle_scope_comments(store, admin, world.sw_scope.id).unwrap()
        assert second.allow_cross_team_comments is False

    def test_other_team_lead_denied(self, store, world, actor_for):
        outcome = svc.toggle_scope_comments(store, actor_for(world.struct_lead), world.sw_scope.id)
        assert isinstance(outcome.error, PermissionDeniedError)
        assert outcome.error.message == "Forbidden: Only Admins or Team Leads can toggle comments."


class TestMarkNotificationRead:

    def _notify_eng(self, store, world, actor_for, make_ticket):
        ticket = make_ticket(world.sw_scope, world.sw_lead, assignees=[world.eng_1])
        svc.update_ticket_status(store, actor_for(world.sw_lead), ticket.id, UpdateTicketStatusRequest("IN_PROGRESS"))
        return _notifications_for(world.eng_1)[0]

    def test_recipient_marks_read_idempotently(self, store, world, actor_for, make_ticket):
        notif = self._notify_eng(store, world, actor_for, make_ticket)
        eng = actor_for(world.eng_1)
        assert svc.mark_notification_read(store, eng, notif.id).value.is_read is True
        assert svc.mark_notification_read(store, eng, notif.id).value.is_read is True

    def test_other_users_notification_is_not_found(self, store, world, actor_for, make_ticket):
        notif = self._notify_eng(store, world, actor_for, make_ticket)
        outcome = svc.mark_notification_read(store, actor_for(world.admin), notif.id)
        assert isinstance(outcome.error, NotFoundError)
        assert db.session.get(Notification, notif.id).is_read is False
