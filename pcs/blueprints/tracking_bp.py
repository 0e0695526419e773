"""
Motion Hellas PCS
Tracking Blueprint — clients, projects, tickets, comments and scopes.

Every handler parses its body into a request struct, hands the Domain
Store and the caller's Actor to the orchestrator, and renders the
returned Outcome. Handlers hold no rules of their own.
"""

from flask import Blueprint, jsonify, request
from werkzeug.exceptions import HTTPException

from pcs.blueprints import current_actor, current_store, render_outcome
from pcs.core.exceptions import DomainError
from pcs.services import query_service, tracking_service
from pcs.services.contracts import (
    AssignTicketRequest,
    CommentRequest,
    CreateTicketRequest,
    UpdateTicketRequest,
    UpdateTicketStatusRequest,
)

tracking_bp = Blueprint("tracking_bp", __name__, url_prefix="/api/v1")


@tracking_bp.errorhandler(DomainError)
def _handle_domain_error(error: DomainError):
    return jsonify(error.to_dict()), error.status_code


@tracking_bp.errorhandler(Exception)
def _handle_unexpected(error: Exception):
    if isinstance(error, HTTPException):
        return error
    # Already logged and rolled back by returns_outcome
    return jsonify({"error": "Internal server error"}), 500


def _items(rows):
    return {"items": rows, "total": len(rows)}


# ═══════════════════════════════════════════════════════════════════════════
#  QUERIES
# ═══════════════════════════════════════════════════════════════════════════

@tracking_bp.route("/clients", methods=["GET"])
def list_clients():
    """ACTIVE clients with their projects."""
    outcome = query_service.clients(current_store(), current_actor())
    return render_outcome(
        outcome,
        serialize=lambda rows: _items([c.to_dict(include_projects=True) for c in rows]),
    )


@tracking_bp.route("/projects", methods=["GET"])
def list_projects():
    """Projects with the scopes (tickets, comments) visible to the caller."""
    outcome = query_service.projects(current_store(), current_actor())
    return render_outcome(
        outcome,
        serialize=lambda rows: _items([p.to_dict(scopes=scopes) for p, scopes in rows]),
    )


@tracking_bp.route("/teams/<team>/engineers", methods=["GET"])
def list_engineers(team):
    outcome = query_service.engineers(current_store(), current_actor(), team.upper())
    return render_outcome(outcome, serialize=lambda rows: _items([u.to_dict() for u in rows]))


# ═══════════════════════════════════════════════════════════════════════════
#  TICKETS
# ═══════════════════════════════════════════════════════════════════════════

@tracking_bp.route("/scopes/<int:scope_id>/tickets", methods=["POST"])
def create_ticket(scope_id):
    req = CreateTicketRequest.from_json(request.get_json(silent=True))
    outcome = tracking_service.create_ticket(current_store(), current_actor(), scope_id, req)
    return render_outcome(outcome, status=201)


@tracking_bp.route("/tickets/<int:ticket_id>/status", methods=["PATCH"])
def update_ticket_status(ticket_id):
    req = UpdateTicketStatusRequest.from_json(request.get_json(silent=True))
    outcome = tracking_service.update_ticket_status(current_store(), current_actor(), ticket_id, req)
    return render_outcome(outcome)


@tracking_bp.route("/tickets/<int:ticket_id>/assignees", methods=["PUT"])
def assign_ticket(ticket_id):
    """Replace the assignee set with ``user_ids``."""
    req = AssignTicketRequest.from_json(request.get_json(silent=True))
    outcome = tracking_service.assign_ticket(current_store(), current_actor(), ticket_id, req)
    return render_outcome(outcome)


@tracking_bp.route("/tickets/<int:ticket_id>", methods=["PATCH"])
def update_ticket(ticket_id):
    req = UpdateTicketRequest.from_json(request.get_json(silent=True))
    outcome = tracking_service.update_ticket(current_store(), current_actor(), ticket_id, req)
    return render_outcome(outcome)


# ═══════════════════════════════════════════════════════════════════════════
#  COMMENTS & SCOPES
# ═══════════════════════════════════════════════════════════════════════════

@tracking_bp.route("/scopes/<int:scope_id>/comments", methods=["POST"])
def add_comment(scope_id):
    req = CommentRequest.from_json(request.get_json(silent=True))
    outcome = tracking_service.add_comment(current_store(), current_actor(), scope_id, req)
    return render_outcome(outcome, status=201)


@tracking_bp.route("/comments/<int:comment_id>", methods=["PATCH"])
def update_comment(comment_id):
    req = CommentRequest.from_json(request.get_json(silent=True))
    outcome = tracking_service.update_comment(current_store(), current_actor(), comment_id, req)
    return render_outcome(outcome)


@tracking_bp.route("/scopes/<int:scope_id>/toggle-comments", methods=["POST"])
def toggle_scope_comments(scope_id):
    outcome = tracking_service.toggle_scope_comments(current_store(), current_actor(), scope_id)
    return render_outcome(outcome)
