"""
Notification Blueprint — the caller's in-app notifications.

The front end polls ``/notifications/unread`` every 60 seconds.
"""

import logging

from flask import Blueprint, jsonify

from pcs.blueprints import current_actor, current_store, render_outcome
from pcs.core.exceptions import DomainError
from pcs.services import query_service, tracking_service

logger = logging.getLogger(__name__)

notification_bp = Blueprint("notification_bp", __name__, url_prefix="/api/v1/notifications")


@notification_bp.errorhandler(DomainError)
def _handle_domain_error(error: DomainError):
    return jsonify(error.to_dict()), error.status_code


@notification_bp.route("/unread", methods=["GET"])
def list_unread():
    """Unread notifications for the caller, newest first."""
    outcome = query_service.unread_notifications(current_store(), current_actor())
    return render_outcome(
        outcome,
        serialize=lambda rows: {"items": [n.to_dict() for n in rows], "total": len(rows)},
    )


@notification_bp.route("/<int:nid>/read", methods=["POST"])
def mark_read(nid):
    outcome = tracking_service.mark_notification_read(current_store(), current_actor(), nid)
    return render_outcome(outcome)
