"""
Auth Blueprint — session endpoints.

  POST /api/v1/auth/login    — username + password → session cookie
  POST /api/v1/auth/logout   — clear the session cookie
  GET  /api/v1/auth/me       — current user, or null when anonymous
"""

import logging

from flask import Blueprint, jsonify, request

from pcs.blueprints import current_actor, current_store, render_outcome
from pcs.core.exceptions import DomainError
from pcs.middleware.session_auth import clear_session_cookie, set_session_cookie
from pcs.services import auth_service, query_service
from pcs.services.contracts import LoginRequest

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth_bp", __name__, url_prefix="/api/v1/auth")


@auth_bp.errorhandler(DomainError)
def _handle_domain_error(error: DomainError):
    return jsonify(error.to_dict()), error.status_code


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/login
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/login", methods=["POST"])
def login():
    """
    Verify credentials and set the ``token`` cookie.

    Body: { "username": "...", "password": "..." }
    """
    req = LoginRequest.from_json(request.get_json(silent=True))
    outcome = auth_service.login(current_store(), req)
    if not outcome.ok:
        return render_outcome(outcome)

    user, token = outcome.value
    response = jsonify({"user": user.to_dict()})
    return set_session_cookie(response, token)


# ═══════════════════════════════════════════════════════════════
# POST /api/v1/auth/logout
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/logout", methods=["POST"])
def logout():
    response = jsonify({"success": True})
    return clear_session_cookie(response)


# ═══════════════════════════════════════════════════════════════
# GET /api/v1/auth/me
# ═══════════════════════════════════════════════════════════════
@auth_bp.route("/me", methods=["GET"])
def me():
    outcome = query_service.me(current_store(), current_actor())
    return render_outcome(outcome, serialize=lambda u: {"user": u.to_dict() if u else None})
