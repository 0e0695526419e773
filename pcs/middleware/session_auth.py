"""
Session Middleware — resolves the caller from the ``token`` cookie.

Runs before every API request and sets ``g.actor`` to the verified
``Actor`` or None. Browsers send the HTTP-only cookie; scripts may send
``Authorization: Bearer <token>`` instead. Nothing here reads the store
and nothing here rejects a request: anonymous callers are turned away
by the operations that need an identity.
"""

from flask import current_app, g, request

from pcs.services.session_service import verify_token

COOKIE_NAME = "token"


def _token_from_request():
    token = request.cookies.get(COOKIE_NAME)
    if token:
        return token
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:]
    return None


def set_session_cookie(response, token):
    """Attach the session token as an HTTP-only, same-site-lax cookie."""
    response.set_cookie(
        COOKIE_NAME,
        token,
        max_age=current_app.config.get("SESSION_MAX_AGE", 604800),
        httponly=True,
        samesite="Lax",
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
        path="/",
    )
    return response


def clear_session_cookie(response):
    response.delete_cookie(
        COOKIE_NAME,
        path="/",
        httponly=True,
        samesite="Lax",
        secure=current_app.config.get("SESSION_COOKIE_SECURE", False),
    )
    return response


def init_session_middleware(app):
    """Register the session resolver as a before_request hook."""

    @app.before_request
    def _resolve_session():
        g.actor = None
        if not request.path.startswith("/api/"):
            return
        token = _token_from_request()
        if token:
            g.actor = verify_token(token)
