"""
Rate limiting configuration.

Applies per-route limits using Flask-Limiter. The Limiter instance is
created in pcs/__init__.py with no default limits; this module applies
the login brute-force guard and exempts health probes.

Rate limiting is disabled in testing mode.
"""

import logging

logger = logging.getLogger(__name__)

DEFAULT_LOGIN_LIMIT = "10/minute"


def init_rate_limits(app, limiter):
    """Apply rate limits once blueprints are registered."""

    if app.config.get("TESTING"):
        logger.debug("Rate limiter disabled (TESTING=True)")
        return

    login_limit = app.config.get("LOGIN_RATE_LIMIT", DEFAULT_LOGIN_LIMIT)
    login_view = app.view_functions.get("auth_bp.login")
    if login_view is not None:
        app.view_functions["auth_bp.login"] = limiter.limit(login_limit)(login_view)

    bp = app.blueprints.get("health_bp")
    if bp:
        limiter.exempt(bp)

    logger.info("Rate limiter configured: login=%s", login_limit)
