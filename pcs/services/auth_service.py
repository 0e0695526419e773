"""
Auth Service — credential verification, login and user provisioning.
"""

import logging

from pcs.core.exceptions import InvalidCredentialsError, ValidationError
from pcs.core.outcome import returns_outcome
from pcs.models.auth import ROLE_ADMIN, ROLES, TEAMS, User
from pcs.services.credentials import burn_verification, hash_password, verify_password
from pcs.services.session_service import sign_token

logger = logging.getLogger(__name__)


def authenticate_user(store, username, password) -> User:
    """Return the user for a valid username/password pair.

    Unknown usernames and wrong passwords raise the same error.
    """
    user = store.get_user_by_username(username)
    if user is None:
        burn_verification(password)
        logger.warning("Login failed for username=%r", username)
        raise InvalidCredentialsError()
    if not verify_password(password, user.password_hash):
        logger.warning("Login failed for username=%r", username)
        raise InvalidCredentialsError()
    return user


@returns_outcome
def login(store, request):
    """Verify credentials and issue a session token.

    Returns:
        (user, token) — the transport delivers the token as a cookie.
    """
    user = authenticate_user(store, request.username, request.password)
    token = sign_token(user.id, user.role, user.team)
    logger.info("User %s logged in", user.id)
    return user, token


def create_user(store, username, password, role, team=None, full_name=None) -> User:
    """Provision a user; non-admin users must belong to a team."""
    errors = {}
    if not username:
        errors["username"] = "username is required."
    if not password or len(password) < 8:
        errors["password"] = "Password must be at least 8 characters."
    if role not in ROLES:
        errors["role"] = f"Must be one of: {', '.join(ROLES)}."
    if team is not None and team not in TEAMS:
        errors["team"] = f"Must be one of: {', '.join(TEAMS)}."
    elif team is None and role != ROLE_ADMIN:
        errors["team"] = "Non-admin users must belong to a team."
    if username and store.get_user_by_username(username) is not None:
        errors["username"] = f"User {username!r} already exists."
    if errors:
        raise ValidationError("Invalid user", details=errors)

    user = User(
        username=username,
        full_name=full_name,
        password_hash=hash_password(password),
        role=role,
        team=team,
    )
    store.add(user)
    store.commit()
    logger.info("Provisioned user %s (%s/%s)", username, role, team)
    return user
