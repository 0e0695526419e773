"""
Session Service — signing and resolving the session token.

The token is an HS256 JWT carrying the caller's identity claims:

{
    "user_id": <int>,
    "role": "ADMIN" | "LEAD" | "ENGINEER",
    "team": "SOFTWARE" | ... | null,
    "exp": <expires_at>          # omitted when JWT_EXPIRES is 0
}

``verify_token`` is the Session Resolver: it recovers an ``Actor`` or
returns None for anything malformed, unsigned, tampered or expired. It
never raises and never touches the Domain Store.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import jwt
from flask import current_app

from pcs.models.auth import ROLE_ADMIN, ROLES, TEAMS

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_EXPIRES = 604800  # 7 days, same as the cookie


@dataclass(frozen=True)
class Actor:
    """Identity claims of an authenticated caller."""

    user_id: int
    role: str
    team: str | None

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    def to_claims(self) -> dict:
        return {"user_id": self.user_id, "role": self.role, "team": self.team}


def _get_secret():
    return current_app.config.get("JWT_SECRET_KEY") or current_app.config["SECRET_KEY"]


def _get_expires():
    return int(current_app.config.get("JWT_EXPIRES", DEFAULT_EXPIRES))


def sign_token(user_id: int, role: str, team: str | None,
               *, secret: str | None = None, expires: int | None = None) -> str:
    """Sign the three identity claims into a session token."""
    payload = Actor(user_id=user_id, role=role, team=team).to_claims()
    lifetime = _get_expires() if expires is None else expires
    if lifetime > 0:
        payload["exp"] = datetime.now(timezone.utc) + timedelta(seconds=lifetime)
    return jwt.encode(payload, secret or _get_secret(), algorithm=ALGORITHM)


def verify_token(token, *, secret: str | None = None) -> Actor | None:
    """Recover the caller's claims from ``token`` or None if it is not valid."""
    if not token or not isinstance(token, str):
        return None
    try:
        payload = jwt.decode(token, secret or _get_secret(), algorithms=[ALGORITHM])
    except jwt.InvalidTokenError as exc:
        logger.debug("Rejected session token: %s", exc)
        return None

    user_id = payload.get("user_id")
    role = payload.get("role")
    team = payload.get("team")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        return None
    if role not in ROLES:
        return None
    if team is not None and team not in TEAMS:
        return None
    if team is None and role != ROLE_ADMIN:
        return None
    return Actor(user_id=user_id, role=role, team=team)
