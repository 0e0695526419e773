"""
Credential utilities — bcrypt password hashing and verification.

Cost factor comes from ``BCRYPT_ROUNDS`` (10 by default). Verification
for an unknown username still runs one bcrypt check against a throwaway
hash, so a miss costs the same as a wrong password.
"""

import bcrypt
from flask import current_app, has_app_context

DEFAULT_ROUNDS = 10

_dummy_hash: bytes | None = None


def _rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", DEFAULT_ROUNDS))
    return DEFAULT_ROUNDS


def hash_password(plain_password: str, rounds: int | None = None) -> str:
    """Hash a plain-text password with a fresh bcrypt salt."""
    salt = bcrypt.gensalt(rounds=rounds or _rounds())
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, password_hash: str | None) -> bool:
    """Check a plain-text password against a stored bcrypt hash.

    A missing or malformed hash is a mismatch, never an exception.
    """
    if not password_hash or plain_password is None:
        return False
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        return False


def burn_verification(plain_password: str) -> None:
    """Spend one bcrypt verification on a throwaway hash."""
    global _dummy_hash
    if _dummy_hash is None:
        _dummy_hash = bcrypt.hashpw(b"pcs-unknown-user", bcrypt.gensalt(rounds=_rounds()))
    bcrypt.checkpw((plain_password or "").encode("utf-8"), _dummy_hash)
