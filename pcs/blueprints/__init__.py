"""
Motion Hellas PCS
Blueprint registry.
"""

from flask import g, jsonify

from pcs.models import db
from pcs.store import DomainStore


def current_store() -> DomainStore:
    """Return the request's Domain Store, created on first use."""
    store = g.get("store")
    if store is None:
        store = g.store = DomainStore(db.session)
    return store


def current_actor():
    """Return the caller's claims resolved by the session middleware, or None."""
    return g.get("actor")


def render_outcome(outcome, status=200, serialize=None):
    """Render an ``Outcome`` as a JSON response.

    Failed outcomes become ``{"error", "code"}`` with the error's status.
    ``serialize`` turns the success value into JSON-ready data; by default
    the value's ``to_dict()`` is used.
    """
    if not outcome.ok:
        return jsonify(outcome.error.to_dict()), outcome.error.status_code
    value = outcome.value
    if serialize is not None:
        body = serialize(value)
    elif hasattr(value, "to_dict"):
        body = value.to_dict()
    else:
        body = value
    return jsonify(body), status
