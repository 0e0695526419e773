"""
Operation outcomes.

Orchestrator operations return an ``Outcome`` instead of raising, so a
denied or missing target is a value the caller can branch on:

    outcome = tracking_service.toggle_scope_comments(store, actor, scope_id)
    if not outcome.ok:
        return outcome.error.to_dict(), outcome.error.status_code
    scope = outcome.value

Only ``DomainError`` subclasses are converted. Anything else (a failed
store write) rolls back the unit of work and propagates.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pcs.core.exceptions import DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Success value or one taxonomy error, never both."""

    value: T | None = None
    error: DomainError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any) -> "Outcome":
        return cls(value=value)

    @classmethod
    def failure(cls, error: DomainError) -> "Outcome":
        return cls(error=error)

    def unwrap(self):
        """Return the value or raise the carried error."""
        if self.error is not None:
            raise self.error
        return self.value


def returns_outcome(func):
    """Wrap an operation ``func(store, ...)`` so it returns an ``Outcome``.

    Taxonomy errors roll back any pending changes on the store and come
    back as ``Outcome.failure``; other exceptions roll back and re-raise.
    """

    @functools.wraps(func)
    def wrapper(store, *args, **kwargs):
        try:
            return Outcome.success(func(store, *args, **kwargs))
        except DomainError as exc:
            store.rollback()
            return Outcome.failure(exc)
        except Exception:
            logger.exception("Unexpected failure in %s", func.__name__)
            store.rollback()
            raise

    return wrapper
