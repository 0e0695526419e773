"""
Request contracts — one validated struct per mutation body.

Blueprints parse JSON into these with ``from_json``; anything malformed
is rejected with a ``ValidationError`` carrying field-level details
before the orchestrator runs. Optional fields on update requests use
``UNSET`` to tell "not sent" apart from an explicit value.
"""

from __future__ import annotations

from dataclasses import dataclass

from pcs.core.exceptions import ValidationError
from pcs.models.ticket import DEFAULT_TICKET_PRIORITY, TICKET_PRIORITIES, TICKET_STATUSES

MAX_TITLE = 300
MAX_USERNAME = 100
MAX_TEXT = 20000


class _Unset:
    def __repr__(self):
        return "UNSET"

    def __bool__(self):
        return False


UNSET = _Unset()


def _body(data) -> dict:
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def _required_str(data, field, errors, max_len, strip=True):
    value = data.get(field)
    if not isinstance(value, str) or not value.strip():
        errors[field] = f"{field} is required."
        return None
    if strip:
        value = value.strip()
    if len(value) > max_len:
        errors[field] = f"{field} must be ≤ {max_len} characters."
        return None
    return value


def _optional_str(data, field, errors, max_len):
    if field not in data:
        return UNSET
    value = data.get(field)
    if value is None:
        return ""
    if not isinstance(value, str):
        errors[field] = f"{field} must be a string."
        return UNSET
    if len(value) > max_len:
        errors[field] = f"{field} must be ≤ {max_len} characters."
        return UNSET
    return value


def _choice(value, field, choices, errors):
    if value not in choices:
        errors[field] = f"Must be one of: {', '.join(choices)}."
        return None
    return value


def _raise_if(errors):
    if errors:
        raise ValidationError("Invalid request", details=errors)


@dataclass(frozen=True)
class LoginRequest:
    username: str
    password: str

    @classmethod
    def from_json(cls, data) -> "LoginRequest":
        data = _body(data)
        errors: dict[str, str] = {}
        username = _required_str(data, "username", errors, MAX_USERNAME)
        password = _required_str(data, "password", errors, 1024, strip=False)
        _raise_if(errors)
        return cls(username=username, password=password)


@dataclass(frozen=True)
class CreateTicketRequest:
    title: str
    technical_specs: str = ""
    priority: str = DEFAULT_TICKET_PRIORITY

    @classmethod
    def from_json(cls, data) -> "CreateTicketRequest":
        data = _body(data)
        errors: dict[str, str] = {}
        title = _required_str(data, "title", errors, MAX_TITLE)
        specs = _optional_str(data, "technical_specs", errors, MAX_TEXT)
        priority = data.get("priority") or DEFAULT_TICKET_PRIORITY
        priority = _choice(priority, "priority", TICKET_PRIORITIES, errors)
        _raise_if(errors)
        return cls(title=title, technical_specs=specs or "", priority=priority)


@dataclass(frozen=True)
class UpdateTicketStatusRequest:
    status: str

    @classmethod
    def from_json(cls, data) -> "UpdateTicketStatusRequest":
        data = _body(data)
        errors: dict[str, str] = {}
        status = _choice(data.get("status"), "status", TICKET_STATUSES, errors)
        _raise_if(errors)
        return cls(status=status)


@dataclass(frozen=True)
class AssignTicketRequest:
    user_ids: tuple[int, ...]

    @classmethod
    def from_json(cls, data) -> "AssignTicketRequest":
        data = _body(data)
        raw = data.get("user_ids")
        if not isinstance(raw, list) or not all(
            isinstance(i, int) and not isinstance(i, bool) for i in raw
        ):
            raise ValidationError(
                "Invalid request", details={"user_ids": "user_ids must be a list of integer ids."},
            )
        return cls(user_ids=tuple(dict.fromkeys(raw)))


@dataclass(frozen=True)
class UpdateTicketRequest:
    title: object = UNSET
    technical_specs: object = UNSET
    priority: object = UNSET

    @classmethod
    def from_json(cls, data) -> "UpdateTicketRequest":
        data = _body(data)
        errors: dict[str, str] = {}
        title = UNSET
        if "title" in data:
            title = _required_str(data, "title", errors, MAX_TITLE)
        specs = _optional_str(data, "technical_specs", errors, MAX_TEXT)
        priority = UNSET
        if "priority" in data:
            priority = _choice(data.get("priority"), "priority", TICKET_PRIORITIES, errors)
        _raise_if(errors)
        return cls(title=title, technical_specs=specs, priority=priority)

    def changes(self) -> dict:
        """Fields that were actually sent."""
        return {
            k: v for k, v in (
                ("title", self.title),
                ("technical_specs", self.technical_specs),
                ("priority", self.priority),
            ) if v is not UNSET
        }


@dataclass(frozen=True)
class CommentRequest:
    content: str

    @classmethod
    def from_json(cls, data) -> "CommentRequest":
        data = _body(data)
        errors: dict[str, str] = {}
        content = _required_str(data, "content", errors, MAX_TEXT, strip=False)
        _raise_if(errors)
        return cls(content=content)
