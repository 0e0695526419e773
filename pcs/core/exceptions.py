"""
Platform-wide exception hierarchy.

Every failure a caller can see is one of these types. Services raise
them; ``returns_outcome`` turns them into failed ``Outcome`` values and
the blueprints render them with the matching HTTP status. Messages are
surfaced to the caller verbatim.

Usage:
    from pcs.core.exceptions import NotFoundError, PermissionDeniedError

    raise NotFoundError(resource="Scope", resource_id=42)
    raise PermissionDeniedError("Only Admins or Team Leads can toggle comments.")
"""


class DomainError(Exception):
    """Base class for errors that reach the caller unmasked."""

    code = "DOMAIN_ERROR"
    status_code = 400

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class NotAuthenticatedError(DomainError):
    """No valid session was presented. Checked before any policy rule."""

    code = "NOT_AUTHENTICATED"
    status_code = 401

    def __init__(self, message: str = "Not authenticated") -> None:
        super().__init__(message)


class InvalidCredentialsError(DomainError):
    """Login failed.

    Unknown username and wrong password share one message so the
    response cannot be used to enumerate accounts.
    """

    code = "INVALID_CREDENTIALS"
    status_code = 401

    def __init__(self, message: str = "Invalid credentials") -> None:
        super().__init__(message)


class NotFoundError(DomainError):
    """Raised when a referenced Scope/Ticket/Comment/Notification/User is missing.

    Args:
        resource: Human-readable entity name (e.g. "Scope", "Ticket").
        resource_id: The id that was looked up. Logged, not part of the message.
    """

    code = "NOT_FOUND"
    status_code = 404

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")


class PermissionDeniedError(DomainError):
    """The access policy returned Deny; ``message`` is the policy's reason."""

    code = "PERMISSION_DENIED"
    status_code = 403


class ValidationError(DomainError):
    """Raised when request input is malformed.

    Args:
        message: Human-readable summary.
        details: Field-level breakdown; keys are field names.
    """

    code = "VALIDATION_ERROR"
    status_code = 400

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["details"] = self.details
        return d
