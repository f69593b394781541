"""
Service-wide exception hierarchy.

Services raise these types; blueprints register one handler per type and
map them to HTTP status codes:

    ValidationError     → 400
    InvalidStateError   → 400
    AuthorizationError  → 403
    NotFoundError       → 404

Usage:
    from servicedesk.core.exceptions import NotFoundError, ValidationError

    raise NotFoundError(resource="Request", resource_id=42)
    raise ValidationError("Invalid status", details={"status": "Invalid status"})
"""


class ServiceDeskError(Exception):
    """Base class for every error the service layer raises on purpose."""


class NotFoundError(ServiceDeskError):
    """Raised when a requested resource does not exist.

    Args:
        resource: Human-readable entity name (e.g. "Request").
        resource_id: The key that was looked up. Logged, not echoed to clients.
    """

    def __init__(self, resource: str, resource_id: int | str | None = None) -> None:
        self.resource = resource
        self.resource_id = resource_id
        super().__init__(f"{resource} not found")

    @property
    def log_message(self) -> str:
        if self.resource_id is None:
            return str(self)
        return f"{self.resource} id={self.resource_id} not found"


class ValidationError(ServiceDeskError):
    """Raised when a field is missing, malformed, or outside its enumeration.

    Args:
        message: Human-readable explanation of what failed.
        details: Optional field-level breakdown. Keys are field names;
                 values are error descriptions.
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        self.details = details or {}
        super().__init__(message)


class AuthorizationError(ServiceDeskError):
    """Raised when the caller's role or ownership does not permit the action."""

    def __init__(self, message: str = "Not authorized", actor_id: int | None = None) -> None:
        self.actor_id = actor_id
        super().__init__(message)


class InvalidStateError(ServiceDeskError):
    """Raised when the request's current status forbids the action.

    Example: a student editing a request that is no longer Pending.
    """

    def __init__(self, message: str, current_status: str | None = None) -> None:
        self.current_status = current_status
        super().__init__(message)
