"""Domain error codes and exceptions.

Every error carries a stable ``code`` and a translation key for its user-facing
message; the HTTP layer maps codes to status codes and renders the message in
the caller's language.
"""
from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    FORBIDDEN = "FORBIDDEN"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    CONFLICT = "CONFLICT"
    DEPENDENCY_UNAVAILABLE = "DEPENDENCY_UNAVAILABLE"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION_FAILED
    message_key: str = "errors.generic"

    def __init__(self, message: str, *, message_key: str | None = None, params: dict | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.params = dict(params or {})
        if message_key is not None:
            self.message_key = message_key

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(DomainError):
    """Missing or malformed input. Always a client fault."""

    code = ErrorCode.VALIDATION_FAILED
    message_key = "validation.invalid"

    def __init__(
        self,
        message: str,
        fields: list[str] | None = None,
        *,
        message_key: str | None = None,
        params: dict | None = None,
    ) -> None:
        self.fields = list(fields or [])
        super().__init__(message, message_key=message_key, params={"fields": ", ".join(self.fields), **(params or {})})


class MissingFieldsError(ValidationError):
    """Raised when required fields are absent."""

    message_key = "validation.missing_fields"

    def __init__(self, fields: list[str]) -> None:
        super().__init__(f"Missing required fields: {', '.join(fields)}", fields)


class NotFoundError(DomainError):
    """Referenced entity is absent or already soft-deleted."""

    code = ErrorCode.NOT_FOUND
    message_key = "errors.not_found"

    def __init__(self, entity: str, entity_id: object, *, message_key: str | None = None) -> None:
        super().__init__(f"{entity} not found", message_key=message_key)
        self.entity = entity
        self.entity_id = entity_id


class EventNotFoundError(NotFoundError):
    message_key = "events.not_found"

    def __init__(self, event_id: int) -> None:
        super().__init__("Event", event_id)


class NotificationNotFoundError(NotFoundError):
    message_key = "notifications.not_found"

    def __init__(self, notification_id: int) -> None:
        super().__init__("Notification", notification_id)


class AuthorizationError(DomainError):
    """Authenticated, but not allowed to perform the action."""

    code = ErrorCode.FORBIDDEN
    message_key = "auth.forbidden"


class AuthenticationError(DomainError):
    """No (valid) identity attached to the request."""

    code = ErrorCode.UNAUTHENTICATED
    message_key = "auth.unauthorized"


class ConflictError(DomainError):
    """Duplicate unique field on creation, such as an email or username already
    registered with the identity service."""

    code = ErrorCode.CONFLICT
    message_key = "errors.conflict"


class DependencyUnavailableError(DomainError):
    """Cache or pub/sub backend unreachable. Never fatal to the caller."""

    code = ErrorCode.DEPENDENCY_UNAVAILABLE
    message_key = "errors.dependency_unavailable"

    def __init__(self, dependency: str, cause: Exception | None = None) -> None:
        super().__init__(f"{dependency} unavailable")
        self.dependency = dependency
        self.cause = cause
