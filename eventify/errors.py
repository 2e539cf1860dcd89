"""Domain errors for event registration.

Errors are framework-free: services raise them, the HTTP layer maps them to
status codes (see ``HTTP_STATUS``) and the remote client maps response
payloads back to the same classes (see ``error_from_payload``).
"""
from enum import Enum
from typing import Any, Optional


class ErrorCode(Enum):
    """Domain error codes."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    PAST_EVENT = "PAST_EVENT"
    DUPLICATE_REGISTRATION = "DUPLICATE_REGISTRATION"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    FORBIDDEN = "FORBIDDEN"
    ALREADY_CANCELLED = "ALREADY_CANCELLED"
    UNAUTHORIZED = "UNAUTHORIZED"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code.value, **self.details}


class ValidationError(DomainError):
    """Raised when event or participant fields are missing or malformed.

    ``fields`` maps each offending field path to a reason.
    """

    code = ErrorCode.VALIDATION_ERROR

    def __init__(self, fields: dict[str, str], message: Optional[str] = None) -> None:
        super().__init__(
            message or "Invalid fields: " + ", ".join(sorted(fields)),
            fields=dict(fields),
        )
        self.fields = dict(fields)


class NotFoundError(DomainError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, kind: str, identifier: Any = None) -> None:
        super().__init__(f"{kind} not found")
        self.kind = kind
        self.identifier = identifier


class PastEventError(DomainError):
    code = ErrorCode.PAST_EVENT

    def __init__(self, message: str = "Cannot register for past events") -> None:
        super().__init__(message)


class DuplicateRegistrationError(DomainError):
    code = ErrorCode.DUPLICATE_REGISTRATION

    def __init__(self, message: str = "You are already registered for this event") -> None:
        super().__init__(message)


class CapacityExceededError(DomainError):
    """Raised when a reservation would push an event past its capacity."""

    code = ErrorCode.CAPACITY_EXCEEDED

    def __init__(self, remaining: Optional[int] = None) -> None:
        if remaining is None:
            message = "Event is full"
        else:
            message = f"Event is full. Only {remaining} spots available"
        super().__init__(message, remaining=remaining)
        self.remaining = remaining


class ForbiddenError(DomainError):
    code = ErrorCode.FORBIDDEN

    def __init__(self, message: str = "Not authorized to access this registration") -> None:
        super().__init__(message)


class AlreadyCancelledError(DomainError):
    code = ErrorCode.ALREADY_CANCELLED

    def __init__(self, message: str = "Registration is already cancelled") -> None:
        super().__init__(message)


class UnauthorizedError(DomainError):
    code = ErrorCode.UNAUTHORIZED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class RemoteUnavailableError(Exception):
    """Raised by the remote client when the API cannot be reached."""


HTTP_STATUS: dict[ErrorCode, int] = {
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.PAST_EVENT: 400,
    ErrorCode.DUPLICATE_REGISTRATION: 409,
    ErrorCode.CAPACITY_EXCEEDED: 409,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.ALREADY_CANCELLED: 400,
    ErrorCode.UNAUTHORIZED: 401,
}


def error_from_payload(payload: dict[str, Any]) -> Optional[DomainError]:
    """Rebuild a domain error from an API error body, or None if unrecognised."""
    try:
        code = ErrorCode(payload.get("code"))
    except ValueError:
        return None
    message = payload.get("detail") or ""
    if code is ErrorCode.VALIDATION_ERROR:
        return ValidationError(payload.get("fields") or {}, message or None)
    if code is ErrorCode.NOT_FOUND:
        err = NotFoundError("Resource")
        err.message = message or err.message
        return err
    if code is ErrorCode.CAPACITY_EXCEEDED:
        return CapacityExceededError(payload.get("remaining"))
    cls = {
        ErrorCode.PAST_EVENT: PastEventError,
        ErrorCode.DUPLICATE_REGISTRATION: DuplicateRegistrationError,
        ErrorCode.FORBIDDEN: ForbiddenError,
        ErrorCode.ALREADY_CANCELLED: AlreadyCancelledError,
        ErrorCode.UNAUTHORIZED: UnauthorizedError,
    }[code]
    return cls(message) if message else cls()
