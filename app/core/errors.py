"""Domain error codes for the seminar credit engine.

Services raise these; the API layer turns them into JSON responses
(see ``app.main``). Messages are safe to show to front-desk operators.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION = "VALIDATION_ERROR"
    INVALID_STATE = "INVALID_STATE"
    DUPLICATE = "DUPLICATE"
    CAPACITY = "CAPACITY_EXCEEDED"
    POLICY = "POLICY_VIOLATION"
    STORAGE = "STORAGE_ERROR"


class DomainError(Exception):
    """Base domain error with code and user-safe message."""

    code: ErrorCode = ErrorCode.VALIDATION
    status_code: int = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class NotFoundError(DomainError):
    """Raised when a registration, session, attendance or certificate is unknown."""

    code = ErrorCode.NOT_FOUND
    status_code = 404


class ValidationError(DomainError):
    """Raised for malformed input or a session/seminar mismatch."""

    code = ErrorCode.VALIDATION
    status_code = 400


class InvalidStateError(DomainError):
    """Raised when a registration is not in a state that allows the operation."""

    code = ErrorCode.INVALID_STATE
    status_code = 409


class DuplicateError(DomainError):
    """Raised when the record already exists (e.g. already checked in)."""

    code = ErrorCode.DUPLICATE
    status_code = 409


class CapacityError(DomainError):
    """Raised when a registration has no sessions remaining."""

    code = ErrorCode.CAPACITY
    status_code = 409


class PolicyError(DomainError):
    """Raised when a business policy forbids the operation (makeup already used)."""

    code = ErrorCode.POLICY
    status_code = 422


class StorageError(DomainError):
    """Raised when the backing store keeps failing after retries."""

    code = ErrorCode.STORAGE
    status_code = 503
