"""Error taxonomy and user-facing error classification."""

from enum import Enum

from pydantic import BaseModel


class QuestlistError(Exception):
    """Base class for all questlist errors."""


class ValidationError(QuestlistError, ValueError):
    """User input rejected before any state was changed."""


class PersistenceError(QuestlistError, RuntimeError):
    """A read or write against the record store failed.

    Always recoverable: callers restore the last confirmed state and report it.
    """

    def __init__(self, message: str, *, operation: str = "") -> None:
        super().__init__(message)
        self.operation = operation


class ConflictError(QuestlistError):
    """A claim key is already present; handled as a silent no-op."""

    def __init__(self, claim_key: str) -> None:
        super().__init__(f"Claim key already claimed: {claim_key}")
        self.claim_key = claim_key


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_PERSISTENCE = "ERR_PERSISTENCE"
    ERR_NETWORK_ERROR = "ERR_NETWORK_ERROR"
    ERR_RECORD_NOT_FOUND = "ERR_RECORD_NOT_FOUND"
    ERR_ALREADY_CLAIMED = "ERR_ALREADY_CLAIMED"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


_NETWORK_PHRASES = ("connection", "timeout", "network", "unreachable", "database is locked")


def classify_error_with_response(exception: Exception) -> ErrorResponse:  # noqa: PLR0911
    """Classify an error and return a structured response with recovery suggestions.

    Args:
        exception: The exception raised while handling a user action

    Returns:
        ErrorResponse with code, message, suggestion, and severity
    """
    error_str = str(exception).lower()

    if isinstance(exception, ValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=str(exception) or "That input isn't valid.",
            suggestion="Check the task fields and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, ConflictError):
        return ErrorResponse(
            code=ErrorCode.ERR_ALREADY_CLAIMED,
            message="This reward has already been claimed.",
            suggestion="Complete more tasks to unlock the next quest.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, KeyError) or "not found" in error_str:
        return ErrorResponse(
            code=ErrorCode.ERR_RECORD_NOT_FOUND,
            message="That item no longer exists.",
            suggestion="Reload your task list and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, ConnectionError | TimeoutError) or any(p in error_str for p in _NETWORK_PHRASES):
        return ErrorResponse(
            code=ErrorCode.ERR_NETWORK_ERROR,
            message="Couldn't reach the data store.",
            suggestion="Check your connection and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    if isinstance(exception, PersistenceError):
        return ErrorResponse(
            code=ErrorCode.ERR_PERSISTENCE,
            message="Your change couldn't be saved, so it was undone.",
            suggestion="Check storage permissions and try again.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later.",
        severity=ErrorSeverity.MEDIUM,
    )
