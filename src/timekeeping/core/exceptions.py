from __future__ import annotations


class DomainError(Exception):
    """Base exception for business rule violations."""

    code = "DOMAIN_ERROR"
    default_message = "Request could not be completed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    code = "VALIDATION_ERROR"
    default_message = "Invalid input"


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    code = "NOT_AUTHORIZED"
    default_message = "You are not allowed to perform this action"


class NotFoundError(DomainError):
    code = "NOT_FOUND"
    default_message = "Record not found"


class UpstreamError(DomainError):
    """Raised when a collaborator (media store, settings lookup) fails."""

    code = "UPSTREAM_FAILURE"
    default_message = "A dependent service failed"


class ConflictError(DomainError):
    """Raised when a record changed underneath an operation; safe to retry."""

    code = "CONFLICT"
    default_message = "Record changed concurrently, please retry"


class GuardViolation(DomainError):
    """A state-machine guard rejected the transition (the action was already applied)."""

    code = "GUARD_VIOLATION"
    default_message = "Action is not allowed in the current state"


class AlreadyClockedIn(GuardViolation):
    code = "ALREADY_CLOCKED_IN"
    default_message = "Already clocked in today"


class NotClockedIn(GuardViolation):
    code = "NOT_CLOCKED_IN"
    default_message = "You have not clocked in today"


class AlreadyClockedOut(GuardViolation):
    code = "ALREADY_CLOCKED_OUT"
    default_message = "Already clocked out today"


class TimerAlreadyRunning(GuardViolation):
    code = "ALREADY_RUNNING"
    default_message = "Timer is already running"


class TimerNotRunning(GuardViolation):
    code = "NOT_RUNNING"
    default_message = "Timer is not running"


class InvalidTransition(GuardViolation):
    code = "INVALID_TRANSITION"
