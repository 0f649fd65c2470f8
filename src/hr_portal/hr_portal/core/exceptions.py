class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 400


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials or the session are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a referenced record does not exist."""

    status_code = 404


class ActiveSessionExistsError(ValidationError):
    """Owner already has an open attendance entry."""


class NoActiveSessionError(ValidationError):
    """Owner has no open attendance entry."""


class AlreadyOnBreakError(ValidationError):
    """The open entry already has an open break."""


class NotOnBreakError(ValidationError):
    """The open entry has no open break to close."""


class BreakInProgressError(ValidationError):
    """Checkout attempted while a break is still open."""


class InvalidCorrectionError(ValidationError):
    """Administrative checkout correction rejected."""


class ConcurrentUpdateError(ValidationError):
    """The entry changed between read and write; the caller should retry."""
