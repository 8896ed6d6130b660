"""Domain error taxonomy."""


class CheckinError(Exception):
    """Base class for user-facing check-in errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CheckinError):
    """Empty or invalid user input."""


class ConflictError(CheckinError):
    """Business rule violation, e.g. a second active session."""


class DuplicateError(CheckinError):
    """Phone number already registered in the session."""


class StateError(CheckinError):
    """Action attempted without a valid target."""


class AuthenticationError(CheckinError):
    """Sign-in failed or the access token is not valid."""
