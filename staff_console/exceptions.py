"""Error taxonomy shared by the session store, gateway and lifecycle."""

from typing import Optional


class ConsoleError(Exception):
    """Base class for every error the console turns into a notice"""

    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


# Authentication

class AuthError(ConsoleError):
    default_message = "Authentication failed"


class InvalidCredentials(AuthError):
    default_message = "Invalid email or password"


class RegistrationRejected(AuthError):
    default_message = "Registration was rejected"


# Validation

class ValidationError(ConsoleError):
    """A draft that must not be sent to the backend.

    ``field`` names the form field the message belongs to so it can be
    rendered next to that input.
    """

    default_message = "Invalid input"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class InvalidDateRange(ValidationError):
    default_message = "End date must be on or after the start date"


class PastStartDate(ValidationError):
    default_message = "Start date cannot be in the past"


class ReasonTooShort(ValidationError):
    default_message = "Please provide a reason with at least 5 characters"


class RequiredFieldMissing(ValidationError):
    default_message = "This field is required"


# State

class StateError(ConsoleError):
    default_message = "This action is not allowed"


class NotEditable(StateError):
    default_message = "Only your own pending leave requests can be changed"


class AlreadyDecided(StateError):
    default_message = "This leave request has already been decided"


class UnauthorizedActor(StateError):
    default_message = "Insufficient permissions"


# Transport

class NetworkError(ConsoleError):
    default_message = "The server could not be reached"

    def __init__(
        self,
        message: Optional[str] = None,
        status_code: Optional[int] = None,
        server_message: Optional[str] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.server_message = server_message


class SessionExpired(NetworkError):
    default_message = "Your session has expired. Please log in again."

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, status_code=401)


class NotFoundError(ConsoleError):
    default_message = "The requested record was not found"
