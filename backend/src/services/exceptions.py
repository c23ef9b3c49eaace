"""Shared exceptions for service layer operations."""


class ServiceError(Exception):
    """
    Base class for expected, client-facing failures.

    Carries the HTTP status and the message that is safe to show the client.
    The API layer translates these into responses in one exception handler;
    services never build responses themselves.
    """

    status_code: int = 400
    default_message: str = "Request failed"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidCredentialsError(ServiceError):
    """
    Raised when login fails.

    Used for both unknown identifiers and wrong passwords so responses never
    reveal whether an account exists.
    """

    default_message = "Invalid credentials"


class UnauthorizedError(ServiceError):
    """Raised when a protected operation has no session."""

    status_code = 401
    default_message = "Unauthorized"


class InvalidTokenError(ServiceError):
    """Raised when a session token is malformed, expired, or badly signed."""

    status_code = 401
    default_message = "Invalid token"


class MissingFieldError(ServiceError):
    """Raised when a required input is empty."""

    default_message = "A required field is missing."


class InvalidEmailError(ServiceError):
    """Raised when an email address is not plausible."""

    default_message = "Invalid email"


class EmailTakenError(ServiceError):
    """Raised when a registration code is requested for a registered email."""

    default_message = "Email already registered"


class EmailOrUsernameTakenError(ServiceError):
    """Raised when registration collides with an existing email or username."""

    default_message = "Email or username already exists"


class InvalidOrExpiredCodeError(ServiceError):
    """Raised when no live one-time code matches the email and code given."""

    default_message = "Invalid or expired OTP"


class InvalidStateError(ServiceError):
    """Raised when the selected state requirement record does not exist."""

    default_message = "Selected state is invalid"


class WeakPasswordError(ServiceError):
    """Raised when a new password fails the password policy."""

    default_message = "Password does not meet security requirements."


class ResetNotAuthorizedError(ServiceError):
    """Raised when a password reset arrives without a verified reset code."""

    default_message = "Password reset not authorized. Verify your code again."


class UserNotFoundError(ServiceError):
    """Raised when a user lookup by email, username, or id finds nothing."""

    status_code = 404
    default_message = "User not found."


class EmailNotFoundError(ServiceError):
    """Raised when a reset code is requested for an unknown email."""

    default_message = "Email not found."


class DeliveryFailedError(ServiceError):
    """Raised when the mail provider rejects or cannot be reached."""

    status_code = 502
    default_message = "Failed to send OTP"


class StudentNotFoundError(ServiceError):
    """Raised when a student does not exist or belongs to another user."""

    status_code = 404
    default_message = "Student not found"
