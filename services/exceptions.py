"""
Domain errors raised by the services.

They subclass werkzeug's HTTP exceptions so the API error handlers render
them with the right status code. Messages are deliberately generic so a
caller cannot tell apart *why* a credential or token was rejected.
"""
from werkzeug.exceptions import BadRequest, Forbidden, NotFound, Unauthorized


class AuthError:
    """Marker base for every error raised by the session authority."""


class InvalidCredentialsError(AuthError, Unauthorized):
    description = "Invalid credentials"


class UserNotAuthenticatedError(AuthError, Unauthorized):
    """A valid access token names a user that no longer exists."""

    description = "User not found"


class InvalidTokenError(AuthError, Unauthorized):
    description = "Invalid or expired token"


class InvalidRefreshTokenError(AuthError, Unauthorized):
    description = "Invalid or expired refresh token"


class InvalidResetTokenError(AuthError, Unauthorized):
    description = "Invalid or expired password reset token"


class InvalidVerificationTokenError(AuthError, Unauthorized):
    description = "Invalid or expired verification token"


class UserDoesNotExistError(AuthError, BadRequest):
    description = "User with this email does not exist"


class EmailAlreadyRegisteredError(AuthError, BadRequest):
    description = "User with this email already exists"


class OrphanedTokenError(AuthError, BadRequest):
    description = "User not found"


class PermissionDeniedError(AuthError, Forbidden):
    description = "You do not have permission to perform this action"


class UserNotFoundError(AuthError, NotFound):
    description = "User not found"
