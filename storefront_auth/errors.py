"""Error types raised by the auth services.

Each error carries the HTTP status it maps to. ``main.py`` installs an
exception handler that renders any ``AuthError`` as ``{"error": message}``.
"""


class AuthError(Exception):
    """Base class for errors with a client-facing message."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AuthError):
    """Malformed, missing or weak input."""

    status_code = 400


class ConflictError(AuthError):
    """Email already registered."""

    status_code = 409


class UnauthorizedError(AuthError):
    """Bad credentials or missing session."""

    status_code = 401


class TokenExpiredError(UnauthorizedError):
    """Session token signature is valid but its expiry has passed."""


class TokenInvalidError(UnauthorizedError):
    """Session token is malformed or its signature does not match."""


class InvalidOrExpiredError(AuthError):
    """Reset token unknown, already used, superseded or expired."""

    status_code = 400


class NotFoundError(AuthError):
    # 401 rather than 404 so a session check never reveals whether an account exists
    status_code = 401


class InternalError(AuthError):
    """Unexpected storage or crypto failure."""

    status_code = 500
