"""Domain error taxonomy.

Learn: Services and guards raise these instead of HTTPException so the
same code can run from the CLI and the background sweeper. main.py maps
them to HTTP responses in one exception handler. The `detail` is the only
thing a client ever sees, so it must never carry hashes, tokens or
database messages.
"""


class AuthGateError(Exception):
    """Base class for errors that are safe to show to the caller."""

    status_code: int = 500
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidCredentialsError(AuthGateError):
    status_code = 401
    detail = "Invalid credentials"


class InvalidRefreshTokenError(AuthGateError):
    status_code = 401
    detail = "Invalid refresh token"


class UnauthorizedError(AuthGateError):
    """Bad, missing or expired bearer/refresh token."""

    status_code = 401
    detail = "Unauthorized"


class MissingApiKeyError(AuthGateError):
    status_code = 401
    detail = "API key is missing"


class InvalidApiKeyError(AuthGateError):
    status_code = 401
    detail = "Invalid API key"


class NotFoundError(AuthGateError):
    status_code = 404
    detail = "Not found"


class ConflictError(AuthGateError):
    status_code = 409
    detail = "Conflict"


class InternalError(AuthGateError):
    """Opaque replacement for unexpected store/signing failures."""

    status_code = 500
    detail = "Internal server error"
