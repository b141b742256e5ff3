"""
Error taxonomy shared by the store, the services and the HTTP layer.
Each error carries a stable kind and the HTTP status it is rendered with.
"""


class DaycareError(Exception):
    kind = "error"
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DaycareError):
    """Malformed or missing input; the caller must correct it and retry."""
    kind = "validation"
    status_code = 400


class NotFoundError(DaycareError):
    kind = "not_found"
    status_code = 404


class ConflictError(DaycareError):
    """Unique constraint violation, e.g. a username that is already taken."""
    kind = "conflict"
    status_code = 409


class AuthError(DaycareError):
    kind = "unauthenticated"
    status_code = 401


class DependencyError(DaycareError):
    """Persistence backend or notification transport is unreachable."""
    kind = "dependency"
    status_code = 503
