"""
Storefront error taxonomy.

Services raise these; the exception handlers registered in
``storefront.main`` turn them into the JSON envelope with the
matching HTTP status. Anything else is a 500.
"""


class StorefrontError(Exception):
    """
    Base class for all storefront errors.

    Attributes:
        message: Human-readable error message, returned to the client
        details: Optional dict with additional context (ids, states), logged only
    """

    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.__class__.__name__}('{self.message}', {details_str})"
        return f"{self.__class__.__name__}('{self.message}')"


class ValidationError(StorefrontError):
    """Malformed or missing input."""

    status_code = 400


class InvalidStateError(StorefrontError):
    """A business rule forbids the operation in the current state."""

    status_code = 400


class UnauthorizedError(StorefrontError):
    """No usable identity on the request."""

    status_code = 401


class ForbiddenError(StorefrontError):
    """Identity is known but its role is not allowed."""

    status_code = 403


class NotFoundError(StorefrontError):
    """
    Resource is missing, inactive, or owned by someone else.

    All three cases share one message and status.
    """

    status_code = 404


class ConflictError(StorefrontError):
    """Concurrent modification detected by the optimistic lock."""

    status_code = 409
