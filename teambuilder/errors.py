"""Custom exception classes for the application."""


class AppError(Exception):
    """Base application error class."""

    def __init__(self, message, status_code=400):
        """Initialize the error."""
        super().__init__(message)
        self.status_code = status_code
        self.message = message


class ValidationError(AppError):
    """Raised when user input fails validation."""

    def __init__(self, message="Validation failed.", errors=None):
        """Initialize the error."""
        super().__init__(message, 400)
        self.errors = errors


class UnauthorizedError(AppError):
    """Raised when an operation requires an authenticated user."""

    def __init__(self, message="User not authenticated."):
        """Initialize the error."""
        super().__init__(message, 401)


class ForbiddenError(AppError):
    """Raised when the caller does not own the record being mutated."""

    def __init__(self, message="Unauthorized action."):
        """Initialize the error."""
        super().__init__(message, 403)


class NotFoundError(AppError):
    """Raised when a resource is not found."""

    def __init__(self, message="Resource not found."):
        """Initialize the error."""
        super().__init__(message, 404)


class DuplicateResourceError(AppError):
    """Raised when trying to create a resource that already exists."""

    def __init__(self, message="Resource already exists."):
        """Initialize the error."""
        super().__init__(message, 409)


class PreconditionError(AppError):
    """Raised when the current state of the store forbids an operation."""

    def __init__(self, message="Operation not allowed in the current state."):
        """Initialize the error."""
        super().__init__(message, 409)


class ExternalServiceError(AppError):
    """Raised when a hosted collaborator (store, AI API) fails."""

    def __init__(self, message="External service unavailable.", status_code=502):
        """Initialize the error."""
        super().__init__(message, status_code)
