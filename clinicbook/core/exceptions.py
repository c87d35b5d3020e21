"""Custom application exceptions."""

from typing import TypeVar

from clinicbook.core.results import Err, ErrorKind, Ok

T = TypeVar("T")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class UnauthorizedException(AppException):
    """Unauthorized access exception."""

    def __init__(self, message: str = "Unauthorized"):
        """Initialize with 401 status code."""
        super().__init__(message, status_code=401)


class ForbiddenException(AppException):
    """Forbidden access exception."""

    def __init__(self, message: str = "Forbidden"):
        """Initialize with 403 status code."""
        super().__init__(message, status_code=403)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class InvalidStateException(ConflictException):
    """Lifecycle transition not permitted from the current status."""

    def __init__(self, message: str = "Invalid state transition"):
        """Initialize with 409 status code."""
        super().__init__(message)


class ValidationException(AppException):
    """Validation error exception."""

    def __init__(self, message: str = "Validation error"):
        """Initialize with 422 status code."""
        super().__init__(message, status_code=422)


class LockTimeoutException(AppException):
    """Provider critical section could not be entered in time."""

    def __init__(self, message: str = "Provider is busy, try again"):
        """Initialize with 503 status code."""
        super().__init__(message, status_code=503)


_EXCEPTIONS_BY_KIND: dict[ErrorKind, type[AppException]] = {
    ErrorKind.NOT_FOUND: NotFoundException,
    ErrorKind.UNAUTHORIZED: ForbiddenException,
    ErrorKind.INVALID_STATE: InvalidStateException,
    ErrorKind.OVERLAP: ConflictException,
    ErrorKind.VALIDATION: ValidationException,
}


def exception_for(error: Err) -> AppException:
    """Build the HTTP-facing exception for a core error."""
    return _EXCEPTIONS_BY_KIND[error.kind](error.message)


def unwrap(result: Ok[T] | Err) -> T:
    """
    Return the value of a successful result or raise its exception.

    Args:
        result: Outcome of a core operation

    Returns:
        The wrapped value

    Raises:
        AppException: Subclass matching the error kind
    """
    if isinstance(result, Err):
        raise exception_for(result)
    return result.value
