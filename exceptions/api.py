"""
REST API exceptions.

Any non-2xx response is a failure, whatever its body says.
"""

from .base import LmdClientException


class ApiException(LmdClientException):
    """Base exception for failed API calls."""

    def __init__(self, message: str, status: int | None = None, path: str | None = None):
        super().__init__(message, details={'status': status, 'path': path})
        self.status = status
        self.path = path


class ApiValidationException(ApiException):
    """Raised on 4xx responses. The message is the server's, passed through verbatim."""
    pass


class ApiNotFoundException(ApiValidationException):
    """Raised on 404 responses."""
    pass


class ApiUnavailableException(ApiException):
    """Raised on transport failures, timeouts and 5xx responses. Recoverable by manual retry."""
    pass
