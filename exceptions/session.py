"""
Session and identity exceptions.

These cannot be recovered from without logging in again.
"""

from .base import LmdClientException


class SessionException(LmdClientException):
    """Base exception for session/identity errors."""
    pass


class MissingSessionContextException(SessionException):
    """Raised when an operation needs an identity the active session does not carry."""

    def __init__(self, required: str):
        super().__init__(
            f"No active {required} context, please log in again",
            details={'required': required}
        )
        self.required = required


class CustomerNotFoundException(SessionException):
    """Raised when a session user cannot be resolved to a canonical customer id."""

    def __init__(self, user_id: int | str):
        super().__init__(
            f"No customer profile found for user {user_id}",
            details={'user_id': user_id}
        )
        self.user_id = user_id
