"""
Base exception classes for the delivery client.
"""


class LmdClientException(Exception):
    """
    Base exception for all delivery client errors.

    Repositories, state machines and the geofence raise subclasses of it;
    services catch it at their operation boundary (utils.error_handler) and
    turn it into the message stored in their `error` slot.

    Attributes:
        message: Human-readable error message
        details: Context for logs and message templates (ids, states, distances)
    """

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        context = ''.join(f", {key}={value!r}" for key, value in self.details.items())
        return f"{type(self).__name__}({self.message!r}{context})"
