"""
Error Handler Utility for Client Services

Provides centralized error handling for the service layer with:
- One user-facing message per exception type
- Server validation messages passed through verbatim
- A decorator that turns every public service operation into a
  "flag + message" call that never raises

Usage in services:
    from utils.error_handler import safe_service_call

    class CartService:
        @safe_service_call(default=False)
        async def clear_cart(self) -> bool:
            ...
"""

import functools
import logging
from typing import Any

from exceptions import (
    LmdClientException,
    MissingSessionContextException,
    CustomerNotFoundException,
    ApiValidationException,
    ApiUnavailableException,
    InvalidCartItemException,
    CartNotProvisionedException,
    SuborderNotFoundException,
    InvalidSuborderTransitionException,
    InvalidPaymentTransitionException,
    ActionNotPermittedException,
    SuborderAlreadyAssignedException,
    GeofenceRefusedException,
    MissingLocationException,
)

GENERIC_ERROR_MESSAGE = "Something went wrong, please try again"

ERROR_MESSAGES = {
    # Context errors
    MissingSessionContextException: "You are not logged in as a {required}, please log in again",
    CustomerNotFoundException: "Customer profile not found, please log in again",

    # Transient errors
    ApiUnavailableException: "Server unavailable, please try again",

    # Cart errors
    InvalidCartItemException: "Cannot add item: {reason}",
    CartNotProvisionedException: "Could not create your cart, please try again",

    # Suborder errors
    SuborderNotFoundException: "Order {suborder_id} not found",
    InvalidSuborderTransitionException: "Order {suborder_id} is '{current_state}' and cannot become '{requested_state}'",
    InvalidPaymentTransitionException: "Payment for order {suborder_id} is '{current_state}', cannot mark '{requested_state}'",
    ActionNotPermittedException: "You are not allowed to {action} order {suborder_id}",
    SuborderAlreadyAssignedException: "Order {suborder_id} was already taken by another rider",
    MissingLocationException: "Order {suborder_id} has no {target} location",
}


def handle_service_error(exception: LmdClientException) -> str:
    """
    Convert a client exception to a user-friendly error message.

    Args:
        exception: The custom exception raised below the service boundary

    Returns:
        Message for the service's error slot
    """
    logging.warning(f"Service error handled: {type(exception).__name__} - {str(exception)}")

    # Validation errors and geofence refusals already carry the right wording
    if isinstance(exception, (ApiValidationException, GeofenceRefusedException)):
        return exception.message

    template = None
    for exception_type in type(exception).__mro__:
        template = ERROR_MESSAGES.get(exception_type)
        if template:
            break

    if template is None:
        logging.error(f"Unmapped exception type: {type(exception).__name__}")
        return GENERIC_ERROR_MESSAGE

    exception_data = dict(exception.details)
    for attribute in ('suborder_id', 'current_state', 'requested_state', 'reason',
                      'required', 'action', 'target'):
        if hasattr(exception, attribute):
            exception_data[attribute] = getattr(exception, attribute)

    try:
        return template.format(**exception_data)
    except KeyError as e:
        logging.error(f"Missing format parameter in error message: {e}")
        return exception.message


def handle_unexpected_error(exception: Exception) -> str:
    """
    Handle unexpected exceptions (non-LmdClientException).

    Note:
        Also logs the full exception for debugging
    """
    logging.error(f"Unexpected error: {type(exception).__name__} - {str(exception)}", exc_info=True)
    return GENERIC_ERROR_MESSAGE


def safe_service_call(default: Any = False):
    """
    Decorator for service operations: errors go to self.error, never to the caller.

    Clears self.error on entry and keeps self.is_loading set while the call runs.
    On failure the decorated method returns `default` (called first if it is
    callable, so mutable defaults are not shared).
    """
    def decorator(method):
        @functools.wraps(method)
        async def wrapper(self, *args, **kwargs):
            self.error = None
            self.is_loading = True
            try:
                return await method(self, *args, **kwargs)
            except LmdClientException as e:
                self.error = handle_service_error(e)
            except Exception as e:
                self.error = handle_unexpected_error(e)
            finally:
                self.is_loading = False
            return default() if callable(default) else default

        return wrapper
    return decorator
