"""
Custom exceptions for the delivery client.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the client.

Exception Hierarchy:
--------------------
LmdClientException (base)
├── SessionException                        (context errors, re-login required)
│   ├── MissingSessionContextException
│   └── CustomerNotFoundException
├── ApiException
│   ├── ApiValidationException              (4xx, server message verbatim)
│   │   └── ApiNotFoundException
│   └── ApiUnavailableException             (transport/5xx, retry manually)
├── CartException
│   ├── InvalidCartItemException
│   └── CartNotProvisionedException
└── SuborderException
    ├── SuborderNotFoundException
    ├── InvalidSuborderTransitionException
    ├── InvalidPaymentTransitionException
    ├── ActionNotPermittedException
    ├── SuborderAlreadyAssignedException
    ├── GeofenceRefusedException            (client-side only, never sent)
    └── MissingLocationException

Usage:
------
Repositories and state machines raise specific exceptions:
    raise GeofenceRefusedException(suborder_id, "pickup", 812.4, 500)

Services catch them at the operation boundary and expose a message:
    try:
        await SuborderRepository.confirm_pickup(suborder_id, position, client)
    except LmdClientException as e:
        self.error = handle_service_error(e)
        return False
"""

from .base import LmdClientException
from .session import SessionException, MissingSessionContextException, CustomerNotFoundException
from .api import ApiException, ApiValidationException, ApiNotFoundException, ApiUnavailableException
from .cart import CartException, InvalidCartItemException, CartNotProvisionedException
from .suborder import (
    SuborderException,
    SuborderNotFoundException,
    InvalidSuborderTransitionException,
    InvalidPaymentTransitionException,
    ActionNotPermittedException,
    SuborderAlreadyAssignedException,
    GeofenceRefusedException,
    MissingLocationException,
)

__all__ = [
    # Base
    'LmdClientException',

    # Session
    'SessionException',
    'MissingSessionContextException',
    'CustomerNotFoundException',

    # API
    'ApiException',
    'ApiValidationException',
    'ApiNotFoundException',
    'ApiUnavailableException',

    # Cart
    'CartException',
    'InvalidCartItemException',
    'CartNotProvisionedException',

    # Suborder
    'SuborderException',
    'SuborderNotFoundException',
    'InvalidSuborderTransitionException',
    'InvalidPaymentTransitionException',
    'ActionNotPermittedException',
    'SuborderAlreadyAssignedException',
    'GeofenceRefusedException',
    'MissingLocationException',
]
