"""
Models Package

Pydantic DTOs for the records exchanged with the delivery REST API,
plus the client-only session and rider position models.
"""

from models.session import SessionContext
from models.customer import CustomerProfileDTO
from models.location import LocationDTO
from models.cartItem import CartItemDTO, CartItemRequestDTO
from models.cart import CartDTO, CartSnapshot
from models.suborder import SuborderDTO
from models.rider_position import RiderPosition
from models.tracking import BroadcastResult, FailedPush

__all__ = [
    'SessionContext',
    'CustomerProfileDTO',
    'LocationDTO',
    'CartItemDTO',
    'CartItemRequestDTO',
    'CartDTO',
    'CartSnapshot',
    'SuborderDTO',
    'RiderPosition',
    'BroadcastResult',
    'FailedPush',
]
