"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from unittest.mock import AsyncMock, MagicMock
import pytest

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Mock config module completely before any imports
config_mock = MagicMock()
config_mock.API_BASE_URL = "http://test.local/api"
config_mock.API_TIMEOUT_SECONDS = None
config_mock.GEOFENCE_RADIUS_METERS = 500.0
config_mock.LIVE_TRACKING_INTERVAL_SECONDS = 10
config_mock.LOG_LEVEL = "INFO"
config_mock.LOG_DIR = "logs"
config_mock.LOG_RETENTION_DAYS = 7
config_mock.LOG_MASK_SECRETS = True

sys.modules['config'] = config_mock

from enums.actor_role import ActorRole
from enums.payment_status import PaymentStatus
from enums.suborder_status import SuborderStatus
from models.location import LocationDTO
from models.session import SessionContext
from models.suborder import SuborderDTO


# ============================================================================
# Coordinates
# ============================================================================

# Karachi shop and a customer ~1.37 km away
SHOP = (24.8607, 67.0011)
CUSTOMER = (24.8700, 67.0100)


# ============================================================================
# Session Fixtures
# ============================================================================

@pytest.fixture
def rider_session():
    return SessionContext(user_id=10, role=ActorRole.RIDER, token="rider-token", rider_id=7)


@pytest.fixture
def vendor_session():
    return SessionContext(user_id=20, role=ActorRole.VENDOR, token="vendor-token", vendor_id=3)


@pytest.fixture
def customer_session():
    return SessionContext(user_id=30, role=ActorRole.CUSTOMER, token="customer-token", customer_id=42)


@pytest.fixture
def mock_client():
    """ApiClient stand-in; repositories are patched per test so it is never called directly."""
    return AsyncMock()


# ============================================================================
# Suborder Factory
# ============================================================================

def make_suborder(suborder_id: int = 101, status: SuborderStatus = SuborderStatus.ASSIGNED,
                  payment_status: PaymentStatus = PaymentStatus.PENDING,
                  delivery_boy_id: int | None = 7, pickup=SHOP, delivery=CUSTOMER) -> SuborderDTO:
    return SuborderDTO(
        suborder_id=suborder_id,
        order_id=1,
        status=status,
        payment_status=payment_status,
        pickup_location=LocationDTO(latitude=pickup[0], longitude=pickup[1]) if pickup else None,
        delivery_location=LocationDTO(latitude=delivery[0], longitude=delivery[1]) if delivery else None,
        shop_id=5,
        branch_id=6,
        customer_id=42,
        delivery_boy_id=delivery_boy_id,
    )


@pytest.fixture
def suborder_factory():
    return make_suborder
