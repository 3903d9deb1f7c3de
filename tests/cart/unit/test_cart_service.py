"""
Unit Tests: CartService

Tests for services/cart.py covering:
- resolve_customer_context() - user id -> customer id, then cart load
- load_cart() - 404 provisions an empty cart; count/total derivation
- add_item() / remove_item() - mutate then reload, validation before any request
- clear_cart() - local reset without reload
- stale responses are dropped
"""

import asyncio

import pytest
from unittest.mock import AsyncMock, patch

from exceptions import ApiNotFoundException, ApiUnavailableException, ApiValidationException
from models.cart import CartDTO
from models.cartItem import CartItemDTO
from models.customer import CustomerProfileDTO
from services.cart import CartService


@pytest.fixture
def cart_service(mock_client):
    service = CartService(mock_client)
    service.customer = CustomerProfileDTO(customer_id=42, user_id=30)
    return service


@pytest.fixture
def cart():
    return CartDTO(id=9, customer_id=42, cart_status="pending", total_amount=27.5)


@pytest.fixture
def cart_items():
    return [
        CartItemDTO(id=1, itemdetails_id=11, quantity=2, price=5.0, shop_id=5, branch_id=6, vendor_id=3),
        CartItemDTO(id=2, itemdetails_id=12, quantity=3, price=4.0, shop_id=5, branch_id=6, vendor_id=3),
    ]


class TestResolveCustomerContext:

    @pytest.mark.asyncio
    async def test_resolves_customer_and_loads_cart(self, mock_client, cart, cart_items):
        service = CartService(mock_client)
        with patch('repositories.customer.CustomerRepository.get_by_user_id', new_callable=AsyncMock) as get_profile, \
                patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            get_profile.return_value = CustomerProfileDTO(customer_id=42, user_id=30)
            get_details.return_value = (cart, cart_items, {})

            profile = await service.resolve_customer_context(30)

        assert profile.customer_id == 42
        assert service.customer.customer_id == 42
        get_details.assert_awaited_once_with(42, mock_client)
        assert service.count == 5

    @pytest.mark.asyncio
    async def test_unknown_user_sets_error(self, mock_client):
        service = CartService(mock_client)
        with patch('repositories.customer.CustomerRepository.get_by_user_id', new_callable=AsyncMock) as get_profile:
            get_profile.side_effect = ApiNotFoundException("Customer not found", status=404)

            profile = await service.resolve_customer_context(30)

        assert profile is None
        assert service.customer is None
        assert service.error == "Customer profile not found, please log in again"

    @pytest.mark.asyncio
    async def test_profile_without_customer_id_is_rejected(self, mock_client):
        service = CartService(mock_client)
        with patch('repositories.customer.CustomerRepository.get_by_user_id', new_callable=AsyncMock) as get_profile:
            get_profile.return_value = CustomerProfileDTO(user_id=30)

            assert await service.resolve_customer_context(30) is None

        assert service.customer is None
        assert service.error is not None


class TestLoadCart:

    @pytest.mark.asyncio
    async def test_missing_cart_is_provisioned_and_empty(self, cart_service):
        with patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details, \
                patch('repositories.cart.CartRepository.create', new_callable=AsyncMock) as create:
            get_details.side_effect = ApiNotFoundException("Cart not found", status=404)
            create.return_value = 77

            snapshot = await cart_service.load_cart(42)

        create.assert_awaited_once_with(42, cart_service.client)
        assert snapshot.is_empty
        assert snapshot.cart.id == 77
        assert cart_service.count == 0
        assert cart_service.total == 0.0
        assert cart_service.error is None

    @pytest.mark.asyncio
    async def test_count_is_sum_of_quantities(self, cart_service, cart, cart_items):
        with patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            get_details.return_value = (cart, cart_items, {})

            await cart_service.load_cart(42)

        assert cart_service.count == 5
        assert len(cart_service.items) == 2

    @pytest.mark.asyncio
    async def test_total_is_trusted_from_server(self, cart_service, cart_items):
        """Lines sum to 22.0 but the server says 27.5 (fees); the server wins."""
        mismatched = CartDTO(id=9, customer_id=42, total_amount=27.5)
        with patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            get_details.return_value = (mismatched, cart_items, {})

            await cart_service.load_cart(42)

        assert cart_service.total == 27.5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("server_total", [450.0, 999.0])
    async def test_two_lines_scenario(self, cart_service, server_total):
        items = [
            CartItemDTO(id=1, itemdetails_id=11, quantity=2, price=100.0),
            CartItemDTO(id=2, itemdetails_id=12, quantity=1, price=250.0),
        ]
        with patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            get_details.return_value = (CartDTO(id=9, customer_id=42, total_amount=server_total), items, {})

            await cart_service.load_cart(42)

        assert cart_service.count == 3
        assert cart_service.total == server_total

    @pytest.mark.asyncio
    async def test_failure_keeps_previous_state(self, cart_service, cart, cart_items):
        with patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            get_details.return_value = (cart, cart_items, {})
            await cart_service.load_cart(42)

            get_details.side_effect = ApiUnavailableException("down", status=503)
            result = await cart_service.load_cart(42)

        assert result is None
        assert cart_service.count == 5
        assert cart_service.error == "Server unavailable, please try again"

    @pytest.mark.asyncio
    async def test_stale_response_is_dropped(self, cart_service, cart, cart_items):
        """A slow first reload must not overwrite the result of a newer one."""
        release_first = asyncio.Event()
        newer_cart = CartDTO(id=9, customer_id=42, total_amount=4.0)
        newer_items = [CartItemDTO(id=2, itemdetails_id=12, quantity=1, price=4.0)]
        calls = []

        async def fake_get_details(customer_id, client):
            calls.append(customer_id)
            if len(calls) == 1:
                await release_first.wait()
                return cart, cart_items, {}
            return newer_cart, newer_items, {}

        with patch('repositories.cart.CartRepository.get_details', side_effect=fake_get_details):
            slow = asyncio.create_task(cart_service._reload(42))
            await asyncio.sleep(0)
            await cart_service._reload(42)
            release_first.set()
            await slow

        assert cart_service.count == 1
        assert cart_service.total == 4.0


class TestAddItem:

    @pytest.mark.asyncio
    async def test_add_then_reload(self, cart_service, cart, cart_items):
        with patch('repositories.cart.CartRepository.create', new_callable=AsyncMock) as create, \
                patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item, \
                patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            create.return_value = 9
            get_details.return_value = (cart, cart_items, {})

            result = await cart_service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                                 itemdetails_id=11, quantity=2, price=5.0)

        assert result is True
        request = add_item.await_args.args[0]
        assert request.customer_id == 42
        assert request.itemdetails_id == 11
        assert request.quantity == 2
        get_details.assert_awaited_once()
        assert cart_service.count == 5

    @pytest.mark.asyncio
    async def test_add_without_resolved_customer_sends_nothing(self, mock_client):
        service = CartService(mock_client)
        with patch('repositories.cart.CartRepository.create', new_callable=AsyncMock) as create, \
                patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item:
            result = await service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                            itemdetails_id=11, quantity=1, price=5.0)

        assert result is False
        create.assert_not_awaited()
        add_item.assert_not_awaited()
        assert service.error == "You are not logged in as a customer, please log in again"

    @pytest.mark.asyncio
    async def test_missing_itemdetails_rejected_without_request(self, cart_service):
        with patch('repositories.cart.CartRepository.create', new_callable=AsyncMock) as create, \
                patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item:
            result = await cart_service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                                 itemdetails_id=None, quantity=1, price=5.0)

        assert result is False
        create.assert_not_awaited()
        add_item.assert_not_awaited()
        assert cart_service.error == "Cannot add item: missing item-detail reference"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("quantity", [0, -2])
    async def test_non_positive_quantity_rejected(self, cart_service, quantity):
        with patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item:
            result = await cart_service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                                 itemdetails_id=11, quantity=quantity, price=5.0)

        assert result is False
        add_item.assert_not_awaited()
        assert "quantity" in cart_service.error

    @pytest.mark.asyncio
    async def test_negative_price_rejected(self, cart_service):
        with patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item:
            result = await cart_service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                                 itemdetails_id=11, quantity=1, price=-1.0)

        assert result is False
        add_item.assert_not_awaited()
        assert "price" in cart_service.error

    @pytest.mark.asyncio
    async def test_server_rejection_returns_false_and_keeps_cart(self, cart_service, cart, cart_items):
        cart_service.cart, cart_service.items, cart_service.count = cart, cart_items, 5
        with patch('repositories.cart.CartRepository.create', new_callable=AsyncMock) as create, \
                patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item, \
                patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            create.return_value = 9
            add_item.side_effect = ApiValidationException("Item is out of stock", status=422)

            result = await cart_service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                                 itemdetails_id=11, quantity=1, price=5.0)

        assert result is False
        get_details.assert_not_awaited()
        assert cart_service.count == 5
        assert cart_service.error == "Item is out of stock"

    @pytest.mark.asyncio
    async def test_requires_resolved_customer(self, mock_client):
        service = CartService(mock_client)
        with patch('repositories.cart.CartRepository.add_item', new_callable=AsyncMock) as add_item:
            result = await service.add_item(vendor_id=3, shop_id=5, branch_id=6,
                                            itemdetails_id=11, quantity=1, price=5.0)

        assert result is False
        add_item.assert_not_awaited()
        assert "customer" in service.error


class TestRemoveAndClear:

    @pytest.mark.asyncio
    async def test_remove_then_reload(self, cart_service, cart, cart_items):
        with patch('repositories.cart.CartRepository.remove_item', new_callable=AsyncMock) as remove_item, \
                patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            get_details.return_value = (cart, cart_items[1:], {})

            assert await cart_service.remove_item(1) is True

        remove_item.assert_awaited_once_with(1, cart_service.client)
        assert cart_service.count == 3

    @pytest.mark.asyncio
    async def test_clear_resets_without_reload(self, cart_service, cart, cart_items):
        cart_service.cart, cart_service.items, cart_service.count, cart_service.total = cart, cart_items, 5, 27.5
        with patch('repositories.cart.CartRepository.clear', new_callable=AsyncMock) as clear, \
                patch('repositories.cart.CartRepository.get_details', new_callable=AsyncMock) as get_details:
            assert await cart_service.clear_cart() is True

        clear.assert_awaited_once_with(42, cart_service.client)
        get_details.assert_not_awaited()
        assert cart_service.items == []
        assert cart_service.count == 0
        assert cart_service.total == 0.0
        assert cart_service.cart.id == 9

    @pytest.mark.asyncio
    async def test_clear_failure_keeps_lines(self, cart_service, cart, cart_items):
        cart_service.cart, cart_service.items, cart_service.count = cart, cart_items, 5
        with patch('repositories.cart.CartRepository.clear', new_callable=AsyncMock) as clear:
            clear.side_effect = ApiUnavailableException("down")

            assert await cart_service.clear_cart() is False

        assert cart_service.count == 5
        assert len(cart_service.items) == 2

    def test_reset_drops_customer(self, cart_service, cart, cart_items):
        cart_service.cart, cart_service.items, cart_service.count = cart, cart_items, 5
        cart_service.reset()
        assert cart_service.customer is None
        assert cart_service.items == []
        assert cart_service.count == 0
