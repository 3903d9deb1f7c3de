import logging

from pydantic import ValidationError

from api_client import ApiClient
from exceptions import (
    ApiNotFoundException,
    CartNotProvisionedException,
    CustomerNotFoundException,
    InvalidCartItemException,
    MissingSessionContextException,
)
from models.cart import CartDTO, CartSnapshot
from models.cartItem import CartItemDTO, CartItemRequestDTO
from models.customer import CustomerProfileDTO
from repositories.cart import CartRepository
from repositories.customer import CustomerRepository
from utils.error_handler import safe_service_call
from utils.request_sequence import RequestSequencer

logger = logging.getLogger(__name__)

CART_KEY = "cart"


class CartService:
    """
    Client-side view of "my cart".

    Responsibilities:
      - resolve the session user to the canonical customer id
      - create-or-reuse the customer's single pending cart
      - add/remove/clear lines through the server, then reload the whole cart
        (no optimistic merge), so count/total always match the server
      - expose a single error slot instead of raising

    count is the sum of line quantities; total is the server's total_amount,
    never recomputed from the lines.
    """

    def __init__(self, client: ApiClient):
        self.client = client
        self.customer: CustomerProfileDTO | None = None
        self.cart: CartDTO | None = None
        self.items: list[CartItemDTO] = []
        self.count = 0
        self.total = 0.0
        self.is_loading = False
        self.error: str | None = None
        self._sequencer = RequestSequencer()

    # ---- internal helpers ----

    @property
    def snapshot(self) -> CartSnapshot:
        return CartSnapshot(cart=self.cart, items=list(self.items), count=self.count, total=self.total)

    def _require_customer_id(self) -> int:
        if self.customer is None or self.customer.customer_id is None:
            raise MissingSessionContextException("customer")
        return self.customer.customer_id

    def _apply(self, snapshot: CartSnapshot) -> None:
        self.cart = snapshot.cart
        self.items = snapshot.items
        self.count = snapshot.count
        self.total = snapshot.total

    async def _ensure_cart(self, customer_id: int) -> int:
        cart_id = await CartRepository.create(customer_id, self.client)
        if cart_id is None:
            raise CartNotProvisionedException(customer_id)
        return cart_id

    async def _reload(self, customer_id: int) -> CartSnapshot:
        ticket = self._sequencer.issue(CART_KEY)
        try:
            cart, items, _ = await CartRepository.get_details(customer_id, self.client)
        except ApiNotFoundException:
            # No cart yet is a normal state: provision one and show it empty
            cart_id = await self._ensure_cart(customer_id)
            snapshot = CartSnapshot.empty(
                CartDTO(id=cart_id, customer_id=customer_id, cart_status="pending", total_amount=0.0)
            )
        else:
            snapshot = CartSnapshot(
                cart=cart,
                items=items,
                count=sum(item.quantity for item in items),
                total=cart.total_amount if cart else 0.0,
            )

        if not self._sequencer.is_current(CART_KEY, ticket):
            logger.debug(f"Discarding stale cart response for customer {customer_id}")
            return self.snapshot

        self._apply(snapshot)
        return snapshot

    @staticmethod
    def _build_item_request(customer_id: int, vendor_id: int, shop_id: int, branch_id: int,
                            itemdetails_id: int | None, quantity: int, price: float) -> CartItemRequestDTO:
        if itemdetails_id is None:
            raise InvalidCartItemException("missing item-detail reference")
        if quantity is None or quantity < 1:
            raise InvalidCartItemException("quantity must be at least 1", itemdetails_id)
        try:
            return CartItemRequestDTO(
                customer_id=customer_id,
                vendor_id=vendor_id,
                shop_id=shop_id,
                branch_id=branch_id,
                itemdetails_id=itemdetails_id,
                quantity=quantity,
                price=price,
            )
        except ValidationError as e:
            fields = ", ".join(".".join(str(part) for part in error["loc"]) for error in e.errors())
            raise InvalidCartItemException(f"invalid {fields}", itemdetails_id) from e

    # ---- public operations ----

    @safe_service_call(default=None)
    async def resolve_customer_context(self, user_id: int) -> CustomerProfileDTO | None:
        """
        Resolve a session user id to the customer profile, then load the cart.

        Returns the profile, or None when the user has no customer profile.
        A failing cart load leaves the profile resolved and sets error.
        """
        try:
            profile = await CustomerRepository.get_by_user_id(user_id, self.client)
        except ApiNotFoundException as e:
            raise CustomerNotFoundException(user_id) from e
        if profile.customer_id is None:
            logger.error(f"No customer_id in profile of user {user_id}")
            raise CustomerNotFoundException(user_id)

        self.customer = profile
        logger.info(f"Resolved user {user_id} to customer {profile.customer_id}")
        await self.load_cart(profile.customer_id)
        return profile

    @safe_service_call(default=None)
    async def load_cart(self, customer_id: int) -> CartSnapshot | None:
        """
        Fetch the current cart.

        A customer without a cart gets a freshly provisioned, empty one
        (count=0, total=0) rather than an error.
        """
        return await self._reload(customer_id)

    @safe_service_call(default=None)
    async def ensure_cart(self, customer_id: int) -> int | None:
        """Create-or-fetch the customer's pending cart. Safe to call before any mutation."""
        return await self._ensure_cart(customer_id)

    @safe_service_call(default=False)
    async def add_item(self, vendor_id: int, shop_id: int, branch_id: int,
                       itemdetails_id: int | None, quantity: int, price: float) -> bool:
        """
        Add a line to the cart of the resolved customer.

        There is no customer_id parameter: the id comes from the context set
        by resolve_customer_context(). Without that context the call fails
        with MissingSessionContextException before any request is sent.
        """
        customer_id = self._require_customer_id()
        request = self._build_item_request(customer_id, vendor_id, shop_id, branch_id,
                                           itemdetails_id, quantity, price)

        await self._ensure_cart(customer_id)
        await CartRepository.add_item(request, self.client)
        logger.info(f"Added item-detail {itemdetails_id} x{quantity} to cart of customer {customer_id}")

        await self._reload(customer_id)
        return True

    @safe_service_call(default=False)
    async def remove_item(self, cart_item_id: int) -> bool:
        customer_id = self._require_customer_id()

        await CartRepository.remove_item(cart_item_id, self.client)
        logger.info(f"Removed cart item {cart_item_id} from cart of customer {customer_id}")

        await self._reload(customer_id)
        return True

    @safe_service_call(default=False)
    async def clear_cart(self) -> bool:
        customer_id = self._require_customer_id()

        await CartRepository.clear(customer_id, self.client)
        logger.info(f"Cleared cart of customer {customer_id}")

        # An emptied cart is fully determined, no reload needed.
        # A newer ticket also invalidates any reload still in flight.
        self._sequencer.issue(CART_KEY)
        cart = self.cart.model_copy(update={"total_amount": 0.0}) if self.cart else None
        self._apply(CartSnapshot.empty(cart))
        return True

    def reset(self) -> None:
        """Drop all customer state, e.g. on logout."""
        self._sequencer.issue(CART_KEY)
        self.customer = None
        self._apply(CartSnapshot.empty())
        self.error = None
