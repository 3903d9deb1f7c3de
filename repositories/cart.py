from api_client import ApiClient
from models.cart import CartDTO
from models.cartItem import CartItemDTO, CartItemRequestDTO


class CartRepository:
    @staticmethod
    async def get_details(customer_id: int, client: ApiClient) -> tuple[CartDTO | None, list[CartItemDTO], dict]:
        """
        Fetch the customer's cart and flatten suborders[].items[] into cart lines.

        The shop/branch/vendor ids of each cart suborder are copied onto its lines.
        Raises ApiNotFoundException when the customer has no cart yet.
        """
        payload = await client.get("/cart/details", params={"customer_id": customer_id})
        cart = CartDTO.model_validate(payload["cart"]) if payload.get("cart") else None

        items = []
        for suborder in payload.get("suborders") or []:
            for item in suborder.get("items") or []:
                items.append(CartItemDTO.model_validate({
                    **item,
                    "shop_id": suborder.get("shop_ID", suborder.get("shop_id")),
                    "branch_id": suborder.get("branch_ID", suborder.get("branch_id")),
                    "vendor_id": suborder.get("vendor_ID", suborder.get("vendor_id")),
                    "cart_suborders_id": suborder.get("id"),
                }))
        return cart, items, payload

    @staticmethod
    async def create(customer_id: int, client: ApiClient) -> int | None:
        # Idempotent on the server: returns the existing pending cart if there is one
        payload = await client.post("/cart/create", json={"customer_id": customer_id})
        return payload.get("cart_id")

    @staticmethod
    async def add_item(cart_item: CartItemRequestDTO, client: ApiClient) -> dict:
        return await client.post("/cart/add-item", json=cart_item.model_dump())

    @staticmethod
    async def remove_item(cart_item_id: int, client: ApiClient) -> dict:
        return await client.post("/cart/remove-item", json={"cart_item_id": cart_item_id})

    @staticmethod
    async def clear(customer_id: int, client: ApiClient) -> dict:
        return await client.post("/cart/clear", json={"customer_id": customer_id})
