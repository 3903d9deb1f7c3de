# one active cart per customer. total_amount is whatever the server says;
# the client never recomputes it from the lines.
from pydantic import BaseModel, Field

from models.cartItem import CartItemDTO


class CartDTO(BaseModel):
    id: int | None = None
    customer_id: int | None = None
    cart_status: str = "pending"
    total_amount: float = 0.0


class CartSnapshot(BaseModel):
    cart: CartDTO | None = None
    items: list[CartItemDTO] = Field(default_factory=list)
    count: int = 0
    total: float = 0.0

    @property
    def is_empty(self) -> bool:
        return not self.items

    @classmethod
    def empty(cls, cart: CartDTO | None = None) -> 'CartSnapshot':
        return cls(cart=cart, items=[], count=0, total=0.0)
