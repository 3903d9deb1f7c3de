# a cart item is one line of the customer's cart. The server groups lines by
# shop/branch into "cart suborders"; the client flattens them and copies the
# shop/branch/vendor ids of the parent suborder onto each line for display.
#
# itemdetails_id always references the concrete priced variant ("Large", "Small"),
# never the abstract menu item.
from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class CartItemDTO(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: int | None = Field(default=None, validation_alias=AliasChoices("id", "cart_item_id", "cartitem_id"))
    cart_suborders_id: int | None = Field(default=None,
                                          validation_alias=AliasChoices("cart_suborders_id", "cart_suborders_ID"))
    itemdetails_id: int = Field(validation_alias=AliasChoices("itemdetails_id", "itemdetails_ID", "item_detail_id"))
    quantity: int = Field(ge=1)
    price: float = 0.0
    shop_id: int | None = None
    branch_id: int | None = None
    vendor_id: int | None = None
    name: str | None = None


class CartItemRequestDTO(BaseModel):
    """Payload of POST /cart/add-item."""
    customer_id: int
    vendor_id: int
    shop_id: int
    branch_id: int
    itemdetails_id: int
    quantity: int = Field(ge=1)
    price: float = Field(ge=0)
