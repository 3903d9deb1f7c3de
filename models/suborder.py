# a suborder is the part of a customer order fulfilled by one shop/branch and
# carried end-to-end by one rider. Vendor, rider and customer screens all read it;
# each role may only trigger its own transitions (see utils/suborder_state_machine.py).
from typing import Any

from pydantic import BaseModel, model_validator

from enums.payment_status import PaymentStatus
from enums.suborder_status import SuborderStatus
from models.location import LocationDTO


def _first(data: dict, *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value not in (None, ""):
            return value
    return None


def _nested(data: dict, *path: str) -> Any:
    current: Any = data
    for key in path:
        if not isinstance(current, dict):
            return None
        current = current.get(key)
    return current


class SuborderDTO(BaseModel):
    suborder_id: int
    order_id: int | None = None
    status: SuborderStatus = SuborderStatus.PENDING
    payment_status: PaymentStatus = PaymentStatus.PENDING
    total_amount: float | None = None
    pickup_location: LocationDTO | None = None
    delivery_location: LocationDTO | None = None
    shop_id: int | None = None
    branch_id: int | None = None
    customer_id: int | None = None
    delivery_boy_id: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_api_shape(cls, data: Any) -> Any:
        """
        Accept the nested records the API returns.

        Rider endpoints nest the pickup point under shop.branch.pickup_location and
        the drop point under customer.delivery_address; vendor endpoints use
        shop_id/branch_id and suborder_id; details endpoints use id.
        """
        if not isinstance(data, dict):
            return data
        shop = data.get("shop") if isinstance(data.get("shop"), dict) else {}
        branch = shop.get("branch") if isinstance(shop.get("branch"), dict) else {}
        customer = data.get("customer") if isinstance(data.get("customer"), dict) else {}

        pickup = data.get("pickup_location")
        if not isinstance(pickup, LocationDTO):
            pickup = LocationDTO.from_raw(pickup) or LocationDTO.from_raw(branch.get("pickup_location"))
        delivery = data.get("delivery_location")
        if not isinstance(delivery, LocationDTO):
            delivery = (LocationDTO.from_raw(delivery)
                        or LocationDTO.from_raw(customer.get("delivery_address"))
                        or LocationDTO.from_raw(data.get("delivery_address")))

        return {
            "suborder_id": _first(data, "suborder_id", "id"),
            "order_id": _first(data, "order_id", "order_ID"),
            "status": _first(data, "status", "suborder_status") or SuborderStatus.PENDING,
            "payment_status": _first(data, "payment_status", "suborder_payment_status") or PaymentStatus.PENDING,
            "total_amount": _first(data, "total_amount", "amount"),
            "pickup_location": pickup,
            "delivery_location": delivery,
            "shop_id": _first(data, "shop_id", "shop_ID") or shop.get("id"),
            "branch_id": _first(data, "branch_id", "branch_ID") or branch.get("id"),
            "customer_id": _first(data, "customer_id", "customer_ID") or _nested(data, "customer", "customer_id"),
            "delivery_boy_id": _first(data, "delivery_boy_id", "deliveryboy_id", "deliveryboys_ID"),
        }

    @property
    def is_assigned(self) -> bool:
        return self.delivery_boy_id is not None
