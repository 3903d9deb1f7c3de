from enum import Enum


class PaymentStatus(str, Enum):
    """
    Cash-on-delivery confirmation chain of a suborder.

    Tracked independently of SuborderStatus: a suborder can be DELIVERED
    while its payment is still PENDING.
    """
    PENDING = "pending"
    CONFIRMED_BY_CUSTOMER = "confirmed_by_customer"
    CONFIRMED_BY_DELIVERYBOY = "confirmed_by_deliveryboy"
    CONFIRMED_BY_VENDOR = "confirmed_by_vendor"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def rank(self) -> int:
        return list(PaymentStatus).index(self)
