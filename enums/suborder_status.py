from enum import Enum

# Spellings the server uses for the same states
STATUS_ALIASES = {
    "picked_up": "picked",     # vendor endpoints
    "completed": "delivered",  # customer order history
}


class SuborderStatus(str, Enum):
    """
    Delivery status of a suborder (the slice of an order handled by one shop and one rider).

    Statuses move forward only, in declaration order:
    PENDING → IN_PROGRESS → READY → ASSIGNED → PICKED → HANDOVER_CONFIRMED → IN_TRANSIT → DELIVERED

    CANCELLED is absorbing and reachable from any non-terminal status.
    """
    PENDING = "pending"                          # Placed, vendor has not started
    IN_PROGRESS = "in_progress"                  # Vendor is preparing
    READY = "ready"                              # Waiting for a rider
    ASSIGNED = "assigned"                        # Rider accepted, heading to pickup
    PICKED = "picked"                            # Rider confirmed pickup at the shop
    HANDOVER_CONFIRMED = "handover_confirmed"    # Vendor confirmed the handoff
    IN_TRANSIT = "in_transit"                    # On the way to the customer
    DELIVERED = "delivered"                      # Final
    CANCELLED = "cancelled"                      # Final

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            normalized = value.strip().lower()
            if normalized in STATUS_ALIASES:
                return cls(STATUS_ALIASES[normalized])
            for member in cls:
                if member.value == normalized:
                    return member
        return None

    @property
    def rank(self) -> int:
        """Position in the forward order. CANCELLED ranks after every other status."""
        return list(SuborderStatus).index(self)

    @property
    def is_final(self) -> bool:
        return self in (SuborderStatus.DELIVERED, SuborderStatus.CANCELLED)
