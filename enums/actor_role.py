from enum import Enum


class ActorRole(str, Enum):
    """Marketplace roles. Each role gets its own dashboard and mutation rights."""
    CUSTOMER = "customer"
    VENDOR = "vendor"
    RIDER = "rider"
    ORGANIZATION = "organization"
    ADMIN = "admin"
