from pydantic import BaseModel, ConfigDict

from enums.actor_role import ActorRole


class SessionContext(BaseModel):
    """
    Identity of the logged-in user, passed explicitly to every service.

    Created once at login and dropped at logout (see services/session.py).
    Only the ids relevant to the role are set.
    """
    model_config = ConfigDict(frozen=True)

    user_id: int
    role: ActorRole
    token: str | None = None
    customer_id: int | None = None
    rider_id: int | None = None
    vendor_id: int | None = None

    def auth_headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}
