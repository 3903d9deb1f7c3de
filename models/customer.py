from pydantic import BaseModel, ConfigDict


class CustomerProfileDTO(BaseModel):
    # /customers/{user_id} returns the full profile; only customer_id is relied on
    model_config = ConfigDict(extra="allow")

    customer_id: int | None = None
    user_id: int | None = None
    name: str | None = None
    email: str | None = None
    phone: str | None = None
