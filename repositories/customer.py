from api_client import ApiClient
from models.customer import CustomerProfileDTO


class CustomerRepository:
    @staticmethod
    async def get_by_user_id(user_id: int, client: ApiClient) -> CustomerProfileDTO:
        payload = await client.get(f"/customers/{user_id}")
        return CustomerProfileDTO.model_validate(payload)
