import logging

from pydantic import ValidationError

from api_client import ApiClient, unwrap_envelope
from enums.actor_role import ActorRole
from enums.suborder_status import SuborderStatus
from models.location import LocationDTO
from models.rider_position import RiderPosition
from models.suborder import SuborderDTO

logger = logging.getLogger(__name__)

PAYMENT_CONFIRMATION_PATHS = {
    ActorRole.CUSTOMER: "/customer/confirm-payment/{suborder_id}",
    ActorRole.RIDER: "/deliveryboy/confirm-payment/{suborder_id}",
    ActorRole.VENDOR: "/vendor/confirm-payment/{suborder_id}",
}


def _parse_listing(rows) -> list[SuborderDTO]:
    """Validate listing rows one by one; a malformed row is logged and skipped."""
    suborders = []
    for raw in rows:
        try:
            suborders.append(SuborderDTO.model_validate(raw))
        except ValidationError as e:
            row_id = raw.get("suborder_id", raw.get("id")) if isinstance(raw, dict) else None
            logger.warning(f"Skipping malformed suborder {row_id}: {e.error_count()} validation error(s)")
    return suborders


class SuborderRepository:
    # ---- reads ----

    @staticmethod
    async def get_assigned_for_rider(rider_id: int, client: ApiClient) -> list[SuborderDTO]:
        payload = await client.get(f"/deliveryboy/{rider_id}/assigned-suborders")
        return _parse_listing(unwrap_envelope(payload) or [])

    @staticmethod
    async def get_ready_for_rider(rider_id: int, client: ApiClient) -> list[SuborderDTO]:
        payload = await client.get(f"/deliveryboy/ready-suborders/{rider_id}")
        return _parse_listing(unwrap_envelope(payload) or [])

    @staticmethod
    async def get_for_vendor(vendor_id: int, client: ApiClient) -> list[SuborderDTO]:
        """Vendor orders come as orders[].suborders[]; the order id is copied onto each suborder."""
        payload = unwrap_envelope(await client.get(f"/vendor/{vendor_id}/suborders"))
        orders = payload.get("orders", []) if isinstance(payload, dict) else payload or []
        return _parse_listing(
            {"order_id": order.get("order_id"), **raw}
            for order in orders
            for raw in order.get("suborders") or []
        )

    @staticmethod
    async def get_details(suborder_id: int, client: ApiClient) -> SuborderDTO:
        payload = unwrap_envelope(await client.get(f"/suborders/{suborder_id}/details"))
        if isinstance(payload, dict) and "suborder_id" not in payload and "id" not in payload:
            payload = {"suborder_id": suborder_id, **payload}
        return SuborderDTO.model_validate(payload)

    # ---- rider mutations ----

    @staticmethod
    async def accept(rider_id: int, suborder_id: int, client: ApiClient) -> dict:
        return await client.post(f"/deliveryboy/{rider_id}/accept-order/{suborder_id}")

    @staticmethod
    async def confirm_pickup(suborder_id: int, position: RiderPosition, client: ApiClient) -> dict:
        return await client.patch(f"/deliveryboy/order/{suborder_id}/pickup", json=position.as_payload())

    @staticmethod
    async def reach_destination(rider_id: int, suborder_id: int, location: LocationDTO,
                                client: ApiClient) -> dict:
        return await client.post(
            f"/deliveryboy/reach-destination/{rider_id}/{suborder_id}",
            json={"latitude": location.latitude, "longitude": location.longitude},
        )

    @staticmethod
    async def update_location_status(suborder_id: int, location: LocationDTO | None, status: SuborderStatus,
                                     client: ApiClient) -> dict:
        body = {"status": status.value}
        if location is not None:
            body.update(latitude=location.latitude, longitude=location.longitude)
        return await client.put(f"/deliveryboy/order/{suborder_id}/location", json=body)

    # ---- vendor mutations ----

    @staticmethod
    async def vendor_mark_in_progress(suborder_id: int, client: ApiClient) -> dict:
        return await client.patch(f"/vendor/order/{suborder_id}/in-progress")

    @staticmethod
    async def vendor_mark_ready(suborder_id: int, client: ApiClient) -> dict:
        return await client.patch(f"/vendor/order/{suborder_id}/ready")

    @staticmethod
    async def vendor_confirm_handover(suborder_id: int, client: ApiClient) -> dict:
        return await client.patch(f"/vendor/order/{suborder_id}/handover")

    @staticmethod
    async def cancel(suborder_id: int, client: ApiClient) -> dict:
        return await client.patch(f"/vendor/order/{suborder_id}/cancel")

    # ---- customer mutations ----

    @staticmethod
    async def customer_confirm_delivery(suborder_id: int, client: ApiClient) -> dict:
        return await client.patch(f"/customer/order/{suborder_id}/confirm-delivery")

    # ---- payment ----

    @staticmethod
    async def confirm_payment(actor: ActorRole, suborder_id: int, client: ApiClient) -> dict:
        path = PAYMENT_CONFIRMATION_PATHS[actor].format(suborder_id=suborder_id)
        return await client.post(path)
