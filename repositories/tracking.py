from api_client import ApiClient, unwrap_envelope
from models.location import LocationDTO
from models.rider_position import RiderPosition


class TrackingRepository:
    @staticmethod
    async def push_live_location(rider_id: int, suborder_id: int, position: RiderPosition,
                                 client: ApiClient) -> dict:
        return await client.post("/deliveryboy/update-live-tracking", json={
            "courierorder_ID": suborder_id,
            "latitude": position.latitude,
            "longitude": position.longitude,
            "deliveryboys_ID": rider_id,
        })

    @staticmethod
    async def get_live_route(suborder_id: int, client: ApiClient) -> list[LocationDTO]:
        """Route points recorded for the suborder; the API returns either one point or a list."""
        data = unwrap_envelope(await client.get(f"/suborders/{suborder_id}/live-route-tracking"))
        points = data if isinstance(data, list) else [data]
        route = []
        for raw in points:
            location = LocationDTO.from_raw(raw)
            if location is not None:
                route.append(location)
        return route
