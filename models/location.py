from pydantic import BaseModel


class LocationDTO(BaseModel):
    """A point on the map. The API sends coordinates as strings as often as numbers."""
    latitude: float
    longitude: float
    address: str | None = None

    @classmethod
    def from_raw(cls, raw: dict | None) -> 'LocationDTO | None':
        """
        Build a location from an API fragment.

        Returns None when either coordinate is missing or empty, so callers can
        treat "no coordinates" and "no location" the same way.
        """
        if not isinstance(raw, dict):
            return None
        latitude = raw.get("latitude", raw.get("lat"))
        longitude = raw.get("longitude", raw.get("lng", raw.get("lon")))
        if latitude in (None, "") or longitude in (None, ""):
            return None
        address = raw.get("address") or raw.get("full_address") or raw.get("name")
        return cls(latitude=latitude, longitude=longitude, address=address)
