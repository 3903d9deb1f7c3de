from datetime import datetime, timezone

from pydantic import BaseModel, Field


class RiderPosition(BaseModel):
    """
    Rider's self-reported position.

    Client-only and never persisted: overwritten on every new input and
    discarded when the tracker is reset.
    """
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    captured_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def as_payload(self) -> dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}
