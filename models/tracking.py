from pydantic import BaseModel, Field


class FailedPush(BaseModel):
    suborder_id: int
    error: str


class BroadcastResult(BaseModel):
    """Outcome of one live-tracking fan-out, one entry per suborder."""
    succeeded: list[int] = Field(default_factory=list)
    failed: list[FailedPush] = Field(default_factory=list)

    @property
    def failed_ids(self) -> list[int]:
        return [push.suborder_id for push in self.failed]

    @property
    def all_succeeded(self) -> bool:
        return not self.failed
