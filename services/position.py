import inspect
import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable

from models.rider_position import RiderPosition

logger = logging.getLogger(__name__)

PositionListener = Callable[[RiderPosition | None], None]


class PositionSource(ABC):
    """Where the rider's current coordinates come from (manual entry, device GPS, ...)."""

    @abstractmethod
    async def current(self) -> RiderPosition | None:
        ...


class ManualPositionSource(PositionSource):
    """Coordinates typed in by the rider."""

    def __init__(self):
        self._position: RiderPosition | None = None

    def set(self, latitude: float, longitude: float) -> RiderPosition:
        self._position = RiderPosition(latitude=latitude, longitude=longitude)
        return self._position

    def clear(self) -> None:
        self._position = None

    async def current(self) -> RiderPosition | None:
        return self._position


class CallbackPositionSource(PositionSource):
    """
    Wraps any callable returning (lat, lon), a RiderPosition or None.

    The callable may be sync or async, which covers GPS bindings of either kind.
    """

    def __init__(self, callback: Callable[[], object] | Callable[[], Awaitable[object]]):
        self._callback = callback

    async def current(self) -> RiderPosition | None:
        value = self._callback()
        if inspect.isawaitable(value):
            value = await value
        if value is None or isinstance(value, RiderPosition):
            return value
        latitude, longitude = value
        return RiderPosition(latitude=latitude, longitude=longitude)


class RiderPositionTracker:
    """
    Holds the rider's latest known position.

    Every update notifies subscribers, so geofence-gated actions re-evaluate
    immediately instead of on the next screen refresh.
    """

    def __init__(self, source: PositionSource | None = None):
        self.source = source
        self._position: RiderPosition | None = None
        self._listeners: list[PositionListener] = []

    @property
    def current(self) -> RiderPosition | None:
        return self._position

    def subscribe(self, listener: PositionListener) -> Callable[[], None]:
        """Register a listener; returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update(self, latitude: float, longitude: float) -> RiderPosition:
        position = RiderPosition(latitude=latitude, longitude=longitude)
        self._set(position)
        return position

    async def refresh(self) -> RiderPosition | None:
        """Pull a fresh reading from the source. A None reading keeps the last known position."""
        if self.source is None:
            return self._position
        position = await self.source.current()
        if position is None:
            logger.debug("Position source returned no reading")
            return self._position
        self._set(position)
        return position

    def reset(self) -> None:
        self._set(None)

    def _set(self, position: RiderPosition | None) -> None:
        self._position = position
        for listener in list(self._listeners):
            listener(position)
