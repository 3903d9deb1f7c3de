import asyncio
import logging
from typing import Awaitable, Callable, Iterable

import config
from api_client import ApiClient
from enums.suborder_status import SuborderStatus
from exceptions import LmdClientException
from models.location import LocationDTO
from models.rider_position import RiderPosition
from models.suborder import SuborderDTO
from models.tracking import BroadcastResult, FailedPush
from repositories.tracking import TrackingRepository
from services.position import RiderPositionTracker
from utils.error_handler import handle_service_error, handle_unexpected_error, safe_service_call

logger = logging.getLogger(__name__)

# Suborders the rider is carrying or about to carry
TRACKED_STATUSES = (SuborderStatus.ASSIGNED, SuborderStatus.HANDOVER_CONFIRMED)

SubordersProvider = Callable[[], Awaitable[Iterable[SuborderDTO]]]


class LiveTrackingService:
    """
    Fans the rider's position out to every active suborder.

    One push per suborder, all concurrent. A push that fails is recorded in
    the result and never affects the others.
    """

    def __init__(self, client: ApiClient, position_tracker: RiderPositionTracker | None = None):
        self.client = client
        self.position_tracker = position_tracker
        self.last_position: RiderPosition | None = None
        self.last_result: BroadcastResult | None = None
        self.failed_ids: list[int] = []
        self.is_loading = False
        self.error: str | None = None
        self._task: asyncio.Task | None = None

    @staticmethod
    def active_suborder_ids(suborders: Iterable[SuborderDTO]) -> list[int]:
        return [suborder.suborder_id for suborder in suborders if suborder.status in TRACKED_STATUSES]

    async def _push(self, rider_id: int, suborder_id: int, position: RiderPosition) -> None:
        await TrackingRepository.push_live_location(rider_id, suborder_id, position, self.client)

    async def broadcast_position(self, rider_id: int, position: RiderPosition,
                                 active_suborder_ids: Iterable[int]) -> BroadcastResult:
        """
        Push position to each suborder; never raises.

        Zero ids means zero requests. Ordering between the pushes is not
        guaranteed.
        """
        suborder_ids = list(dict.fromkeys(active_suborder_ids))
        self.last_position = position

        outcomes = await asyncio.gather(
            *(self._push(rider_id, suborder_id, position) for suborder_id in suborder_ids),
            return_exceptions=True,
        )

        result = BroadcastResult()
        for suborder_id, outcome in zip(suborder_ids, outcomes):
            if isinstance(outcome, LmdClientException):
                result.failed.append(FailedPush(suborder_id=suborder_id, error=handle_service_error(outcome)))
            elif isinstance(outcome, Exception):
                result.failed.append(FailedPush(suborder_id=suborder_id, error=handle_unexpected_error(outcome)))
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result.succeeded.append(suborder_id)

        if result.failed:
            logger.warning(f"Live tracking push failed for suborders {result.failed_ids} "
                           f"({len(result.succeeded)} succeeded)")
        elif suborder_ids:
            logger.debug(f"Live tracking pushed to {len(suborder_ids)} suborders")

        self.failed_ids = result.failed_ids
        self.last_result = result
        return result

    async def retry_failed(self, rider_id: int) -> BroadcastResult:
        """Re-push the last known position to the suborders that failed last time."""
        if self.last_position is None or not self.failed_ids:
            return BroadcastResult()
        return await self.broadcast_position(rider_id, self.last_position, self.failed_ids)

    @safe_service_call(default=list)
    async def fetch_live_route(self, suborder_id: int) -> list[LocationDTO]:
        """Customer side: the points recorded for a suborder so far."""
        return await TrackingRepository.get_live_route(suborder_id, self.client)

    # ---- periodic broadcast ----

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, rider_id: int, suborders_provider: SubordersProvider,
              interval: float = config.LIVE_TRACKING_INTERVAL_SECONDS) -> asyncio.Task:
        """Re-broadcast the tracker's current position every `interval` seconds until stopped."""
        if self.position_tracker is None:
            raise ValueError("Periodic tracking needs a position tracker")
        if self.is_running:
            return self._task
        self._task = asyncio.create_task(self._run(rider_id, suborders_provider, interval))
        logger.info(f"Live tracking started for rider {rider_id} every {interval}s")
        return self._task

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            handle_unexpected_error(e)
        self._task = None
        logger.info("Live tracking stopped")

    async def _run(self, rider_id: int, suborders_provider: SubordersProvider, interval: float) -> None:
        while True:
            await self.tick(rider_id, suborders_provider)
            await asyncio.sleep(interval)

    async def tick(self, rider_id: int, suborders_provider: SubordersProvider) -> BroadcastResult | None:
        """One round of the periodic loop. Skipped while the position is unknown."""
        try:
            position = await self.position_tracker.refresh()
            if position is None:
                logger.debug("No rider position yet, skipping live tracking round")
                return None
            suborders = await suborders_provider()
        except LmdClientException as e:
            self.error = handle_service_error(e)
            return None
        except Exception as e:
            self.error = handle_unexpected_error(e)
            return None
        return await self.broadcast_position(rider_id, position, self.active_suborder_ids(suborders))
