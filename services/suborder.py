import logging

import config
from api_client import ApiClient
from enums.actor_role import ActorRole
from enums.suborder_status import SuborderStatus
from exceptions import (
    ApiNotFoundException,
    GeofenceRefusedException,
    LmdClientException,
    MissingLocationException,
    MissingSessionContextException,
    SuborderAlreadyAssignedException,
    SuborderNotFoundException,
)
from models.location import LocationDTO
from models.rider_position import RiderPosition
from models.session import SessionContext
from models.suborder import SuborderDTO
from repositories.suborder import SuborderRepository
from services.position import RiderPositionTracker
from utils.error_handler import safe_service_call
from utils.geo import haversine_distance
from utils.request_sequence import RequestSequencer
from utils.suborder_state_machine import (
    DELIVERY,
    PICKUP,
    PaymentStateMachine,
    SuborderStateMachine,
    can_actor_transition,
)

logger = logging.getLogger(__name__)

# (target status, actor) -> name of the service method performing it
ACTION_NAMES = {
    (SuborderStatus.IN_PROGRESS, ActorRole.VENDOR): "mark_in_progress",
    (SuborderStatus.READY, ActorRole.VENDOR): "mark_ready",
    (SuborderStatus.ASSIGNED, ActorRole.RIDER): "accept",
    (SuborderStatus.PICKED, ActorRole.RIDER): "confirm_pickup",
    (SuborderStatus.HANDOVER_CONFIRMED, ActorRole.VENDOR): "confirm_handover",
    (SuborderStatus.IN_TRANSIT, ActorRole.RIDER): "start_transit",
    (SuborderStatus.DELIVERED, ActorRole.RIDER): "deliver",
    (SuborderStatus.DELIVERED, ActorRole.CUSTOMER): "confirm_delivery",
    (SuborderStatus.CANCELLED, ActorRole.VENDOR): "cancel",
    (SuborderStatus.CANCELLED, ActorRole.ADMIN): "cancel",
}
CONFIRM_PAYMENT = "confirm_payment"


class SuborderService:
    """
    Suborder lists and handoff actions for the logged-in role.

    Every action is checked against SuborderStateMachine (and, for pickup and
    delivery, the geofence) before anything is sent. After a successful
    mutation the suborder is re-read from the server; the local status is
    never patched by hand. A refused or failed action leaves local state as
    it was and reports through `error`.
    """

    def __init__(self, client: ApiClient, session: SessionContext,
                 position_tracker: RiderPositionTracker | None = None,
                 radius_meters: float = config.GEOFENCE_RADIUS_METERS):
        self.client = client
        self.session = session
        self.position_tracker = position_tracker
        self.radius_meters = radius_meters
        self.suborders: dict[int, SuborderDTO] = {}
        self.assigned: list[SuborderDTO] = []
        self.ready: list[SuborderDTO] = []
        self.vendor_suborders: list[SuborderDTO] = []
        self.is_loading = False
        self.error: str | None = None
        self._sequencer = RequestSequencer()

    # ---- identity ----

    @property
    def actor(self) -> ActorRole:
        return self.session.role

    def _rider_id(self) -> int:
        if self.session.role != ActorRole.RIDER or self.session.rider_id is None:
            raise MissingSessionContextException(ActorRole.RIDER.value)
        return self.session.rider_id

    def _vendor_id(self) -> int:
        if self.session.role != ActorRole.VENDOR or self.session.vendor_id is None:
            raise MissingSessionContextException(ActorRole.VENDOR.value)
        return self.session.vendor_id

    # ---- local state ----

    def get(self, suborder_id: int) -> SuborderDTO | None:
        return self.suborders.get(suborder_id)

    def _require(self, suborder_id: int) -> SuborderDTO:
        suborder = self.suborders.get(suborder_id)
        if suborder is None:
            raise SuborderNotFoundException(suborder_id)
        return suborder

    def _store(self, suborder: SuborderDTO) -> None:
        self.suborders[suborder.suborder_id] = suborder
        for listing in (self.assigned, self.ready, self.vendor_suborders):
            for index, existing in enumerate(listing):
                if existing.suborder_id == suborder.suborder_id:
                    listing[index] = suborder

        # An accepted suborder leaves the pickup board
        if suborder.status != SuborderStatus.READY and suborder in self.ready:
            self.ready.remove(suborder)
            if suborder.delivery_boy_id == self.session.rider_id and suborder not in self.assigned:
                self.assigned.append(suborder)

    def _apply_listing(self, key: str, ticket: int, suborders: list[SuborderDTO]) -> list[SuborderDTO] | None:
        if not self._sequencer.is_current(key, ticket):
            logger.debug(f"Discarding stale '{key}' suborder list")
            return None
        for suborder in suborders:
            self.suborders[suborder.suborder_id] = suborder
        return suborders

    async def _reload(self, suborder_id: int) -> SuborderDTO:
        key = ("details", suborder_id)
        ticket = self._sequencer.issue(key)
        try:
            suborder = await SuborderRepository.get_details(suborder_id, self.client)
        except ApiNotFoundException as e:
            raise SuborderNotFoundException(suborder_id) from e
        if self._sequencer.is_current(key, ticket):
            self._store(suborder)
        else:
            logger.debug(f"Discarding stale details of suborder {suborder_id}")
        return self.suborders.get(suborder_id, suborder)

    async def _reload_quietly(self, suborder_id: int) -> None:
        try:
            await self._reload(suborder_id)
        except LmdClientException as e:
            logger.warning(f"Could not resync suborder {suborder_id}: {e}")

    # ---- loading ----

    @safe_service_call(default=list)
    async def load_assigned(self) -> list[SuborderDTO]:
        """Suborders the rider currently holds."""
        rider_id = self._rider_id()
        ticket = self._sequencer.issue("assigned")
        suborders = await SuborderRepository.get_assigned_for_rider(rider_id, self.client)
        if self._apply_listing("assigned", ticket, suborders) is not None:
            self.assigned = suborders
        return self.assigned

    @safe_service_call(default=list)
    async def load_ready(self) -> list[SuborderDTO]:
        """Suborders ready for pickup that the rider may accept."""
        rider_id = self._rider_id()
        ticket = self._sequencer.issue("ready")
        suborders = await SuborderRepository.get_ready_for_rider(rider_id, self.client)
        if self._apply_listing("ready", ticket, suborders) is not None:
            self.ready = suborders
        return self.ready

    @safe_service_call(default=list)
    async def load_vendor_suborders(self) -> list[SuborderDTO]:
        vendor_id = self._vendor_id()
        ticket = self._sequencer.issue("vendor")
        suborders = await SuborderRepository.get_for_vendor(vendor_id, self.client)
        if self._apply_listing("vendor", ticket, suborders) is not None:
            self.vendor_suborders = suborders
        return self.vendor_suborders

    @safe_service_call(default=None)
    async def load_suborder(self, suborder_id: int) -> SuborderDTO | None:
        return await self._reload(suborder_id)

    # ---- geofence gates ----

    def _position(self) -> RiderPosition | None:
        if self.position_tracker is None:
            return None
        return self.position_tracker.current

    @staticmethod
    def _target_location(suborder: SuborderDTO, target: str) -> LocationDTO | None:
        return suborder.pickup_location if target == PICKUP else suborder.delivery_location

    def _distance_to(self, suborder_id: int, target: str) -> float | None:
        suborder = self.suborders.get(suborder_id)
        position = self._position()
        if suborder is None or position is None:
            return None
        location = self._target_location(suborder, target)
        if location is None:
            return None
        return haversine_distance(position, location)

    def distance_to_pickup(self, suborder_id: int) -> int | None:
        """Rounded meters from the rider to the pickup point, None when either is unknown."""
        distance = self._distance_to(suborder_id, PICKUP)
        return round(distance) if distance is not None else None

    def distance_to_delivery(self, suborder_id: int) -> int | None:
        distance = self._distance_to(suborder_id, DELIVERY)
        return round(distance) if distance is not None else None

    def _within(self, suborder_id: int, target: str) -> bool:
        distance = self._distance_to(suborder_id, target)
        return distance is not None and distance <= self.radius_meters

    def can_confirm_pickup(self, suborder_id: int) -> bool:
        """Evaluated from the current position on every call, never cached."""
        suborder = self.suborders.get(suborder_id)
        return (suborder is not None
                and can_actor_transition(self.actor, suborder.status, SuborderStatus.PICKED)
                and self._within(suborder_id, PICKUP))

    def can_confirm_delivery(self, suborder_id: int) -> bool:
        suborder = self.suborders.get(suborder_id)
        return (suborder is not None
                and can_actor_transition(self.actor, suborder.status, SuborderStatus.DELIVERED)
                and self._within(suborder_id, DELIVERY))

    def available_actions(self, suborder_id: int) -> list[str]:
        """
        Names of the actions the current role can perform right now.

        Geofence-gated actions are listed only while the rider is in range.
        """
        suborder = self.suborders.get(suborder_id)
        if suborder is None:
            return []

        actions = []
        for status in SuborderStateMachine.get_valid_transitions(suborder.status, self.actor):
            transition = SuborderStateMachine.get_transition(suborder.status, status, self.actor)
            if transition.geofence and not self._within(suborder_id, transition.geofence):
                continue
            if status == SuborderStatus.ASSIGNED and suborder.is_assigned:
                continue
            name = ACTION_NAMES.get((status, self.actor))
            if name and name not in actions:
                actions.append(name)

        if PaymentStateMachine.can_confirm(suborder.payment_status, self.actor):
            actions.append(CONFIRM_PAYMENT)
        return actions

    def _require_within(self, suborder: SuborderDTO, target: str) -> RiderPosition:
        location = self._target_location(suborder, target)
        if location is None:
            raise MissingLocationException(suborder.suborder_id, target)
        position = self._position()
        if position is None:
            raise GeofenceRefusedException(suborder.suborder_id, target, None, self.radius_meters)
        distance = haversine_distance(position, location)
        if distance > self.radius_meters:
            logger.info(f"Refused {target} of suborder {suborder.suborder_id}: "
                        f"{round(distance)}m away, radius {round(self.radius_meters)}m")
            raise GeofenceRefusedException(suborder.suborder_id, target, distance, self.radius_meters)
        return position

    def _validate(self, suborder_id: int, to_status: SuborderStatus) -> tuple[SuborderDTO, RiderPosition | None]:
        """Check transition, actor and geofence; returns the suborder and the gating position."""
        suborder = self._require(suborder_id)
        transition = SuborderStateMachine.validate_transition(suborder_id, suborder.status, to_status, self.actor)
        position = self._require_within(suborder, transition.geofence) if transition.geofence else None
        return suborder, position

    # ---- rider actions ----

    @safe_service_call(default=False)
    async def accept(self, suborder_id: int) -> bool:
        rider_id = self._rider_id()
        suborder, _ = self._validate(suborder_id, SuborderStatus.ASSIGNED)
        if suborder.is_assigned:
            raise SuborderAlreadyAssignedException(suborder_id, suborder.delivery_boy_id)

        await SuborderRepository.accept(rider_id, suborder_id, self.client)
        await self._reload(suborder_id)
        return True

    @safe_service_call(default=False)
    async def confirm_pickup(self, suborder_id: int) -> bool:
        self._rider_id()
        _, position = self._validate(suborder_id, SuborderStatus.PICKED)

        await SuborderRepository.confirm_pickup(suborder_id, position, self.client)
        await self._reload(suborder_id)
        return True

    @safe_service_call(default=False)
    async def start_transit(self, suborder_id: int) -> bool:
        self._rider_id()
        self._validate(suborder_id, SuborderStatus.IN_TRANSIT)
        position = self._position()
        location = LocationDTO(latitude=position.latitude, longitude=position.longitude) if position else None

        await SuborderRepository.update_location_status(suborder_id, location, SuborderStatus.IN_TRANSIT,
                                                        self.client)
        await self._reload(suborder_id)
        return True

    @safe_service_call(default=False)
    async def deliver(self, suborder_id: int) -> bool:
        """Reach the destination, then mark delivered. Both steps need the rider within range."""
        rider_id = self._rider_id()
        _, position = self._validate(suborder_id, SuborderStatus.DELIVERED)
        location = LocationDTO(latitude=position.latitude, longitude=position.longitude)

        await SuborderRepository.reach_destination(rider_id, suborder_id, location, self.client)
        try:
            await SuborderRepository.update_location_status(suborder_id, location, SuborderStatus.DELIVERED,
                                                            self.client)
        except LmdClientException:
            # Arrival is already recorded server-side; resync before reporting the failure
            await self._reload_quietly(suborder_id)
            raise
        await self._reload(suborder_id)
        return True

    # ---- vendor actions ----

    @safe_service_call(default=False)
    async def mark_in_progress(self, suborder_id: int) -> bool:
        self._validate(suborder_id, SuborderStatus.IN_PROGRESS)
        await SuborderRepository.vendor_mark_in_progress(suborder_id, self.client)
        await self._reload(suborder_id)
        return True

    @safe_service_call(default=False)
    async def mark_ready(self, suborder_id: int) -> bool:
        self._validate(suborder_id, SuborderStatus.READY)
        await SuborderRepository.vendor_mark_ready(suborder_id, self.client)
        await self._reload(suborder_id)
        return True

    @safe_service_call(default=False)
    async def confirm_handover(self, suborder_id: int) -> bool:
        self._validate(suborder_id, SuborderStatus.HANDOVER_CONFIRMED)
        await SuborderRepository.vendor_confirm_handover(suborder_id, self.client)
        await self._reload(suborder_id)
        return True

    @safe_service_call(default=False)
    async def cancel(self, suborder_id: int) -> bool:
        self._validate(suborder_id, SuborderStatus.CANCELLED)
        await SuborderRepository.cancel(suborder_id, self.client)
        await self._reload(suborder_id)
        return True

    # ---- customer actions ----

    @safe_service_call(default=False)
    async def confirm_delivery(self, suborder_id: int) -> bool:
        self._validate(suborder_id, SuborderStatus.DELIVERED)
        await SuborderRepository.customer_confirm_delivery(suborder_id, self.client)
        await self._reload(suborder_id)
        return True

    # ---- payment ----

    @safe_service_call(default=False)
    async def confirm_payment(self, suborder_id: int) -> bool:
        """Confirm cash-on-delivery payment for the current role's step of the chain."""
        suborder = self._require(suborder_id)
        PaymentStateMachine.validate_confirmation(suborder_id, suborder.payment_status, self.actor)

        await SuborderRepository.confirm_payment(self.actor, suborder_id, self.client)
        await self._reload(suborder_id)
        return True
