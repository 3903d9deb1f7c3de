"""
Suborder State Machines for validating delivery and payment status transitions.

This module implements two finite state machines. Every action the client
offers is checked against them before a request is sent, so a backward or
out-of-turn move never reaches the server.
"""

import logging
from typing import Dict, List, Optional, Set, Tuple

from enums.actor_role import ActorRole
from enums.payment_status import PaymentStatus
from enums.suborder_status import SuborderStatus
from exceptions import (
    ActionNotPermittedException,
    InvalidPaymentTransitionException,
    InvalidSuborderTransitionException,
)

logger = logging.getLogger(__name__)

PICKUP = "pickup"
DELIVERY = "delivery"


class SuborderStatusTransition:
    """Represents a valid status transition for one actor, with its geofence requirement"""

    def __init__(self, from_status: SuborderStatus, to_status: SuborderStatus, actor: ActorRole,
                 geofence: Optional[str] = None, description: str = ""):
        self.from_status = from_status
        self.to_status = to_status
        self.actor = actor
        self.geofence = geofence
        self.description = description

    def __repr__(self):
        gate = f" [{self.geofence} geofence]" if self.geofence else ""
        return f"{self.from_status.value} -> {self.to_status.value} by {self.actor.value}{gate}"


def _cancellations() -> List[SuborderStatusTransition]:
    return [
        SuborderStatusTransition(status, SuborderStatus.CANCELLED, actor,
                                 description=f"Cancelled by {actor.value}")
        for status in SuborderStatus if not status.is_final
        for actor in (ActorRole.VENDOR, ActorRole.ADMIN)
    ]


class SuborderStateMachine:
    """
    Finite state machine for suborder delivery status.

    Valid status transitions:
    - PENDING -> IN_PROGRESS (vendor)
    - IN_PROGRESS -> READY (vendor)
    - READY -> ASSIGNED (rider accepts, suborder must be unassigned)
    - ASSIGNED -> PICKED (rider, within geofence of pickup)
    - PICKED -> HANDOVER_CONFIRMED (vendor confirms the handoff)
    - HANDOVER_CONFIRMED -> IN_TRANSIT (rider)
    - HANDOVER_CONFIRMED / IN_TRANSIT -> DELIVERED (rider within geofence of delivery, or customer)
    - any non-final -> CANCELLED (vendor or admin)

    Invalid transitions (will be rejected):
    - anything backward, e.g. READY -> PENDING
    - anything skipping a step, e.g. READY -> PICKED
    - DELIVERED / CANCELLED -> any status (final states)
    """

    VALID_TRANSITIONS: List[SuborderStatusTransition] = [
        SuborderStatusTransition(
            SuborderStatus.PENDING, SuborderStatus.IN_PROGRESS, ActorRole.VENDOR,
            description="Vendor started preparing"
        ),
        SuborderStatusTransition(
            SuborderStatus.IN_PROGRESS, SuborderStatus.READY, ActorRole.VENDOR,
            description="Ready for rider pickup"
        ),
        SuborderStatusTransition(
            SuborderStatus.READY, SuborderStatus.ASSIGNED, ActorRole.RIDER,
            description="Rider accepted the delivery"
        ),
        SuborderStatusTransition(
            SuborderStatus.ASSIGNED, SuborderStatus.PICKED, ActorRole.RIDER,
            geofence=PICKUP,
            description="Rider confirmed pickup at the shop"
        ),
        SuborderStatusTransition(
            SuborderStatus.PICKED, SuborderStatus.HANDOVER_CONFIRMED, ActorRole.VENDOR,
            description="Vendor confirmed handover to rider"
        ),
        SuborderStatusTransition(
            SuborderStatus.HANDOVER_CONFIRMED, SuborderStatus.IN_TRANSIT, ActorRole.RIDER,
            description="Rider left for the customer"
        ),
        SuborderStatusTransition(
            SuborderStatus.HANDOVER_CONFIRMED, SuborderStatus.DELIVERED, ActorRole.RIDER,
            geofence=DELIVERY,
            description="Rider delivered at the customer address"
        ),
        SuborderStatusTransition(
            SuborderStatus.IN_TRANSIT, SuborderStatus.DELIVERED, ActorRole.RIDER,
            geofence=DELIVERY,
            description="Rider delivered at the customer address"
        ),
        SuborderStatusTransition(
            SuborderStatus.HANDOVER_CONFIRMED, SuborderStatus.DELIVERED, ActorRole.CUSTOMER,
            description="Customer confirmed delivery"
        ),
        SuborderStatusTransition(
            SuborderStatus.IN_TRANSIT, SuborderStatus.DELIVERED, ActorRole.CUSTOMER,
            description="Customer confirmed delivery"
        ),
        *_cancellations(),
    ]

    _transition_map: Dict[SuborderStatus, Set[SuborderStatus]] = {}
    _transitions_by_actor: Dict[Tuple[SuborderStatus, SuborderStatus, ActorRole], SuborderStatusTransition] = {}

    @classmethod
    def _build_transition_map(cls):
        """Build internal transition maps for fast lookup"""
        if cls._transition_map:
            return

        for transition in cls.VALID_TRANSITIONS:
            cls._transition_map.setdefault(transition.from_status, set()).add(transition.to_status)
            cls._transitions_by_actor[
                (transition.from_status, transition.to_status, transition.actor)
            ] = transition

    @classmethod
    def is_valid_transition(cls, from_status: SuborderStatus, to_status: SuborderStatus) -> bool:
        """
        Check if a status transition is valid for at least one actor.

        Unlike order statuses, staying in the same status is not a valid
        transition: every action must move the suborder forward.
        """
        cls._build_transition_map()
        return to_status in cls._transition_map.get(from_status, set())

    @classmethod
    def allowed_actors(cls, from_status: SuborderStatus, to_status: SuborderStatus) -> List[ActorRole]:
        cls._build_transition_map()
        return [actor for (src, dst, actor) in cls._transitions_by_actor
                if src == from_status and dst == to_status]

    @classmethod
    def get_transition(cls, from_status: SuborderStatus, to_status: SuborderStatus,
                       actor: ActorRole) -> Optional[SuborderStatusTransition]:
        cls._build_transition_map()
        return cls._transitions_by_actor.get((from_status, to_status, actor))

    @classmethod
    def geofence_target(cls, from_status: SuborderStatus, to_status: SuborderStatus,
                        actor: ActorRole) -> Optional[str]:
        """Return "pickup", "delivery" or None for the given transition and actor."""
        transition = cls.get_transition(from_status, to_status, actor)
        return transition.geofence if transition else None

    @classmethod
    def get_valid_transitions(cls, from_status: SuborderStatus,
                              actor: Optional[ActorRole] = None) -> List[SuborderStatus]:
        """
        Get all valid next statuses from the current status, in forward order.

        Args:
            from_status: Current suborder status
            actor: Only return transitions this role may perform

        Returns:
            List of valid next statuses
        """
        cls._build_transition_map()
        destinations = cls._transition_map.get(from_status, set())
        if actor is not None:
            destinations = {dst for dst in destinations
                            if (from_status, dst, actor) in cls._transitions_by_actor}
        return sorted(destinations, key=lambda status: status.rank)

    @classmethod
    def is_final_status(cls, status: SuborderStatus) -> bool:
        return status.is_final

    @classmethod
    def validate_transition(cls, suborder_id: int, from_status: SuborderStatus,
                            to_status: SuborderStatus, actor: ActorRole) -> SuborderStatusTransition:
        """
        Validate a status transition and write the audit log line.

        Raises:
            InvalidSuborderTransitionException: backward, skipping or final-state move
            ActionNotPermittedException: valid move, but not for this actor

        Returns:
            The matching transition (carries the geofence requirement)
        """
        if not cls.is_valid_transition(from_status, to_status):
            reason = "final status" if cls.is_final_status(from_status) else "not a forward step"
            logger.error(f"Invalid status transition for suborder {suborder_id}: "
                         f"{from_status.value} -> {to_status.value} ({reason})")
            raise InvalidSuborderTransitionException(suborder_id, from_status.value, to_status.value)

        transition = cls.get_transition(from_status, to_status, actor)
        if transition is None:
            allowed = ", ".join(role.value for role in cls.allowed_actors(from_status, to_status))
            logger.error(f"Role {actor.value} may not move suborder {suborder_id} "
                         f"{from_status.value} -> {to_status.value} (allowed: {allowed})")
            raise ActionNotPermittedException(suborder_id, actor.value, f"move to {to_status.value}")

        logger.info(f"SUBORDER_STATUS_TRANSITION: Suborder {suborder_id} {from_status.value} -> "
                    f"{to_status.value} by {actor.value}: {transition.description}")
        return transition


class PaymentStateMachine:
    """
    Cash-on-delivery confirmation chain, independent of delivery status.

    - PENDING -> CONFIRMED_BY_CUSTOMER (customer)
    - CONFIRMED_BY_CUSTOMER -> CONFIRMED_BY_DELIVERYBOY (rider)
    - CONFIRMED_BY_DELIVERYBOY -> CONFIRMED_BY_VENDOR (vendor, final)
    """

    CONFIRMING_ACTOR: Dict[PaymentStatus, ActorRole] = {
        PaymentStatus.CONFIRMED_BY_CUSTOMER: ActorRole.CUSTOMER,
        PaymentStatus.CONFIRMED_BY_DELIVERYBOY: ActorRole.RIDER,
        PaymentStatus.CONFIRMED_BY_VENDOR: ActorRole.VENDOR,
    }

    @classmethod
    def next_status(cls, current: PaymentStatus) -> Optional[PaymentStatus]:
        ordered = list(PaymentStatus)
        index = ordered.index(current)
        return ordered[index + 1] if index + 1 < len(ordered) else None

    @classmethod
    def status_confirmed_by(cls, actor: ActorRole) -> Optional[PaymentStatus]:
        for status, confirming_actor in cls.CONFIRMING_ACTOR.items():
            if confirming_actor == actor:
                return status
        return None

    @classmethod
    def is_valid_transition(cls, from_status: PaymentStatus, to_status: PaymentStatus) -> bool:
        return cls.next_status(from_status) == to_status

    @classmethod
    def can_confirm(cls, current: PaymentStatus, actor: ActorRole) -> bool:
        target = cls.next_status(current)
        return target is not None and cls.CONFIRMING_ACTOR.get(target) == actor

    @classmethod
    def validate_confirmation(cls, suborder_id: int, current: PaymentStatus,
                              actor: ActorRole) -> PaymentStatus:
        """
        Validate that actor is the one who confirms the next payment step.

        Returns:
            The payment status the confirmation moves to
        """
        target = cls.status_confirmed_by(actor)
        if target is None:
            raise ActionNotPermittedException(suborder_id, actor.value, "confirm payment of")
        if not cls.is_valid_transition(current, target):
            logger.error(f"Invalid payment transition for suborder {suborder_id}: "
                         f"{current.value} -> {target.value}")
            raise InvalidPaymentTransitionException(suborder_id, current.value, target.value)

        logger.info(f"SUBORDER_PAYMENT_TRANSITION: Suborder {suborder_id} {current.value} -> "
                    f"{target.value} by {actor.value}")
        return target


def can_actor_transition(actor: ActorRole, from_status: SuborderStatus, to_status: SuborderStatus) -> bool:
    """Check if a role can perform a specific status transition."""
    return SuborderStateMachine.get_transition(from_status, to_status, actor) is not None
