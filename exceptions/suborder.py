"""
Suborder (delivery handoff) exceptions.
"""

from .base import LmdClientException


class SuborderException(LmdClientException):
    """Base exception for suborder-related errors."""
    pass


class SuborderNotFoundException(SuborderException):
    """Raised when a suborder is not among the loaded suborders."""

    def __init__(self, suborder_id: int):
        super().__init__(
            f"Suborder {suborder_id} not found",
            details={'suborder_id': suborder_id}
        )
        self.suborder_id = suborder_id


class InvalidSuborderTransitionException(SuborderException):
    """Raised when a status change is backward, skips a step, or leaves a final status."""

    def __init__(self, suborder_id: int, current_state: str, requested_state: str):
        super().__init__(
            f"Suborder {suborder_id} cannot move from '{current_state}' to '{requested_state}'",
            details={'suborder_id': suborder_id, 'current_state': current_state,
                     'requested_state': requested_state}
        )
        self.suborder_id = suborder_id
        self.current_state = current_state
        self.requested_state = requested_state


class InvalidPaymentTransitionException(SuborderException):
    """Raised when a payment confirmation is out of order."""

    def __init__(self, suborder_id: int, current_state: str, requested_state: str):
        super().__init__(
            f"Payment of suborder {suborder_id} cannot move from '{current_state}' to '{requested_state}'",
            details={'suborder_id': suborder_id, 'current_state': current_state,
                     'requested_state': requested_state}
        )
        self.suborder_id = suborder_id
        self.current_state = current_state
        self.requested_state = requested_state


class ActionNotPermittedException(SuborderException):
    """Raised when the acting role may not perform a transition."""

    def __init__(self, suborder_id: int, actor: str, action: str):
        super().__init__(
            f"Role '{actor}' may not {action} suborder {suborder_id}",
            details={'suborder_id': suborder_id, 'actor': actor, 'action': action}
        )
        self.suborder_id = suborder_id
        self.actor = actor
        self.action = action


class SuborderAlreadyAssignedException(SuborderException):
    """Raised when a rider tries to accept a suborder another rider holds."""

    def __init__(self, suborder_id: int, delivery_boy_id: int):
        super().__init__(
            f"Suborder {suborder_id} is already assigned to rider {delivery_boy_id}",
            details={'suborder_id': suborder_id, 'delivery_boy_id': delivery_boy_id}
        )
        self.suborder_id = suborder_id
        self.delivery_boy_id = delivery_boy_id


class GeofenceRefusedException(SuborderException):
    """
    Raised when the rider is outside the allowed radius of the target location.

    This is a client-side refusal. No request is ever sent for it.
    """

    def __init__(self, suborder_id: int, target: str, distance_meters: float | None, radius_meters: float):
        if distance_meters is None:
            message = f"Current position unknown, cannot confirm {target} of suborder {suborder_id}"
        else:
            message = (f"You are {round(distance_meters)}m from the {target} location of suborder "
                       f"{suborder_id}, must be within {round(radius_meters)}m")
        super().__init__(
            message,
            details={'suborder_id': suborder_id, 'target': target,
                     'distance_meters': distance_meters, 'radius_meters': radius_meters}
        )
        self.suborder_id = suborder_id
        self.target = target
        self.distance_meters = distance_meters
        self.radius_meters = radius_meters


class MissingLocationException(SuborderException):
    """Raised when a suborder lacks the coordinates an action needs."""

    def __init__(self, suborder_id: int, target: str):
        super().__init__(
            f"Suborder {suborder_id} has no {target} coordinates",
            details={'suborder_id': suborder_id, 'target': target}
        )
        self.suborder_id = suborder_id
        self.target = target
