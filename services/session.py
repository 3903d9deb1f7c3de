import logging

from enums.actor_role import ActorRole
from exceptions import MissingSessionContextException
from models.session import SessionContext

logger = logging.getLogger(__name__)


class SessionService:
    """
    Single login/logout boundary for the client.

    Replaces ad-hoc reads of stored user/vendor/rider blobs: the active
    SessionContext lives here and is handed to services explicitly.
    """

    def __init__(self):
        self.context: SessionContext | None = None

    def login(self, user_id: int, role: ActorRole, token: str | None = None, **ids) -> SessionContext:
        self.context = SessionContext(user_id=user_id, role=role, token=token, **ids)
        logger.info(f"Session started for user {user_id} as {role.value}")
        return self.context

    def logout(self) -> None:
        if self.context is not None:
            logger.info(f"Session ended for user {self.context.user_id}")
        self.context = None

    @property
    def is_authenticated(self) -> bool:
        return self.context is not None

    def require(self, role: ActorRole | None = None) -> SessionContext:
        """
        Return the active context, optionally checking its role.

        Raises:
            MissingSessionContextException: no active session or wrong role
        """
        if self.context is None:
            raise MissingSessionContextException(role.value if role else "user")
        if role is not None and self.context.role != role:
            raise MissingSessionContextException(role.value)
        return self.context
