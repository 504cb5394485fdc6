"""Explicit session objects and session-change notifications."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Callable, List, Optional

from ..utils.logger import get_logger

logger = get_logger(__name__)


class SessionEvent(str, Enum):
    """Session state changes published by the auth service."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"


@dataclass(frozen=True)
class AuthSession:
    """Authenticated user for one request, passed to whoever needs it."""

    user_id: str
    access_token: str
    email: Optional[str] = None
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None


SessionListener = Callable[[SessionEvent, AuthSession], None]


class SessionBroker:
    """Publish/subscribe hub for session changes."""

    def __init__(self):
        self._listeners: List[SessionListener] = []

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener. Returns a callable that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: SessionEvent, session: AuthSession) -> None:
        """Notify every listener; one failing listener does not block the rest."""
        logger.info("Session event", session_event=event.value, user_id=session.user_id)
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                logger.exception(
                    "Session listener failed",
                    session_event=event.value,
                    user_id=session.user_id,
                )

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
