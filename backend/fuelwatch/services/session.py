from typing import Callable, List
import enum
import logging
import threading

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class SessionEvent(str, enum.Enum):
    STARTED = "started"
    REFRESHED = "refreshed"
    ENDED = "ended"


class SessionContext(BaseModel):
    """Identity of the caller, passed explicitly into permission resolution."""
    model_config = ConfigDict(frozen=True)

    user_id: str


SessionListener = Callable[[SessionEvent, SessionContext], None]


class SessionLifecycle:
    """Single owner of session events; interested parties subscribe here."""

    def __init__(self):
        self._listeners: List[SessionListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def start(self, context: SessionContext):
        self._notify(SessionEvent.STARTED, context)

    def refresh(self, context: SessionContext):
        self._notify(SessionEvent.REFRESHED, context)

    def end(self, context: SessionContext):
        self._notify(SessionEvent.ENDED, context)

    def _notify(self, event: SessionEvent, context: SessionContext):
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event, context)
            except Exception as e:
                logger.error(f"Session listener failed on {event.value} for user {context.user_id}: {e}")
