"""
In-process fan-out of lifecycle events to connected observers.
Delivery is best effort: no acknowledgement, no backlog, no replay.
"""
import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

CHILD_CREATED = "child:created"
CHILD_DELETED = "child:deleted"  # emitted on checkout
ACTION_CREATED = "action:created"

Subscriber = Callable[[Dict[str, Any]], None]


class Broadcaster:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register an observer. Returns a function that removes it again.
        Callbacks run on the publisher's thread and must not block.
        """
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    @property
    def observer_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event: str, payload: Any) -> None:
        """Send an event to every current observer; observer failures never reach the caller."""
        message = {"event": event, "data": payload}
        with self._lock:
            subscribers = list(self._subscribers)
        for callback in subscribers:
            try:
                callback(message)
            except Exception:
                logger.exception("Broadcast of %s to an observer failed", event)
