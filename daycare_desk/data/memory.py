"""
Non-durable record store kept in process memory.
Everything is lost on restart and day-scoped records are dropped at rollover,
so it only suits single-process demos and tests.
"""
import datetime
import threading
from typing import Dict, List, Optional

from daycare_desk.data.store import RecordStore
from daycare_desk.errors import ConflictError
from daycare_desk.schemas.records import ActionLog, AuthSession, Child, User


class InMemoryRecordStore(RecordStore):
    durable = False

    def __init__(self):
        self._lock = threading.Lock()
        self._children: Dict[str, Child] = {}
        self._action_logs: List[ActionLog] = []
        self._counters: Dict[str, int] = {}
        self._settings: Dict[str, str] = {}
        self._users: Dict[str, User] = {}
        self._sessions: Dict[str, AuthSession] = {}

    def discard_before(self, start_of_day: datetime.datetime) -> None:
        # Log timestamps are UTC, so they are compared against the aware cutoff, not a date
        day = start_of_day.date()
        with self._lock:
            self._children = {key: child for key, child in self._children.items() if child.registered_on >= day}
            self._action_logs = [log for log in self._action_logs if log.timestamp >= start_of_day]
            self._counters = {key: value for key, value in self._counters.items() if key >= day.isoformat()}

    def _bump_counter(self, day: datetime.date) -> int:
        key = day.isoformat()
        value = self._counters.get(key, 0) + 1
        self._counters[key] = value
        return value

    def add_child(self, child: Child) -> Child:
        with self._lock:
            child = child.model_copy(update={"daily_id": self._bump_counter(child.registered_on)})
            self._children[child.id] = child.model_copy()
        return child

    def get_child(self, child_id: str) -> Optional[Child]:
        with self._lock:
            child = self._children.get(child_id)
            return child.model_copy() if child else None

    def list_children(self, on_date: Optional[datetime.date] = None, status: Optional[str] = None) -> List[Child]:
        with self._lock:
            children = [
                child.model_copy()
                for child in self._children.values()
                if (on_date is None or child.registered_on == on_date) and (status is None or child.status == status)
            ]
        return sorted(children, key=lambda c: (c.registered_at, c.daily_id), reverse=True)

    def set_child_status(self, child_id: str, status: str) -> Optional[Child]:
        with self._lock:
            child = self._children.get(child_id)
            if child is None:
                return None
            updated = child.model_copy(update={"status": status})
            self._children[child_id] = updated
            return updated.model_copy()

    def add_action_log(self, log: ActionLog) -> ActionLog:
        with self._lock:
            self._action_logs.append(log.model_copy())
        return log

    def list_action_logs(self) -> List[ActionLog]:
        with self._lock:
            # Newest first; insertion order breaks timestamp ties
            logs = [log.model_copy() for log in reversed(self._action_logs)]
        return sorted(logs, key=lambda log: log.timestamp, reverse=True)

    def next_daily_id(self, day: datetime.date) -> int:
        with self._lock:
            return self._bump_counter(day)

    def get_setting(self, key: str) -> Optional[str]:
        with self._lock:
            return self._settings.get(key)

    def list_settings(self) -> Dict[str, str]:
        with self._lock:
            return dict(sorted(self._settings.items()))

    def upsert_setting(self, key: str, value: str) -> None:
        with self._lock:
            self._settings[key] = value

    def add_user(self, user: User) -> User:
        with self._lock:
            if any(existing.username == user.username for existing in self._users.values()):
                raise ConflictError("Username already exists")
            self._users[user.id] = user.model_copy()
        return user

    def get_user(self, user_id: str) -> Optional[User]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user else None

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user.model_copy()
        return None

    def add_session(self, auth_session: AuthSession) -> AuthSession:
        with self._lock:
            self._sessions[auth_session.id] = auth_session.model_copy()
        return auth_session

    def get_session(self, session_id: str) -> Optional[AuthSession]:
        with self._lock:
            auth_session = self._sessions.get(session_id)
            return auth_session.model_copy() if auth_session else None

    def delete_session(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)
