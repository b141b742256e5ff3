"""
Core business logic for the front desk.
Handles child check-in/check-out, action logs and parent notifications,
settings, and the daily rollover.
"""
import datetime
import logging
import uuid
from typing import Dict, List, Optional

from daycare_desk.data.store import RecordStore
from daycare_desk.domain.allocator import DailyIdAllocator
from daycare_desk.domain.broadcaster import ACTION_CREATED, CHILD_CREATED, CHILD_DELETED, Broadcaster
from daycare_desk.domain.clock import Clock
from daycare_desk.domain.notifier import WebhookNotifier
from daycare_desk.errors import NotFoundError, ValidationError
from daycare_desk.schemas.records import CHILD_ACTIVE, CHILD_PICKED_UP, CHILD_STATUSES, ActionLog, Child

logger = logging.getLogger(__name__)

LAST_RESET_KEY = "last_reset_date"
TEMPLATE_PREFIX = "template_"


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _require(data: Dict, fields: Dict[str, str]) -> Dict[str, str]:
    """Return stripped values for the given fields, or raise naming the first blank one."""
    cleaned = {}
    for field, label in fields.items():
        value = _clean(data.get(field))
        if not value:
            raise ValidationError(f"{label} is required")
        cleaned[field] = value
    return cleaned


def normalize_pickup_time(value: str) -> str:
    """Parse HH:MM or HH:MM:SS and return HH:MM."""
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.datetime.strptime(value, fmt).strftime("%H:%M")
        except ValueError:
            continue
    raise ValidationError("Pickup time must be a time of day (HH:MM)")


class LifecycleService:
    """
    The only component that assigns daily IDs or changes a child's status.
    Status moves once, from active to picked_up; there is no delete.
    """

    def __init__(
        self,
        store: RecordStore,
        clock: Clock,
        broadcaster: Broadcaster,
        notifier: WebhookNotifier,
        upcoming_window_minutes: int = 30,
    ):
        self._store = store
        self._clock = clock
        self._broadcaster = broadcaster
        self._notifier = notifier
        self._allocator = DailyIdAllocator(store, clock)
        self._upcoming_window = datetime.timedelta(minutes=upcoming_window_minutes)

    # ============================================
    # DAILY ROLLOVER
    # ============================================

    def reconcile_day(self) -> bool:
        """
        Record the start of a new calendar day.
        Durable stores keep history (the daily view filters by date and the
        counter is per date); non-durable stores drop prior-day records.

        Returns:
            True if a rollover was performed
        """
        today = self._clock.today()
        last_reset = self._store.get_setting(LAST_RESET_KEY)
        if last_reset == today.isoformat():
            return False
        if not self._store.durable:
            self._store.discard_before(self._clock.start_of(today))
        self._store.upsert_setting(LAST_RESET_KEY, today.isoformat())
        logger.info("Day rolled over from %s to %s", last_reset or "<never>", today.isoformat())
        return True

    # ============================================
    # CHILDREN
    # ============================================

    def register_child(self, data: Dict) -> Child:
        """
        Check a child in.

        Args:
            data: name, parent_phone, pickup_time and optional parent_phone2

        Returns:
            The created child with its daily ID

        Raises:
            ValidationError: on missing fields or an unparseable pickup time
        """
        fields = _require(data, {"name": "Child name", "parent_phone": "Parent phone", "pickup_time": "Pickup time"})
        pickup_time = normalize_pickup_time(fields["pickup_time"])

        now = self._clock.now()
        child = Child(
            id=str(uuid.uuid4()),
            name=fields["name"],
            daily_id=0,  # assigned by the allocator together with the insert
            parent_phone=fields["parent_phone"],
            parent_phone2=_clean(data.get("parent_phone2")) or None,
            pickup_time=pickup_time,
            status=CHILD_ACTIVE,
            registered_at=now,
            registered_on=now.date(),
        )
        child = self._allocator.register(child)
        logger.info("Checked in child %s as #%d for %s", child.id, child.daily_id, child.registered_on)
        self._broadcaster.publish(CHILD_CREATED, child.model_dump(mode="json", by_alias=True))
        return child

    def list_children(self, status: Optional[str] = None) -> List[Child]:
        """Today's children, most recently registered first, optionally filtered by status."""
        if status is not None and status not in CHILD_STATUSES:
            raise ValidationError(f"Unknown status: {status}")
        return self._store.list_children(on_date=self._clock.today(), status=status)

    def list_history(self, on_date: Optional[datetime.date] = None) -> List[Child]:
        """All persisted children (or those of one date), most recent first."""
        return self._store.list_children(on_date=on_date)

    def get_child(self, child_id: str) -> Child:
        child = self._store.get_child(child_id)
        if child is None:
            raise NotFoundError("Child not found")
        return child

    def check_out(self, child_id: str) -> Child:
        """
        Mark a child as picked up.
        Repeating the call on a picked-up child is a successful no-op.
        """
        child = self._store.set_child_status(child_id, CHILD_PICKED_UP)
        if child is None:
            raise NotFoundError("Child not found")
        logger.info("Checked out child %s (#%d)", child.id, child.daily_id)
        self._broadcaster.publish(CHILD_DELETED, {"id": child.id})
        return child

    def summary(self) -> Dict:
        """Dashboard counts plus the active children due for pickup soon."""
        now = self._clock.now()
        children = self._store.list_children(on_date=now.date())
        active = [child for child in children if child.status == CHILD_ACTIVE]
        upcoming = []
        for child in active:
            pickup_at = datetime.datetime.combine(
                now.date(), datetime.time.fromisoformat(child.pickup_time), tzinfo=now.tzinfo
            )
            if datetime.timedelta(0) <= pickup_at - now <= self._upcoming_window:
                upcoming.append(child)
        return {
            "date": now.date().isoformat(),
            "active_count": len(active),
            "picked_up_count": len(children) - len(active),
            "upcoming_pickups": sorted(upcoming, key=lambda c: c.pickup_time),
        }

    # ============================================
    # ACTION LOGS AND NOTIFICATIONS
    # ============================================

    def log_action(self, data: Dict) -> ActionLog:
        """
        Persist an action log, then notify the parent.
        The log is kept even if the notification fails; the failure is only logged.
        """
        fields = _require(
            data,
            {
                "child_id": "Child ID",
                "child_name": "Child name",
                "action_type": "Action type",
                "parent_phone": "Parent phone",
                "message": "Message",
            },
        )
        log = ActionLog(id=str(uuid.uuid4()), timestamp=self._clock.now(), **fields)
        self._store.add_action_log(log)

        try:
            self._notifier.send(log.parent_phone, log.message, log.child_name)
        except Exception:
            logger.exception("Notification for action %s (%s) failed", log.id, log.action_type)

        self._broadcaster.publish(ACTION_CREATED, log.model_dump(mode="json", by_alias=True))
        return log

    def notify_parent(self, child_id: str, action_type: Optional[str], message: Optional[str] = None) -> ActionLog:
        """
        Log and send a notification about a checked-in child.
        Without an explicit message the configured template for the action type is used.
        """
        action_type = _clean(action_type)
        if not action_type:
            raise ValidationError("Action type is required")
        child = self.get_child(child_id)
        text = _clean(message) or _clean(self._store.get_setting(TEMPLATE_PREFIX + action_type))
        if not text:
            raise ValidationError(f"No message given and no template configured for {action_type}")
        return self.log_action(
            {
                "child_id": child.id,
                "child_name": child.name,
                "action_type": action_type,
                "parent_phone": child.parent_phone,
                "message": text,
            }
        )

    def send_notification(self, phone: Optional[str], message: Optional[str], child_name: Optional[str] = None) -> str:
        """
        Send a one-off notification without writing an action log.
        Unlike log_action, transport failures reach the caller.

        Returns:
            ISO timestamp of the attempt
        """
        fields = _require({"phone": phone, "message": message}, {"phone": "Phone", "message": "Message"})
        self._notifier.send(fields["phone"], fields["message"], _clean(child_name) or "Unknown")
        return self._clock.now().isoformat()

    def list_actions(self) -> List[ActionLog]:
        return self._store.list_action_logs()

    # ============================================
    # SETTINGS
    # ============================================

    def get_settings(self) -> Dict[str, str]:
        return self._store.list_settings()

    def update_setting(self, key: str, value: str) -> Dict[str, str]:
        key = _clean(key)
        if not key:
            raise ValidationError("Setting key is required")
        if key == LAST_RESET_KEY:
            raise ValidationError(f"{LAST_RESET_KEY} is managed by the server")
        self._store.upsert_setting(key, value or "")
        return self._store.list_settings()
