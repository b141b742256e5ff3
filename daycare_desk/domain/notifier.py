"""
Outbound parent notifications posted to an operator-configured webhook
(typically an automation flow that relays to WhatsApp).
"""
import datetime
import logging

import requests

from daycare_desk.data.store import RecordStore
from daycare_desk.errors import DependencyError

logger = logging.getLogger(__name__)


class WebhookNotifier:
    """
    Posts ``{phone, message, childName, timestamp}`` to the webhook URL.
    The ``webhook_url`` setting wins over the environment default; with neither
    set the notification is only logged.
    """

    def __init__(self, store: RecordStore, default_url: str = "", timeout: float = 8.0):
        self._store = store
        self._default_url = default_url
        self._timeout = timeout

    def webhook_url(self) -> str:
        return (self._store.get_setting("webhook_url") or self._default_url or "").strip()

    def send(self, phone: str, message: str, child_name: str) -> None:
        endpoint = self.webhook_url()
        if not endpoint:
            logger.info("Notification (mock) to=%s child=%s message=%r", phone, child_name, message)
            return

        payload = {
            "phone": phone,
            "message": message,
            "childName": child_name,
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        try:
            response = requests.post(endpoint, json=payload, timeout=self._timeout)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise DependencyError("Notification webhook is unreachable") from exc
        logger.info("Notification sent to=%s child=%s status=%s", phone, child_name, response.status_code)
