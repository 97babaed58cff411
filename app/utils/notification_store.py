"""
Canonical, persisted list of notification records.

One store is built per application instance (see main.py lifespan) and
passed to consumers; there is no module-level instance. Records are plain
dicts in their persisted camelCase shape, newest first.
"""
from datetime import datetime, timezone as dt_timezone
from typing import Callable, List, Optional, Union
from pydantic import ValidationError
from app.config import NOTIFICATIONS_KEY
from app.schemas.notification import NotificationCreate
from app.utils.storage import load_json_list, save_json_list
from app.utils.targeting import expand_audience, supersede
import copy
import logging

logger = logging.getLogger(__name__)

Subscriber = Callable[[List[dict]], None]


def _utcnow() -> datetime:
    return datetime.now(dt_timezone.utc)


class NotificationStore:
    def __init__(self, storage, key: str = NOTIFICATIONS_KEY, clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            storage: key-value store with get/set of JSON strings
            key: fixed storage key holding the serialized list
            clock: returns an aware "now"; defaults to UTC wall clock
        """
        self.storage = storage
        self.key = key
        self.clock = clock or _utcnow
        self._notifications: List[dict] = []
        self._subscribers: List[Subscriber] = []
        self._last_id = 0
        self.load()

    def load(self) -> None:
        """Load from storage, or start empty."""
        self._notifications = [n for n in load_json_list(self.storage, self.key) if isinstance(n, dict)]
        for notification in self._notifications:
            prefix = str(notification.get("id", "")).split("-")[0]
            if prefix.isdigit():
                self._last_id = max(self._last_id, int(prefix))
        logger.info(f"Loaded {len(self._notifications)} notifications from storage")

    # Observers

    def subscribe(self, callback: Subscriber) -> None:
        if callback not in self._subscribers:
            self._subscribers.append(callback)

    def unsubscribe(self, callback: Subscriber) -> None:
        if callback in self._subscribers:
            self._subscribers.remove(callback)

    def _commit(self) -> None:
        """Persist, then hand subscribers one shared snapshot; they must not mutate it."""
        save_json_list(self.storage, self.key, self._notifications)
        snapshot = [dict(n) for n in self._notifications]
        for callback in self._subscribers[:]:
            try:
                callback(snapshot)
            except Exception as e:
                logger.error(f"❌ Notification subscriber {callback!r} failed: {e}")

    # Reads

    def list(self) -> List[dict]:
        return copy.deepcopy(self._notifications)

    def get(self, notification_id: str) -> Optional[dict]:
        for notification in self._notifications:
            if self._matches(notification, notification_id):
                return copy.deepcopy(notification)
        return None

    # Mutations

    def add(self, spec: Union[NotificationCreate, dict, None]) -> List[dict]:
        """
        Store a notification for its audience and return the created records.

        Never raises: a missing or invalid spec is logged and ignored.
        """
        try:
            if spec is None:
                logger.warning("Ignoring empty notification")
                return []
            if not isinstance(spec, NotificationCreate):
                spec = NotificationCreate.model_validate(spec)

            base = {
                **spec.payload(),
                "id": self._next_id(),
                "createdAt": self.clock().astimezone(dt_timezone.utc).isoformat(),
                "read": False,
            }
            created = expand_audience(base, spec.audience)

            self._notifications = created + supersede(self._notifications, spec)
            self._commit()
            logger.info(f"🔔 Added {len(created)} '{spec.type}' notification(s)")
            return copy.deepcopy(created)
        except ValidationError as e:
            logger.error(f"❌ Invalid notification: {e}")
        except Exception as e:
            logger.error(f"❌ Error adding notification: {e}")
        return []

    def mark_read(self, notification_id: str) -> bool:
        changed = False
        for notification in self._notifications:
            if self._matches(notification, notification_id):
                notification["read"] = True
                changed = True
        if changed:
            self._commit()
        return changed

    def mark_all_read(self, predicate: Optional[Callable[[dict], bool]] = None) -> int:
        """Mark every notification read, or only those matching predicate."""
        count = 0
        for notification in self._notifications:
            if predicate is None or predicate(notification):
                if not notification.get("read"):
                    count += 1
                notification["read"] = True
        self._commit()
        return count

    def remove(self, notification_id: str) -> bool:
        remaining = [n for n in self._notifications if n.get("id") != notification_id]
        if len(remaining) == len(self._notifications):
            return False
        self._notifications = remaining
        self._commit()
        return True

    def clear(self) -> None:
        self._notifications = []
        self._commit()

    def navigate(self, notification_id: str) -> Optional[str]:
        """Mark the notification read and return the route it points to."""
        notification = self.get(notification_id)
        if notification is None:
            return None
        self.mark_read(notification_id)
        return notification.get("path") or "/"

    # Helpers

    @staticmethod
    def _matches(notification: dict, notification_id: str) -> bool:
        return notification.get("id") == notification_id or notification.get("_id") == notification_id

    def _next_id(self) -> str:
        millis = int(self.clock().timestamp() * 1000)
        self._last_id = max(millis, self._last_id + 1)
        return str(self._last_id)
