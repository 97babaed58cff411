from typing import Iterable, List, Optional
from app.utils.targeting import TARGETING_FIELDS
import logging

logger = logging.getLogger(__name__)


def is_visible(notification: dict, viewer: dict) -> bool:
    """A notification is visible to its named user(s), its roles, or everyone when untargeted."""
    username = viewer.get("username")
    role = viewer.get("role")

    if username and notification.get("forUser") == username:
        return True
    if username and username in (notification.get("forUsers") or []):
        return True
    if role and role in (notification.get("forRoles") or []):
        return True
    return all(notification.get(field) is None for field in TARGETING_FIELDS)


def visible_notifications(notifications: Iterable[dict], viewer: dict) -> List[dict]:
    return [n for n in notifications if is_visible(n, viewer)]


def unread_count(notifications: Iterable[dict], viewer: dict) -> int:
    return sum(1 for n in notifications if not n.get("read") and is_visible(n, viewer))


class ReadStateTracker:
    """Keeps the unread count of one viewer in step with the store."""

    def __init__(self, store, viewer: Optional[dict] = None):
        self.store = store
        self.viewer = viewer
        self.unread_count = 0
        self.store.subscribe(self._on_notifications_changed)
        self.recompute(self.store.list())

    def set_viewer(self, viewer: Optional[dict]) -> None:
        self.viewer = viewer
        self.recompute(self.store.list())

    def recompute(self, notifications: List[dict]) -> int:
        if not self.viewer:
            self.unread_count = 0
        else:
            self.unread_count = unread_count(notifications, self.viewer)
        return self.unread_count

    def close(self) -> None:
        self.store.unsubscribe(self._on_notifications_changed)

    def _on_notifications_changed(self, notifications: List[dict]) -> None:
        self.recompute(notifications)
