"""
Watches customers for certificates expiring within the horizon and raises
one certificate_expiry notification per (customer, expiry date).

Passes run when the customer list is replaced and whenever the notification
list changes; there is no timer.
"""
from datetime import datetime, time, timedelta
from typing import Callable, List, Optional, Set, Tuple
from app.config import APP_TIMEZONE, EXPIRY_HORIZON_DAYS
import logging

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

CERTIFICATE_EXPIRY = "certificate_expiry"


def parse_expiry_date(value, tz=APP_TIMEZONE) -> Optional[datetime]:
    """
    Parse a customer expiryDate into an aware datetime, or None.

    "YYYY-MM-DD" is midnight in the app timezone, "Z"/offset datetimes keep
    their offset, naive datetimes are taken as app timezone.
    """
    if not value or not isinstance(value, str):
        return None
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = tz.localize(parsed)
    return parsed


def expiry_horizon(now: datetime, days: int = EXPIRY_HORIZON_DAYS, tz=APP_TIMEZONE) -> datetime:
    """now + days, clamped to the very end of that day in tz."""
    target_day = (now.astimezone(tz) + timedelta(days=days)).date()
    return tz.localize(datetime.combine(target_day, time(23, 59, 59, 999999)))


def expiry_message(customer_name: str, expiry: datetime) -> str:
    return f"The certificate for customer {customer_name} will expire on {expiry.strftime('%d/%m/%Y')}"


class ExpiryWatcher:
    def __init__(self, store, horizon_days: int = EXPIRY_HORIZON_DAYS, tz=APP_TIMEZONE,
                 clock: Optional[Callable[[], datetime]] = None):
        """
        Args:
            store: NotificationStore to read existing alerts from and add to
            horizon_days: how many days ahead counts as "soon"
            tz: pytz timezone used for "now" and for naive expiry dates
            clock: returns an aware "now"; defaults to wall clock in tz
        """
        self.store = store
        self.horizon_days = horizon_days
        self.tz = tz
        self.clock = clock or (lambda: datetime.now(self.tz))
        self.customers: List[dict] = []
        self._scanning = False
        self.store.subscribe(self._on_notifications_changed)

    def set_customers(self, customers: List[dict]) -> int:
        self.customers = list(customers or [])
        logger.info(f"Watching {len(self.customers)} customers for certificate expiry")
        return self.scan()

    def close(self) -> None:
        self.store.unsubscribe(self._on_notifications_changed)

    def scan(self, notifications: Optional[List[dict]] = None) -> int:
        """
        Run one pass and return how many alerts were emitted.

        notifications is the current store snapshot when the caller already
        has one; otherwise the store is read once for the whole pass.
        """
        if self._scanning or not self.customers:
            return 0
        self._scanning = True
        emitted = 0
        try:
            now = self.clock().astimezone(self.tz)
            horizon = expiry_horizon(now, self.horizon_days, self.tz)
            if notifications is None:
                notifications = self.store.list()
            notified = self._notified_pairs(notifications)

            for customer in self.customers:
                if customer.get("_id") is None:
                    continue
                customer_id = str(customer["_id"])
                expiry_date = customer.get("expiryDate")
                expiry = parse_expiry_date(expiry_date, self.tz)
                if expiry is None:
                    continue
                if not (now <= expiry <= horizon):
                    continue
                if (customer_id, expiry_date) in notified:
                    continue

                created = self.store.add({
                    "type": CERTIFICATE_EXPIRY,
                    "customerId": customer_id,
                    "customerName": customer.get("customerName") or "",
                    "expiryDate": expiry_date,
                    "title": "Certificate Expiry Alert",
                    "message": expiry_message(customer.get("customerName") or "", expiry.astimezone(self.tz)),
                    "path": "/customers",
                    "icon": "AlertTriangle",
                    "color": "amber",
                })
                if created:
                    notified.add((customer_id, expiry_date))
                    emitted += 1
                    logger.info(f"⏰ Certificate for customer {customer_id} expires {expiry_date}")
        finally:
            self._scanning = False
        return emitted

    @staticmethod
    def _notified_pairs(notifications: List[dict]) -> Set[Tuple[str, str]]:
        return {
            (n.get("customerId"), n.get("expiryDate"))
            for n in notifications
            if n.get("type") == CERTIFICATE_EXPIRY
        }

    def _on_notifications_changed(self, notifications: List[dict]) -> None:
        self.scan(notifications)
