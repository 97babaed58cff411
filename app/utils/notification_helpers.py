from datetime import datetime, timezone as dt_timezone
from typing import List, Optional, Union
import logging

logger = logging.getLogger(__name__)

DEFAULT_PATHS = {
    "trip-added": "/trips",
    "trip-updated": "/trips",
    "trip-deleted": "/trips",
    "trip-completed": "/trips/completed",
    "trip-status-changed": "/trips",
    "attendance-check-in": "/attendance",
    "attendance-check-out": "/attendance",
    "deduction": "/deductions",
    "reward": "/deductions",
    "target": "/",
    "certificate_expiry": "/customers",
}


def default_path_for_type(notification_type: Optional[str]) -> str:
    return DEFAULT_PATHS.get(notification_type or "", "/")


def _plural(count: int, one: str, many: str) -> str:
    return one if count == 1 else many


def format_relative_time(timestamp: Union[str, datetime], now: Optional[datetime] = None) -> str:
    """Arabic "time ago" label for a notification's createdAt."""
    if isinstance(timestamp, str):
        timestamp = datetime.fromisoformat(timestamp.replace("Z", "+00:00"))
    if timestamp.tzinfo is None:
        timestamp = timestamp.replace(tzinfo=dt_timezone.utc)
    now = now or datetime.now(dt_timezone.utc)

    seconds = int((now - timestamp).total_seconds())
    if seconds < 60:
        return "منذ لحظات"
    if seconds < 3600:
        minutes = seconds // 60
        return f"منذ {minutes} {_plural(minutes, 'دقيقة', 'دقائق')}"
    if seconds < 86400:
        hours = seconds // 3600
        return f"منذ {hours} {_plural(hours, 'ساعة', 'ساعات')}"
    days = seconds // 86400
    return f"منذ {days} {_plural(days, 'يوم', 'أيام')}"


def notify_target_achievement(store, employee_name: str, percentage: float) -> List[dict]:
    """Congratulate an employee on their monthly target; nothing below 50%."""
    shown = int(percentage) if float(percentage).is_integer() else percentage
    if percentage >= 100:
        title = "🎉 مبروك! تم تحقيق التارجت بالكامل"
        message = f"تهانينا! لقد حققت {shown}% من التارجت الشهري"
        icon, color = "Award", "green"
    elif percentage >= 80:
        title = "👏 أداء متميز! اقتربت من تحقيق التارجت"
        message = f"أحسنت! لقد حققت {shown}% من التارجت الشهري"
        icon, color = "TrendingUp", "blue"
    elif percentage >= 50:
        title = "💪 نصف الطريق! استمر في التقدم"
        message = f"جيد! لقد حققت {shown}% من التارجت الشهري"
        icon, color = "Target", "amber"
    else:
        logger.debug(f"No target notification for {employee_name} at {percentage}%")
        return []

    return store.add({
        "type": "target",
        "title": title,
        "message": message,
        "icon": icon,
        "color": color,
        "forUser": employee_name,
        "path": "/",
    })
